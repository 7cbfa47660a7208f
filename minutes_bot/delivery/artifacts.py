"""Per-run transcript and minutes artifacts, and best-effort file cleanup."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from minutes_bot.delivery.renderer import render_minutes_pdf

logger = logging.getLogger(__name__)

TRANSCRIPT_MIME_TYPE = "text/plain"
MINUTES_MIME_TYPE = "application/pdf"


@dataclass(frozen=True)
class PipelineArtifacts:
    """Output files of one run, named from the title slug and a run stamp."""

    transcript_path: Path
    minutes_path: Path

    @classmethod
    def for_run(cls, output_dir: Path, slug: str, run_stamp: str) -> PipelineArtifacts:
        base = f"{slug}-{run_stamp}"
        return cls(
            transcript_path=output_dir / f"{base}-transcript.txt",
            minutes_path=output_dir / f"{base}-minutes.pdf",
        )

    @property
    def paths(self) -> tuple[Path, Path]:
        return self.transcript_path, self.minutes_path


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def write_transcript(path: Path, transcript: str) -> Path:
    """Write the transcript artifact, creating the output root on demand."""
    await asyncio.to_thread(_write_text, path, transcript)
    return path


async def write_minutes_pdf(
    path: Path,
    title: str,
    body: str,
    renderer: Callable[[str, str], bytes] = render_minutes_pdf,
) -> Path:
    """Render the minutes document and write it to ``path``."""
    data = await asyncio.to_thread(renderer, title, body)
    await asyncio.to_thread(_write_bytes, path, data)
    return path


def safe_unlink(path: Path | None) -> bool:
    """Delete ``path``, treating an already-missing file as success.

    Other OS errors are logged as warnings, never raised.

    Returns:
        False only when the file exists and could not be deleted.
    """
    if path is None:
        return True
    try:
        path.unlink()
    except FileNotFoundError:
        return True
    except OSError as exc:
        logger.warning("Cleanup failed: %s (%s)", path, exc)
        return False
    return True


async def cleanup_files(*paths: Path | None) -> list[Path]:
    """Attempt to delete every path, regardless of earlier failures.

    Returns:
        The paths that could not be deleted.
    """
    failed: list[Path] = []
    for path in paths:
        if path is None:
            continue
        if not await asyncio.to_thread(safe_unlink, path):
            failed.append(path)
    return failed
