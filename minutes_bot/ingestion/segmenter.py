"""Split long audio into fixed-duration WAV chunks with ffmpeg.

Chunks are normalised to 16 kHz mono signed 16-bit PCM so every slice is
accepted by the transcription services without re-encoding artifacts at the
boundaries.
"""

from __future__ import annotations

import asyncio
import logging
import math
import tempfile
from pathlib import Path

from minutes_bot.errors import SegmentationError
from minutes_bot.ingestion.models import AudioChunk, SegmentedAudio

logger = logging.getLogger(__name__)

CHUNK_PREFIX = "chunk-"
CHUNK_SUFFIX = ".wav"
SAMPLE_RATE = 16_000
CHANNELS = 1
CODEC = "pcm_s16le"


def expected_chunk_count(duration_seconds: float, chunk_seconds: float) -> int:
    """Number of chunks a source of ``duration_seconds`` splits into."""
    if chunk_seconds <= 0:
        raise ValueError("chunk_seconds must be positive")
    return max(1, math.ceil(duration_seconds / chunk_seconds))


def build_ffmpeg_command(
    source: Path, chunk_seconds: int, work_dir: Path, ffmpeg_binary: str = "ffmpeg"
) -> list[str]:
    """Assemble the ffmpeg segment-muxer invocation for one source file."""
    return [
        ffmpeg_binary,
        "-hide_banner",
        "-nostdin",
        "-y",
        "-i",
        str(source),
        "-f",
        "segment",
        "-segment_time",
        str(chunk_seconds),
        "-reset_timestamps",
        "1",
        "-ar",
        str(SAMPLE_RATE),
        "-ac",
        str(CHANNELS),
        "-c:a",
        CODEC,
        str(work_dir / f"{CHUNK_PREFIX}%03d{CHUNK_SUFFIX}"),
    ]


def list_chunks(work_dir: Path) -> list[AudioChunk]:
    """Collect generated chunk files in filename order, numbered from 0."""
    names = sorted(
        p.name
        for p in work_dir.iterdir()
        if p.name.startswith(CHUNK_PREFIX) and p.name.endswith(CHUNK_SUFFIX)
    )
    return [AudioChunk(index=i, path=work_dir / name) for i, name in enumerate(names)]


async def split_audio(
    source: Path,
    chunk_seconds: int,
    *,
    ffmpeg_binary: str = "ffmpeg",
) -> SegmentedAudio:
    """Split ``source`` into ordered chunks inside a fresh temporary directory.

    Args:
        source: Local path of the audio to split.
        chunk_seconds: Target duration of each chunk, in seconds.
        ffmpeg_binary: Executable used for splitting.

    Returns:
        A :class:`SegmentedAudio` with the chunk directory and its chunks.

    Raises:
        ValueError: If ``chunk_seconds`` is not positive.
        SegmentationError: If ffmpeg is missing or exits non-zero.  The
            error carries ``work_dir`` so the caller can remove it.
    """
    if chunk_seconds <= 0:
        raise ValueError("chunk_seconds must be positive")

    work_dir = Path(tempfile.mkdtemp(prefix="tg-audio-"))
    cmd = build_ffmpeg_command(source, chunk_seconds, work_dir, ffmpeg_binary)
    logger.info("Splitting %s into %ds chunks in %s", source, chunk_seconds, work_dir)

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise SegmentationError(f"could not run {ffmpeg_binary}: {exc}", work_dir) from exc

    _, stderr = await proc.communicate()
    if proc.returncode != 0:
        diagnostic = stderr.decode("utf-8", errors="replace") if stderr else ""
        raise SegmentationError(
            diagnostic or f"{ffmpeg_binary} exited with status {proc.returncode}",
            work_dir,
        )

    chunks = list_chunks(work_dir)
    if not chunks:
        logger.warning("ffmpeg produced no chunks for %s", source)

    logger.info("Split %s into %d chunk(s)", source.name, len(chunks))
    return SegmentedAudio(work_dir=work_dir, chunks=chunks)
