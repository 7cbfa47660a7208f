"""Data models for the audio ingestion side of the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class AudioChunk:
    """One bounded-duration slice of the source audio."""

    index: int
    path: Path


@dataclass
class SegmentedAudio:
    """Chunks produced by one segmentation call and the directory holding them."""

    work_dir: Path
    chunks: list[AudioChunk] = field(default_factory=list)


@dataclass(frozen=True)
class AudioReference:
    """Remote audio file descriptor taken from an inbound chat message."""

    file_id: str
    kind: str  # "voice", "audio", "audio-document"
    default_ext: str = ""
    file_unique_id: str | None = None
    file_name: str | None = None
    mime_type: str | None = None


@dataclass(frozen=True)
class AudioEvent:
    """The only fields of an inbound update the pipeline consumes."""

    chat_id: int
    audio: AudioReference
