"""Pipeline configuration: provider enums and PipelineConfig dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from minutes_bot.config import Settings


class TranscriptionProvider(StrEnum):
    """Available speech-to-text backends."""

    OPENAI = "openai"
    ASSEMBLYAI = "assemblyai"


class GenerationProvider(StrEnum):
    """Available text-generation backends."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


DEFAULT_TRANSCRIPTION_MODELS: dict[TranscriptionProvider, str] = {
    TranscriptionProvider.OPENAI: "whisper-1",
    TranscriptionProvider.ASSEMBLYAI: "universal-3-pro",
}

DEFAULT_GENERATION_MODELS: dict[GenerationProvider, str] = {
    GenerationProvider.OPENAI: "gpt-4o-mini",
    GenerationProvider.ANTHROPIC: "claude-sonnet-4-20250514",
}


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration for one process's pipeline runs.

    Built once at startup and passed explicitly to every component that
    needs it.  Defaults mirror the bot's current behaviour (OpenAI for both
    stages, Romanian audio, English deliverables, ten-minute chunks).
    """

    recordings_dir: Path = Path("recordings")
    outputs_dir: Path = Path("outputs")
    chunk_minutes: float = 10
    transcription_provider: TranscriptionProvider = TranscriptionProvider.OPENAI
    transcription_model: str = "whisper-1"
    generation_provider: GenerationProvider = GenerationProvider.OPENAI
    generation_model: str = "gpt-4o-mini"
    source_language: str = "ro"
    delivery_language: str = "English"
    ffmpeg_binary: str = "ffmpeg"

    def __post_init__(self) -> None:
        if self.chunk_minutes <= 0:
            raise ValueError("chunk_minutes must be a positive number")
        if not str(self.recordings_dir).strip() or not str(self.outputs_dir).strip():
            raise ValueError("Directory roots cannot be empty")

    @property
    def chunk_seconds(self) -> int:
        """Chunk duration in seconds, floored at one minute."""
        return int(max(1, self.chunk_minutes) * 60)

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        """Build the config from validated settings, filling in per-provider model defaults."""
        transcription_provider = TranscriptionProvider(settings.transcription_provider)
        generation_provider = GenerationProvider(settings.generation_provider)
        return cls(
            recordings_dir=settings.recordings_dir,
            outputs_dir=settings.outputs_dir,
            chunk_minutes=settings.chunk_minutes,
            transcription_provider=transcription_provider,
            transcription_model=(
                settings.transcription_model or DEFAULT_TRANSCRIPTION_MODELS[transcription_provider]
            ),
            generation_provider=generation_provider,
            generation_model=(
                settings.generation_model or DEFAULT_GENERATION_MODELS[generation_provider]
            ),
            source_language=settings.source_language,
            delivery_language=settings.delivery_language,
            ffmpeg_binary=settings.ffmpeg_binary,
        )
