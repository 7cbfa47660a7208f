"""Speech-to-text clients and the chunked transcription loop."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from openai import APIError, APIStatusError, AsyncOpenAI

from minutes_bot.errors import SegmentationError, ServiceCallError, TranscriptionError
from minutes_bot.ingestion.models import AudioChunk
from minutes_bot.ingestion.segmenter import split_audio
from minutes_bot.pipeline_config import PipelineConfig, TranscriptionProvider

logger = logging.getLogger(__name__)

CHUNK_SEPARATOR = "\n\n"


class TranscriptionClient(Protocol):
    """Converts one audio chunk into text."""

    async def transcribe(
        self, chunk_path: Path, *, model: str, language: str | None = None
    ) -> str: ...


class OpenAITranscriptionClient:
    """Transcribe chunks with the OpenAI audio transcriptions endpoint."""

    def __init__(self, api_key: str, timeout: float = 60.0) -> None:
        # Retries are disabled: a failed chunk fails the run.
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def transcribe(
        self, chunk_path: Path, *, model: str, language: str | None = None
    ) -> str:
        audio = await asyncio.to_thread(chunk_path.read_bytes)
        extra = {"language": language} if language else {}
        try:
            response = await self._client.audio.transcriptions.create(
                model=model,
                file=(chunk_path.name, audio),
                **extra,
            )
        except APIStatusError as exc:
            raise ServiceCallError("Transcription", exc.status_code, exc.response.text) from exc
        except APIError as exc:
            raise ServiceCallError("Transcription", None, str(exc)) from exc
        return response.text or ""


class AssemblyAITranscriptionClient:
    """Transcribe chunks with the AssemblyAI SDK.

    The SDK is synchronous, so each call runs in a worker thread to keep the
    event loop free for other runs.
    """

    def __init__(self, api_key: str) -> None:
        import assemblyai as aai  # type: ignore[import-untyped]  # no stubs; import inside function

        aai.settings.api_key = api_key
        self._aai = aai

    def _transcribe_sync(self, chunk_path: Path, model: str, language: str | None) -> str:
        aai = self._aai
        config = aai.TranscriptionConfig(
            speech_models=[model],
            language_code=language or None,
        )
        try:
            transcript = aai.Transcriber().transcribe(str(chunk_path), config=config)
        except Exception as exc:
            # Infrastructure error: invalid API key, network failure, provider outage.
            raise ServiceCallError("Transcription", None, str(exc)) from exc
        if transcript.status == aai.TranscriptStatus.error:
            raise ServiceCallError("Transcription", None, str(transcript.error))
        return transcript.text or ""

    async def transcribe(
        self, chunk_path: Path, *, model: str, language: str | None = None
    ) -> str:
        return await asyncio.to_thread(self._transcribe_sync, chunk_path, model, language)


def build_transcription_client(
    provider: TranscriptionProvider,
    *,
    openai_api_key: str = "",
    assemblyai_api_key: str = "",
    timeout: float = 60.0,
) -> TranscriptionClient:
    """Create the client for the configured speech-to-text provider."""
    if provider is TranscriptionProvider.ASSEMBLYAI:
        return AssemblyAITranscriptionClient(assemblyai_api_key)
    return OpenAITranscriptionClient(openai_api_key, timeout=timeout)


def assemble_transcript(texts: Iterable[str]) -> str:
    """Join chunk transcripts with one blank line, dropping blank ones.

    Kept texts are joined unchanged.  Never fails; an all-empty input yields ``""``.
    """
    return CHUNK_SEPARATOR.join(t for t in texts if t and t.strip())


async def transcribe_chunks(
    chunks: Iterable[AudioChunk],
    client: TranscriptionClient,
    *,
    model: str,
    language: str | None = None,
) -> str:
    """Transcribe ``chunks`` one at a time, in index order.

    Args:
        chunks: Chunks to transcribe.
        client: Speech-to-text client.
        model: Model identifier passed to every call.
        language: Language hint passed to every call.

    Returns:
        The assembled transcript (may be empty).

    Raises:
        TranscriptionError: On the first failing chunk, whether the service
            call or reading the chunk file failed.  Text gathered from
            earlier chunks is discarded.
    """
    ordered = sorted(chunks, key=lambda c: c.index)
    texts: list[str] = []
    for chunk in ordered:
        try:
            text = await client.transcribe(chunk.path, model=model, language=language)
        except ServiceCallError as exc:
            raise TranscriptionError(chunk.index, exc.status_code, exc.body) from exc
        except OSError as exc:
            raise TranscriptionError(chunk.index, None, str(exc)) from exc
        logger.info(
            "Transcribed chunk %d/%d (%d chars)", chunk.index + 1, len(ordered), len(text)
        )
        texts.append(text)
    return assemble_transcript(texts)


async def transcribe_with_chunks(
    source: Path, client: TranscriptionClient, config: PipelineConfig
) -> str:
    """Split ``source`` and transcribe every chunk.

    The temporary chunk directory is removed before returning, whether the
    call succeeds or fails.
    """
    work_dir: Path | None = None
    try:
        segmented = await split_audio(
            source, config.chunk_seconds, ffmpeg_binary=config.ffmpeg_binary
        )
        work_dir = segmented.work_dir
        return await transcribe_chunks(
            segmented.chunks,
            client,
            model=config.transcription_model,
            language=config.source_language,
        )
    except SegmentationError as exc:
        work_dir = exc.work_dir
        raise
    finally:
        if work_dir is not None:
            await asyncio.to_thread(shutil.rmtree, work_dir, ignore_errors=True)
