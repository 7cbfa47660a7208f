"""End-to-end run: download -> transcribe -> minutes -> render -> deliver -> cleanup."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path

from minutes_bot.delivery.artifacts import (
    MINUTES_MIME_TYPE,
    TRANSCRIPT_MIME_TYPE,
    PipelineArtifacts,
    cleanup_files,
    write_minutes_pdf,
    write_transcript,
)
from minutes_bot.delivery.renderer import render_minutes_pdf
from minutes_bot.delivery.telegram import TelegramClient
from minutes_bot.errors import PipelineError
from minutes_bot.extraction.generation import GenerationClient
from minutes_bot.extraction.minutes import run_minutes_pipeline
from minutes_bot.ingestion.models import AudioEvent
from minutes_bot.ingestion.transcription import TranscriptionClient, transcribe_with_chunks
from minutes_bot.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)

NO_SPEECH_MESSAGE = (
    "I couldn't detect any speech in that audio. Please try again with clearer audio."
)


class RunStatus(StrEnum):
    """Terminal state of one run."""

    COMPLETED = "completed"
    NO_SPEECH = "no_speech"
    SKIPPED = "skipped"  # nothing was downloaded
    FAILED = "failed"


class PipelineRunner:
    """Executes one run per inbound audio event.

    Runs are independent: each owns its chunk directory and artifact paths,
    and a failing run is logged without affecting the others.
    """

    def __init__(
        self,
        config: PipelineConfig,
        transcriber: TranscriptionClient,
        generator: GenerationClient,
        telegram: TelegramClient,
        *,
        renderer: Callable[[str, str], bytes] = render_minutes_pdf,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._transcriber = transcriber
        self._generator = generator
        self._telegram = telegram
        self._renderer = renderer
        self._clock = clock
        self._tasks: set[asyncio.Task[RunStatus]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def process_audio_file(self, source: Path, chat_id: int) -> RunStatus:
        """Turn one local audio file into delivered transcript and minutes.

        The run takes ownership of ``source``: it is deleted together with
        both artifacts once delivery finishes or any stage fails.

        Raises:
            PipelineError: The failing stage's error, after cleanup.
        """
        artifacts: PipelineArtifacts | None = None
        try:
            logger.info("Transcribing %s for chat %s", source.name, chat_id)
            transcript = await transcribe_with_chunks(source, self._transcriber, self._config)
            if not transcript.strip():
                logger.info("No speech detected for chat %s", chat_id)
                await self._telegram.send_message(chat_id, NO_SPEECH_MESSAGE)
                return RunStatus.NO_SPEECH

            bundle = await run_minutes_pipeline(transcript, self._generator, self._config)

            artifacts = PipelineArtifacts.for_run(
                self._config.outputs_dir, bundle.title.slug, str(int(self._clock() * 1000))
            )
            await write_transcript(artifacts.transcript_path, transcript)
            await write_minutes_pdf(
                artifacts.minutes_path, bundle.title.title, bundle.translated, self._renderer
            )

            await self._telegram.send_document(
                chat_id,
                artifacts.transcript_path,
                artifacts.transcript_path.name,
                TRANSCRIPT_MIME_TYPE,
            )
            await self._telegram.send_document(
                chat_id,
                artifacts.minutes_path,
                artifacts.minutes_path.name,
                MINUTES_MIME_TYPE,
            )
            logger.info("Delivered minutes %r to chat %s", bundle.title.title, chat_id)
            return RunStatus.COMPLETED
        finally:
            leftover = (source, *artifacts.paths) if artifacts else (source,)
            await cleanup_files(*leftover)

    async def run_event(self, event: AudioEvent) -> RunStatus:
        """Download and process one event; never raises."""
        chat_id = event.chat_id
        kind = event.audio.kind
        try:
            outcome = await self._telegram.download_file(event.audio, self._config.recordings_dir)
            if not outcome.ok or outcome.path is None:
                logger.info(
                    "Nothing to process for chat %s (%s: %s)", chat_id, outcome.status, outcome.detail
                )
                return RunStatus.SKIPPED
            return await self.process_audio_file(outcome.path, chat_id)
        except PipelineError as exc:
            logger.error(
                "%s processing failed for chat %s at stage %s: %s", kind, chat_id, exc.stage, exc
            )
        except Exception:
            logger.exception("%s processing failed for chat %s", kind, chat_id)
        return RunStatus.FAILED

    def dispatch(self, event: AudioEvent) -> asyncio.Task[RunStatus]:
        """Start a detached run for ``event`` and return immediately."""
        task = asyncio.create_task(self.run_event(event), name=f"minutes-run-{event.chat_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every in-flight run to finish (runs are never cancelled)."""
        if self._tasks:
            logger.info("Waiting for %d in-flight run(s)", len(self._tasks))
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
