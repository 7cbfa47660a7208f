"""Webhook endpoint: accept Telegram updates and start minutes runs."""

from __future__ import annotations

import json
import logging
from pathlib import PurePosixPath
from typing import Any

from fastapi import APIRouter, Request
from pydantic import ValidationError

from minutes_bot.api.models import TelegramFile, TelegramMessage, TelegramUpdate, WebhookAck
from minutes_bot.ingestion.models import AudioEvent, AudioReference
from minutes_bot.pipeline import PipelineRunner

logger = logging.getLogger(__name__)

router = APIRouter()

VOICE_DEFAULT_EXT = ".ogg"
AUDIO_DEFAULT_EXT = ".mp3"
DOCUMENT_DEFAULT_EXT = ".bin"


def extract_audio_events(message: TelegramMessage) -> list[AudioEvent]:
    """Build one event per audio attachment: voice, audio, or ``audio/*`` document."""
    if message.chat is None:
        return []

    references: list[AudioReference] = []
    if message.voice:
        references.append(_reference(message.voice, "voice", VOICE_DEFAULT_EXT))
    if message.audio:
        references.append(_reference(message.audio, "audio", AUDIO_DEFAULT_EXT))
    document = message.document
    if document and (document.mime_type or "").startswith("audio/"):
        ext = PurePosixPath(document.file_name or "").suffix or DOCUMENT_DEFAULT_EXT
        references.append(_reference(document, "audio-document", ext))

    return [AudioEvent(chat_id=message.chat.id, audio=ref) for ref in references]


def _reference(file: TelegramFile, kind: str, default_ext: str) -> AudioReference:
    return AudioReference(
        file_id=file.file_id,
        kind=kind,
        default_ext=default_ext,
        file_unique_id=file.file_unique_id,
        file_name=file.file_name,
        mime_type=file.mime_type,
    )


@router.get("/")
async def root() -> dict[str, bool]:
    return {"ok": True}


@router.post("/webhook", response_model=WebhookAck)
async def telegram_webhook(request: Request) -> WebhookAck:
    """Acknowledge a Telegram update and detach one run per audio attachment.

    Always answers 200 so Telegram does not redeliver the update; processing
    results are sent back to the chat by the run itself.
    """
    try:
        update: Any = await request.json()
    except ValueError as exc:
        logger.warning("Ignoring update with invalid JSON body: %s", exc)
        return WebhookAck()
    logger.debug("Webhook update: %s", json.dumps(update, ensure_ascii=False))

    try:
        parsed = TelegramUpdate.model_validate(update)
    except ValidationError as exc:
        logger.warning("Ignoring malformed update: %s", exc)
        return WebhookAck()

    message = parsed.message
    if message is None:
        return WebhookAck()
    if message.text:
        logger.info("Message text: %s", message.text)

    runner: PipelineRunner = request.app.state.runner
    events = extract_audio_events(message)
    for event in events:
        runner.dispatch(event)
    return WebhookAck(runs_started=len(events))
