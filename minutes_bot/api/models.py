"""Pydantic schemas for the Telegram webhook.

Only the fields the pipeline consumes are modelled; everything else in the
update envelope is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel


class TelegramFile(BaseModel):
    """Voice, audio or document attachment descriptor."""

    file_id: str
    file_unique_id: str | None = None
    file_name: str | None = None
    mime_type: str | None = None


class TelegramChat(BaseModel):
    id: int


class TelegramMessage(BaseModel):
    """The subset of a Telegram message used by the bot."""

    chat: TelegramChat | None = None
    text: str | None = None
    voice: TelegramFile | None = None
    audio: TelegramFile | None = None
    document: TelegramFile | None = None


class TelegramUpdate(BaseModel):
    """Request body of POST /webhook."""

    update_id: int | None = None
    message: TelegramMessage | None = None


class WebhookAck(BaseModel):
    """Response body of POST /webhook; runs continue after it is sent."""

    ok: bool = True
    runs_started: int = 0
