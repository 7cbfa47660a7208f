"""Telegram Bot API client: audio download and result delivery."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Callable
from pathlib import Path, PurePosixPath
from typing import Any

import httpx

from minutes_bot.delivery.models import Outcome
from minutes_bot.errors import DeliveryError, DownloadError
from minutes_bot.ingestion.models import AudioReference

logger = logging.getLogger(__name__)

_UNSAFE_NAME_RE = re.compile(r"[^a-zA-Z0-9._-]")


def safe_base_name(name: str) -> str:
    """Replace every character outside ``[a-zA-Z0-9._-]`` with ``_``."""
    return _UNSAFE_NAME_RE.sub("_", name)


def build_download_name(reference: AudioReference, remote_path: str, stamp_ms: int) -> str:
    """Local filename for a downloaded file: ``<epoch ms>-<safe name><ext>``.

    The extension comes from the Telegram file path, falling back to the
    reference's default extension.
    """
    ext = PurePosixPath(remote_path).suffix or reference.default_ext
    if reference.file_name:
        base = safe_base_name(PurePosixPath(reference.file_name).name)
        filename = f"{stamp_ms}-{base}"
        if not PurePosixPath(filename).suffix and ext:
            filename += ext
        return filename
    safe_id = reference.file_unique_id or reference.file_id
    return f"{stamp_ms}-{safe_base_name(safe_id)}{ext}"


class TelegramClient:
    """Thin async wrapper over the Bot API methods the pipeline uses.

    A missing bot token turns every operation into a logged no-op that
    returns a ``skipped`` :class:`Outcome`.
    """

    def __init__(
        self,
        token: str,
        http: httpx.AsyncClient,
        api_base: str = "https://api.telegram.org",
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._token = token
        self._http = http
        self._api_base = api_base.rstrip("/")
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return bool(self._token)

    def _method_url(self, method: str) -> str:
        return f"{self._api_base}/bot{self._token}/{method}"

    def _file_url(self, remote_path: str) -> str:
        return f"{self._api_base}/file/bot{self._token}/{remote_path}"

    async def resolve_file_path(self, file_id: str) -> str | None:
        """Ask ``getFile`` for the server-side path of ``file_id``."""
        try:
            response = await self._http.get(self._method_url("getFile"), params={"file_id": file_id})
        except httpx.HTTPError as exc:
            raise DownloadError(f"getFile request failed: {exc}") from exc
        if response.status_code >= 400:
            raise DownloadError(f"getFile failed: HTTP {response.status_code}")

        try:
            payload: dict[str, Any] = response.json()
        except ValueError as exc:
            raise DownloadError(f"getFile returned invalid JSON: {exc}") from exc
        result = payload.get("result") or {}
        if not payload.get("ok") or not result.get("file_path"):
            return None
        return str(result["file_path"])

    async def download_file(self, reference: AudioReference, dest_dir: Path) -> Outcome:
        """Download the referenced file into ``dest_dir``.

        Returns:
            ``succeeded`` with the local path, ``skipped`` without a token,
            or ``failed`` when Telegram cannot resolve the file.

        Raises:
            DownloadError: If the transfer itself fails.  A partially written
                file is removed first.
        """
        if not self.enabled:
            logger.warning("TELEGRAM_BOT_TOKEN is not set; skipping download.")
            return Outcome.skipped("missing bot token")

        remote_path = await self.resolve_file_path(reference.file_id)
        if remote_path is None:
            logger.warning("Failed to resolve Telegram file path for %s.", reference.kind)
            return Outcome.failed("could not resolve file path")

        await asyncio.to_thread(dest_dir.mkdir, parents=True, exist_ok=True)
        filename = build_download_name(reference, remote_path, int(self._clock() * 1000))
        dest_path = dest_dir / filename

        try:
            async with self._http.stream("GET", self._file_url(remote_path)) as response:
                if response.status_code >= 400:
                    raise DownloadError(f"file download failed: HTTP {response.status_code}")
                # Bot API downloads are capped at 20 MB.
                content = await response.aread()
            await asyncio.to_thread(dest_path.write_bytes, content)
        except DownloadError:
            dest_path.unlink(missing_ok=True)
            raise
        except (httpx.HTTPError, OSError) as exc:
            dest_path.unlink(missing_ok=True)
            raise DownloadError(f"file download failed: {exc}") from exc

        logger.info("Saved %s file to: %s", reference.kind, dest_path)
        return Outcome.succeeded(dest_path)

    async def _post(self, method: str, **kwargs: Any) -> None:
        try:
            response = await self._http.post(self._method_url(method), **kwargs)
        except httpx.HTTPError as exc:
            raise DeliveryError(method, None, str(exc)) from exc
        if not response.is_success:
            raise DeliveryError(method, response.status_code, response.text)

    async def send_document(
        self, chat_id: int, path: Path, filename: str, mime_type: str
    ) -> Outcome:
        """Upload ``path`` to the chat as a document."""
        if not self.enabled:
            logger.warning("TELEGRAM_BOT_TOKEN is not set; skipping send.")
            return Outcome.skipped("missing bot token")

        content = await asyncio.to_thread(path.read_bytes)
        await self._post(
            "sendDocument",
            data={"chat_id": str(chat_id)},
            files={"document": (filename, content, mime_type)},
        )
        return Outcome.succeeded(path)

    async def send_message(self, chat_id: int, text: str) -> Outcome:
        """Send a plain text message to the chat."""
        if not self.enabled:
            logger.warning("TELEGRAM_BOT_TOKEN is not set; skipping send.")
            return Outcome.skipped("missing bot token")

        await self._post("sendMessage", json={"chat_id": chat_id, "text": text})
        return Outcome.succeeded()
