from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from minutes_bot.api.routes.webhook import router as webhook_router
from minutes_bot.config import Settings, get_settings
from minutes_bot.delivery.telegram import TelegramClient
from minutes_bot.extraction.generation import build_generation_client
from minutes_bot.ingestion.transcription import build_transcription_client
from minutes_bot.pipeline import PipelineRunner
from minutes_bot.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # httpx request URLs contain the bot token.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_runner(settings: Settings, http: httpx.AsyncClient) -> PipelineRunner:
    """Wire the provider clients and Telegram client into a runner."""
    config = PipelineConfig.from_settings(settings)
    transcriber = build_transcription_client(
        config.transcription_provider,
        openai_api_key=settings.openai_api_key,
        assemblyai_api_key=settings.assemblyai_api_key,
        timeout=settings.http_timeout_seconds,
    )
    generator = build_generation_client(
        config.generation_provider,
        openai_api_key=settings.openai_api_key,
        anthropic_api_key=settings.anthropic_api_key,
        max_tokens=settings.generation_max_tokens,
        timeout=settings.http_timeout_seconds,
    )
    telegram = TelegramClient(settings.telegram_bot_token, http, settings.telegram_api_base)
    if not telegram.enabled:
        logger.warning("TELEGRAM_BOT_TOKEN is not set; downloads and sends will be skipped.")
    return PipelineRunner(config, transcriber, generator, telegram)


def create_app(runner: PipelineRunner | None = None) -> FastAPI:
    """Build the FastAPI app.

    Args:
        runner: Pre-built runner to serve with.  When omitted, one is built
            from :func:`get_settings` on startup.

    Returns:
        The configured application.  In-flight runs are awaited on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if runner is not None:
            app.state.runner = runner
            yield
            await runner.drain()
            return

        settings = get_settings()
        configure_logging(settings.log_level)
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http:
            app.state.runner = build_runner(settings, http)
            logger.info("Minutes bot ready on port %s", settings.port)
            yield
            await app.state.runner.drain()

    app = FastAPI(
        title="Meeting Minutes Bot",
        description="Telegram voice notes to transcripts and meeting minutes",
        version="0.1.0",
        lifespan=lifespan,
    )
    if runner is not None:
        app.state.runner = runner

    app.include_router(webhook_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    return app


app = create_app()
