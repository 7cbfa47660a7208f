"""Run the webhook server: ``python -m minutes_bot``."""

from __future__ import annotations

import uvicorn

from minutes_bot.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "minutes_bot.api.main:app",
        host=settings.api_host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
