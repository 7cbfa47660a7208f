"""Shared fixtures: pipeline config on tmp_path and in-memory service fakes."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from minutes_bot.delivery.models import Outcome
from minutes_bot.pipeline_config import PipelineConfig

_SIX_SECTION_MINUTES = (
    "## Context\nWeekly sync.\n\n"
    "## Summary\n- Budget reviewed\n\n"
    "## Process Flow\n1. Budget\n\n"
    "## Decisions\n- Approve budget\n\n"
    "## Action Items\n1. Ana sends the report by Friday\n\n"
    "## Open Questions\nNone"
)


@pytest.fixture()
def config(tmp_path: Path) -> PipelineConfig:
    return PipelineConfig(
        recordings_dir=tmp_path / "recordings",
        outputs_dir=tmp_path / "outputs",
    )


class FakeTranscriber:
    """Returns queued texts per call; a ServiceCallError in the queue is raised."""

    def __init__(self, results: list[str | Exception]) -> None:
        self.results = list(results)
        self.calls: list[Path] = []

    async def transcribe(self, chunk_path: Path, *, model: str, language: str | None = None) -> str:
        self.calls.append(chunk_path)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeGenerator:
    """Answers each stage call with the next queued text, Responses-API shaped."""

    def __init__(self, answers: list[str | Exception]) -> None:
        self.answers = list(answers)
        self.calls: list[tuple[str, str]] = []

    async def generate(self, system: str, user_text: str, *, model: str) -> dict[str, Any]:
        self.calls.append((system, user_text))
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return {"output": [{"content": [{"type": "output_text", "text": answer}]}]}


@pytest.fixture()
def fake_transcriber() -> type[FakeTranscriber]:
    return FakeTranscriber


@pytest.fixture()
def fake_generator() -> type[FakeGenerator]:
    return FakeGenerator


@pytest.fixture()
def telegram() -> MagicMock:
    """Telegram client double whose sends succeed."""
    client = MagicMock()
    client.enabled = True
    client.send_message = AsyncMock(return_value=Outcome.succeeded())
    client.send_document = AsyncMock(side_effect=lambda chat, path, *a: Outcome.succeeded(path))
    client.download_file = AsyncMock(return_value=Outcome.skipped("missing bot token"))
    return client


@pytest.fixture()
def six_section_minutes() -> str:
    return _SIX_SECTION_MINUTES
