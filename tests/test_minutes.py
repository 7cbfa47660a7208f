"""Tests for title/minutes/translation stages and text helpers."""

from __future__ import annotations

import re

import pytest

from minutes_bot.errors import GenerationError, ServiceCallError
from minutes_bot.extraction.generation import extract_output_text
from minutes_bot.extraction.minutes import (
    DEFAULT_TITLE,
    create_meeting_minutes,
    create_meeting_title,
    run_minutes_pipeline,
    slugify,
    to_ascii_safe,
    translate_minutes,
)
from minutes_bot.extraction.prompts import (
    MINUTES_SECTIONS,
    language_name,
    minutes_prompt,
    missing_sections,
    normalize_minutes,
    translation_prompt,
)

SLUG_RE = re.compile(r"^[a-z0-9-]{0,80}$")


# ---------------------------------------------------------------------------
# slugify / to_ascii_safe
# ---------------------------------------------------------------------------


class TestSlugify:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Weekly Budget Review", "weekly-budget-review"),
            ("  Ședință: buget & planificare!  ", "sedinta-buget-planificare"),
            ("---", ""),
            ("", ""),
        ],
    )
    def test_examples(self, title: str, expected: str) -> None:
        assert slugify(title) == expected

    @pytest.mark.parametrize(
        "title",
        ["Weekly Budget Review", "Întâlnire — „proiect” 2024", "a" * 200, "x " * 60, "日本語"],
    )
    def test_shape_and_idempotence(self, title: str) -> None:
        slug = slugify(title)
        assert SLUG_RE.match(slug)
        assert not slug.startswith("-") and not slug.endswith("-")
        assert slugify(slug) == slug


class TestToAsciiSafe:
    def test_folds_diacritics_quotes_and_dashes(self) -> None:
        assert to_ascii_safe("Ședință „bună” – ‘ok’") == "Sedinta \"buna\" - 'ok'"

    def test_drops_non_ascii_and_collapses_blank_lines(self) -> None:
        assert to_ascii_safe("a ☃\n\n\n\nb   \nc") == "a\n\nb\nc"

    def test_none_and_empty(self) -> None:
        assert to_ascii_safe(None) == ""
        assert to_ascii_safe("") == ""


# ---------------------------------------------------------------------------
# extract_output_text
# ---------------------------------------------------------------------------


class TestExtractOutputText:
    def test_responses_api_shape(self) -> None:
        response = {"output": [{"content": [{"type": "output_text", "text": "Hello"}]}]}
        assert extract_output_text(response) == "Hello"

    def test_messages_api_shape(self) -> None:
        assert extract_output_text({"content": [{"type": "text", "text": "Hi"}]}) == "Hi"

    def test_flat_output_text(self) -> None:
        assert extract_output_text({"output": [], "output_text": "Flat"}) == "Flat"

    def test_flat_text(self) -> None:
        assert extract_output_text({"text": "Plain"}) == "Plain"

    @pytest.mark.parametrize("response", [None, {}, {"output": [{"content": []}]}])
    def test_no_text_yields_empty(self, response) -> None:
        assert extract_output_text(response) == ""


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


class TestPrompts:
    def test_minutes_prompt_lists_sections_in_order(self) -> None:
        prompt = minutes_prompt("Romanian")
        positions = [prompt.index(f"## {name}") for name in MINUTES_SECTIONS]
        assert positions == sorted(positions)
        assert "Romanian" in prompt

    def test_translation_prompt_keeps_headings(self) -> None:
        assert "do not translate them" in translation_prompt("English")

    def test_language_name(self) -> None:
        assert language_name("ro") == "Romanian"
        assert language_name("Klingon") == "Klingon"

    def test_missing_sections(self, six_section_minutes: str) -> None:
        assert missing_sections(six_section_minutes) == []
        partial = "## Context\nx\n\n### summary\ny"
        assert missing_sections(partial) == list(MINUTES_SECTIONS[2:])


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


class TestCreateMeetingTitle:
    @pytest.mark.asyncio
    async def test_title_and_slug(self, config, fake_generator) -> None:
        client = fake_generator(["  Budget Review Q3 \n"])
        title = await create_meeting_title("transcript", client, config)
        assert title.title == "Budget Review Q3"
        assert title.slug == "budget-review-q3"
        system, user_text = client.calls[0]
        assert config.delivery_language in system
        assert "transcript" in user_text

    @pytest.mark.asyncio
    async def test_empty_answer_uses_default_title(self, config, fake_generator) -> None:
        title = await create_meeting_title("t", fake_generator([""]), config)
        assert title.title == DEFAULT_TITLE
        assert title.slug == "meeting"

    @pytest.mark.asyncio
    async def test_unsluggable_title_falls_back_to_timestamp(self, config, fake_generator) -> None:
        title = await create_meeting_title(
            "t", fake_generator(["!!!"]), config, clock=lambda: 1700000000.5
        )
        assert title.title == "!!!"
        assert title.slug == "meeting-1700000000500"

    @pytest.mark.asyncio
    async def test_service_failure_raises_generation_error(self, config, fake_generator) -> None:
        client = fake_generator([ServiceCallError("Generation", 429, "rate limited")])
        with pytest.raises(GenerationError) as excinfo:
            await create_meeting_title("t", client, config)
        assert excinfo.value.stage == "title"
        assert excinfo.value.status_code == 429
        assert "Title generation failed" in str(excinfo.value)


class TestCreateMeetingMinutes:
    @pytest.mark.asyncio
    async def test_uses_source_language(self, config, fake_generator, six_section_minutes) -> None:
        client = fake_generator([six_section_minutes])
        minutes = await create_meeting_minutes("transcript", client, config)
        assert minutes == six_section_minutes
        assert "Romanian" in client.calls[0][0]

    @pytest.mark.asyncio
    async def test_missing_sections_are_logged(
        self, config, fake_generator, caplog: pytest.LogCaptureFixture
    ) -> None:
        await create_meeting_minutes("t", fake_generator(["## Context\nonly"]), config)
        assert "missing sections" in caplog.text


class TestTranslateMinutes:
    @pytest.mark.asyncio
    async def test_empty_input_makes_no_call(self, config, fake_generator) -> None:
        client = fake_generator([])
        assert await translate_minutes("", client, config) == ""
        assert await translate_minutes("  \n", client, config) == ""
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_translates_minutes_text(self, config, fake_generator) -> None:
        client = fake_generator(["## Context\nWeekly sync."])
        result = await translate_minutes("## Context\nȘedință săptămânală.", client, config)
        assert result.startswith("## Context\nWeekly sync.\n\n## Summary\nNone")
        assert missing_sections(result) == []
        system, user_text = client.calls[0]
        assert "English" in system
        assert user_text == "## Context\nȘedință săptămânală."


class TestRunMinutesPipeline:
    @pytest.mark.asyncio
    async def test_runs_three_stages_in_order(
        self, config, fake_generator, six_section_minutes
    ) -> None:
        client = fake_generator(["Weekly Sync", "## Context\nSedinta...", six_section_minutes])
        bundle = await run_minutes_pipeline("Buna ziua", client, config)
        assert bundle.title.slug == "weekly-sync"
        assert bundle.minutes.startswith("## Context\nSedinta...\n\n## Summary\nNone")
        assert bundle.translated == six_section_minutes
        assert missing_sections(bundle.translated) == []
        # Translation reads the minutes, not the transcript.
        assert client.calls[2][1] == bundle.minutes

    @pytest.mark.asyncio
    async def test_failing_stage_skips_the_rest(self, config, fake_generator) -> None:
        client = fake_generator(["Title", ServiceCallError("Generation", 500, "down"), "unused"])
        with pytest.raises(GenerationError) as excinfo:
            await run_minutes_pipeline("t", client, config)
        assert excinfo.value.stage == "minutes"
        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_minutes_and_translation_keep_all_sections_in_order(
        self, config, fake_generator, six_section_minutes
    ) -> None:
        source_minutes = six_section_minutes.replace("Weekly sync.", "Sedinta saptamanala.")
        client = fake_generator(["Ship v2 Planning", source_minutes, six_section_minutes])
        bundle = await run_minutes_pipeline("Hello. Let's ship v2 by Friday.", client, config)

        assert bundle.title.title
        for document in (bundle.minutes, bundle.translated):
            assert missing_sections(document) == []
            headings = [line[3:] for line in document.splitlines() if line.startswith("## ")]
            assert headings == list(MINUTES_SECTIONS)

    @pytest.mark.asyncio
    async def test_partial_answers_are_completed_to_six_sections(
        self, config, fake_generator
    ) -> None:
        partial = "## Summary\n- ship v2 Friday"
        client = fake_generator(["Ship v2", partial, partial])
        bundle = await run_minutes_pipeline("Hello. Let's ship v2 by Friday.", client, config)

        for document in (bundle.minutes, bundle.translated):
            headings = [line[3:] for line in document.splitlines() if line.startswith("## ")]
            assert headings == list(MINUTES_SECTIONS)
            assert "## Summary\n- ship v2 Friday" in document
            assert "## Context\nNone" in document
            assert document.endswith("## Open Questions\nNone")


class TestNormalizeMinutes:
    def test_complete_minutes_are_unchanged(self, six_section_minutes: str) -> None:
        assert normalize_minutes(six_section_minutes) == six_section_minutes

    def test_reorders_and_canonicalises_headings(self) -> None:
        text = "### decisions\n- Ship v2\n\n# CONTEXT\nStandup"
        result = normalize_minutes(text)
        assert result.startswith("## Context\nStandup\n\n## Summary\nNone")
        assert "## Decisions\n- Ship v2" in result
        assert missing_sections(result) == []

    def test_keeps_preamble_and_unknown_headings(self) -> None:
        text = "Minutes draft\n## Context\nx\n### Attendees\nAna\n## Summary\n\n"
        result = normalize_minutes(text)
        assert result.startswith("Minutes draft\n\n## Context\nx\n### Attendees\nAna")
        assert "## Summary\nNone" in result

    def test_blank_input(self) -> None:
        assert normalize_minutes("") == ""
        assert normalize_minutes(" \n ") == ""
