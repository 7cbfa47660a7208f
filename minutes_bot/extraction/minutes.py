"""Title, minutes and translation stages over a full transcript."""

from __future__ import annotations

import logging
import re
import time
import unicodedata
from collections.abc import Callable

from minutes_bot.errors import GenerationError, ServiceCallError
from minutes_bot.extraction.generation import GenerationClient, extract_output_text
from minutes_bot.extraction.models import MeetingTitle, MinutesBundle
from minutes_bot.extraction.prompts import (
    language_name,
    minutes_prompt,
    missing_sections,
    normalize_minutes,
    title_prompt,
    translation_prompt,
)
from minutes_bot.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Meeting"
SLUG_MAX_LENGTH = 80

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_QUOTE_TRANSLATION = str.maketrans(
    {
        "“": '"',
        "”": '"',
        "„": '"',
        "‘": "'",
        "’": "'",
        "–": "-",
        "—": "-",
    }
)
_NON_PRINTABLE_RE = re.compile(r"[^\t\n\r\x20-\x7e]")


def _strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(title: str) -> str:
    """Derive a lower-case ``a-z0-9-`` slug of at most 80 characters.

    Idempotent: ``slugify(slugify(x)) == slugify(x)``.  May return ``""``.
    """
    slug = _NON_ALNUM_RE.sub("-", _strip_diacritics(title).lower()).strip("-")
    return slug[:SLUG_MAX_LENGTH].strip("-")


def to_ascii_safe(text: str | None) -> str:
    """Fold text to printable ASCII for the core PDF fonts.

    Removes diacritics, straightens typographic quotes and dashes, drops other
    non-ASCII characters, trims trailing spaces and collapses runs of blank
    lines.
    """
    if not text:
        return ""
    folded = _strip_diacritics(str(text)).translate(_QUOTE_TRANSLATION)
    folded = _NON_PRINTABLE_RE.sub("", folded)
    folded = re.sub(r"[ \t]+\n", "\n", folded)
    folded = re.sub(r"\n{3,}", "\n\n", folded)
    return folded.strip()


async def _call_stage(
    stage: str,
    client: GenerationClient,
    system: str,
    user_text: str,
    model: str,
) -> str:
    try:
        response = await client.generate(system, user_text, model=model)
    except ServiceCallError as exc:
        raise GenerationError(stage, exc.status_code, exc.body) from exc
    return extract_output_text(response)


async def create_meeting_title(
    transcript: str,
    client: GenerationClient,
    config: PipelineConfig,
    *,
    clock: Callable[[], float] = time.time,
) -> MeetingTitle:
    """Generate a short title and its slug.

    Falls back to :data:`DEFAULT_TITLE` for an empty answer and to
    ``meeting-<epoch ms>`` when no slug can be derived.
    """
    text = await _call_stage(
        "title",
        client,
        title_prompt(config.delivery_language),
        f"Transcript:\n{transcript}",
        config.generation_model,
    )
    title = text.strip() or DEFAULT_TITLE
    slug = slugify(title) or f"meeting-{int(clock() * 1000)}"
    return MeetingTitle(title=title, slug=slug)


def _ensure_sections(stage: str, text: str) -> str:
    missing = missing_sections(text)
    if text.strip() and missing:
        logger.warning("Generated %s are missing sections: %s", stage, ", ".join(missing))
    return normalize_minutes(text)


async def create_meeting_minutes(
    transcript: str, client: GenerationClient, config: PipelineConfig
) -> str:
    """Generate the six-section minutes in the source language.

    Sections the model left out are added with the placeholder, so the
    result always carries every heading in order (or is ``""``).
    """
    minutes = await _call_stage(
        "minutes",
        client,
        minutes_prompt(language_name(config.source_language)),
        f"Transcript:\n{transcript}",
        config.generation_model,
    )
    return _ensure_sections("minutes", minutes)


async def translate_minutes(
    minutes: str, client: GenerationClient, config: PipelineConfig
) -> str:
    """Translate minutes into the delivery language, keeping their structure.

    Empty input is returned as ``""`` without calling the service.  The
    translation is normalised to the same six sections as its input.
    """
    if not minutes.strip():
        return ""
    translated = await _call_stage(
        "translation",
        client,
        translation_prompt(config.delivery_language),
        minutes,
        config.generation_model,
    )
    return _ensure_sections("translated minutes", translated)


async def run_minutes_pipeline(
    transcript: str, client: GenerationClient, config: PipelineConfig
) -> MinutesBundle:
    """Run the title, minutes and translation stages in order.

    Title and minutes both read the transcript; translation reads the
    minutes.  The first failing stage raises :class:`GenerationError` and the
    remaining stages are skipped.
    """
    title = await create_meeting_title(transcript, client, config)
    logger.info("Generated title %r", title.title)
    minutes = await create_meeting_minutes(transcript, client, config)
    translated = await translate_minutes(minutes, client, config)
    return MinutesBundle(title=title, minutes=minutes, translated=translated)
