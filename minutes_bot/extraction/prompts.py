"""System instructions for the title, minutes and translation stages."""

from __future__ import annotations

# Fixed section order of every minutes document.
MINUTES_SECTIONS: tuple[str, ...] = (
    "Context",
    "Summary",
    "Process Flow",
    "Decisions",
    "Action Items",
    "Open Questions",
)

EMPTY_SECTION_PLACEHOLDER = "None"
UNCLEAR_MARKER = "[unclear]"

LANGUAGE_NAMES: dict[str, str] = {
    "ro": "Romanian",
    "en": "English",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
}

_SECTION_LIST = "\n".join(f"## {name}" for name in MINUTES_SECTIONS)


def language_name(code: str) -> str:
    """Human-readable language name for a short ISO code; other values pass through."""
    return LANGUAGE_NAMES.get(code.lower(), code)


def title_prompt(language: str) -> str:
    return (
        f"Generate a short, descriptive meeting title in {language} (3-10 words). "
        "Use plain ASCII characters only: no diacritics, no typographic quotes or "
        "dashes; use only straight quotes (\" ') and the hyphen (-). "
        "Return only the title, no quotes or extra text."
    )


def minutes_prompt(language: str) -> str:
    return (
        "You are a meeting minutes assistant. Produce crisp, accurate minutes "
        f"in {language}, written in that language.\n\n"
        "Use exactly these Markdown headings, copied verbatim, in this order, and no others:\n"
        f"{_SECTION_LIST}\n\n"
        "Rules:\n"
        "- Context: who met and why, in 1-3 sentences.\n"
        "- Summary: 3-5 bullet points.\n"
        "- Process Flow: the discussion in the order it happened, as a numbered list.\n"
        "- Decisions: only explicit decisions, as bullet points.\n"
        "- Action Items: a numbered list with owners and deadlines if mentioned.\n"
        "- Open Questions: open issues only.\n"
        f"- Every section is mandatory. If a section has no content write '{EMPTY_SECTION_PLACEHOLDER}'.\n"
        f"- If a statement is unclear or inaudible, mark it {UNCLEAR_MARKER} instead of guessing.\n"
        "- Do not invent names, numbers or dates that are not in the transcript."
    )


def translation_prompt(language: str) -> str:
    return (
        f"Translate the following meeting minutes into {language}.\n\n"
        "Rules:\n"
        "- Translate faithfully. Do not summarise, shorten, expand or reinterpret.\n"
        "- Keep every heading, bullet, numbering and line break exactly as in the input.\n"
        "- Keep the same sections in the same order; do not add or remove sections.\n"
        "- Copy the section headings (lines starting with ##) exactly; do not translate them.\n"
        f"- Keep markers such as {UNCLEAR_MARKER} unchanged.\n"
        "- Return only the translated minutes."
    )


def missing_sections(minutes: str) -> list[str]:
    """Return the required section headings absent from ``minutes``, in order."""
    headings = {
        line.strip().lstrip("#").strip().lower()
        for line in minutes.splitlines()
        if line.lstrip().startswith("#")
    }
    return [name for name in MINUTES_SECTIONS if name.lower() not in headings]


def _join_block(lines: list[str]) -> str:
    return "\n".join(lines).strip("\n").rstrip()


def normalize_minutes(minutes: str) -> str:
    """Rebuild ``minutes`` with every required section, in the fixed order.

    Required headings are matched at any level and in any case and rewritten
    as ``## <Section>``.  A missing or empty section gets the placeholder.
    Other lines, including unknown headings, stay in the section they appear
    in; text before the first required heading is kept on top.  Blank input
    yields ``""``.
    """
    if not minutes.strip():
        return ""

    canonical = {name.lower(): name for name in MINUTES_SECTIONS}
    preamble: list[str] = []
    bodies: dict[str, list[str]] = {name: [] for name in MINUTES_SECTIONS}
    current = preamble
    for line in minutes.splitlines():
        stripped = line.strip()
        name = canonical.get(stripped.lstrip("#").strip().lower()) if stripped.startswith("#") else None
        if name is None:
            current.append(line)
        else:
            current = bodies[name]

    blocks = []
    intro = _join_block(preamble)
    if intro.strip():
        blocks.append(intro)
    for name in MINUTES_SECTIONS:
        body = _join_block(bodies[name])
        blocks.append(f"## {name}\n{body if body.strip() else EMPTY_SECTION_PLACEHOLDER}")
    return "\n\n".join(blocks)
