"""Data models for generated meeting documents."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MeetingTitle:
    """Human-readable title and the filesystem-safe slug derived from it."""

    title: str
    slug: str


@dataclass(frozen=True)
class MinutesBundle:
    """Resolved output of the title, minutes and translation stages."""

    title: MeetingTitle
    minutes: str  # source language
    translated: str  # delivery language
