"""Result type for side-channel operations (downloads and sends)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


class OutcomeStatus(StrEnum):
    """How a side-channel operation ended."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"  # no-op, e.g. missing bot credential
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome:
    """Outcome of a download or send, so callers can branch without reading logs."""

    status: OutcomeStatus
    detail: str = ""
    path: Path | None = None

    @classmethod
    def succeeded(cls, path: Path | None = None, detail: str = "") -> Outcome:
        return cls(OutcomeStatus.SUCCEEDED, detail, path)

    @classmethod
    def skipped(cls, detail: str) -> Outcome:
        return cls(OutcomeStatus.SKIPPED, detail)

    @classmethod
    def failed(cls, detail: str) -> Outcome:
        return cls(OutcomeStatus.FAILED, detail)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED
