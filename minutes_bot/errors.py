"""Error taxonomy for pipeline runs.

Every ``PipelineError`` is terminal for the run that raised it: the run
aborts, cleanup executes, and the per-run boundary in
:mod:`minutes_bot.pipeline` logs the failure.
"""

from __future__ import annotations

from pathlib import Path


class ServiceCallError(Exception):
    """A third-party HTTP service answered with a non-2xx status.

    Raised by the thin service clients; the pipeline wraps it into the
    stage-specific error below.

    Attributes:
        status_code: HTTP status, or ``None`` for transport failures.
        body: Response body text (may be empty).
    """

    def __init__(self, service: str, status_code: int | None, body: str = "") -> None:
        self.service = service
        self.status_code = status_code
        self.body = body
        super().__init__(f"{service} failed: {status_code} {body}".rstrip())


class PipelineError(Exception):
    """Base class for run-terminating failures."""

    stage = "pipeline"


class DownloadError(PipelineError):
    """Fetching the inbound audio file failed."""

    stage = "download"


class SegmentationError(PipelineError):
    """ffmpeg could not split the audio source.

    Attributes:
        diagnostic: The tool's stderr output.
        work_dir: Temporary directory created for the chunks, if any.  The
            caller owns it and must remove it.
    """

    stage = "segmentation"

    def __init__(self, diagnostic: str, work_dir: Path | None = None) -> None:
        self.diagnostic = diagnostic
        self.work_dir = work_dir
        super().__init__(f"Audio segmentation failed: {diagnostic.strip()}")


class TranscriptionError(PipelineError):
    """A chunk transcription call failed."""

    stage = "transcription"

    def __init__(
        self,
        chunk_index: int,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        self.chunk_index = chunk_index
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"Transcription failed for chunk {chunk_index}: {status_code} {body}".rstrip()
        )


class GenerationError(PipelineError):
    """A title/minutes/translation call failed."""

    def __init__(self, stage: str, status_code: int | None = None, body: str = "") -> None:
        self.stage = stage
        self.status_code = status_code
        self.body = body
        super().__init__(f"{stage.capitalize()} generation failed: {status_code} {body}".rstrip())


class DeliveryError(PipelineError):
    """Sending an artifact or message back to the chat failed."""

    stage = "delivery"

    def __init__(self, method: str, status_code: int | None, body: str = "") -> None:
        self.method = method
        self.status_code = status_code
        self.body = body
        super().__init__(f"{method} failed: {status_code} {body}".rstrip())
