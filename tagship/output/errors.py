"""Error presentation utilities.

Stage-qualified messages and exit-code mapping for pipeline outcomes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tagship.core.errors import ErrorCode
from tagship.output.console import Style
from tagship.release.errors import (
    BuildFailed,
    HistoryUnavailable,
    InvalidTagName,
    InvalidVersion,
    PipelineError,
    TagAlreadyExists,
    TagCheckFailed,
    TagCreateFailed,
    TagNotFound,
    TagPushFailed,
    UploadFailed,
)

if TYPE_CHECKING:
    from tagship.output.console import ConsoleProtocol

__all__ = ["pipeline_error_exit_code", "print_pipeline_error"]


def print_pipeline_error(
    error: PipelineError, console: ConsoleProtocol, *, stage: str | None = None
) -> None:
    """Print ``error: [stage] message`` plus the hint, if any."""
    prefix = f"[{stage}] " if stage else ""
    console.error(f"{prefix}{error.message}")
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def pipeline_error_exit_code(error: PipelineError) -> int:
    match error:
        case InvalidVersion() | InvalidTagName():
            return int(ErrorCode.USER_ERROR)
        case HistoryUnavailable() | TagNotFound() | TagCreateFailed():
            return int(ErrorCode.ENV_ERROR)
        case TagAlreadyExists():
            return int(ErrorCode.TAG_ERROR)
        case TagCheckFailed() | TagPushFailed() | UploadFailed():
            return int(ErrorCode.NETWORK_ERROR)
        case BuildFailed():
            return int(ErrorCode.BUILD_ERROR)
    # Fallback for exhaustiveness
    return int(ErrorCode.ENV_ERROR)
