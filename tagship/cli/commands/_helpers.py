"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from tagship.core.errors import ErrorCode
from tagship.output.console import Style
from tagship.output.errors import pipeline_error_exit_code, print_pipeline_error
from tagship.release.publisher import Failed, NoOp, Published, PublishOutcome

if TYPE_CHECKING:
    from tagship.output.console import ConsoleProtocol


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)


def outcome_exit_code(outcome: PublishOutcome) -> int:
    match outcome:
        case Failed(error=error):
            return pipeline_error_exit_code(error)
        case NoOp() | Published():
            return int(ErrorCode.OK)


def report_outcome(outcome: PublishOutcome, console: ConsoleProtocol) -> int:
    """Print the terminal outcome of a run and return its exit code."""
    console.header("result")
    match outcome:
        case NoOp(reason=reason):
            console.info(f"nothing to release: {reason}")
        case Published(tag=tag, artifact_location=location, conflict=conflict):
            note = " (already present)" if conflict else ""
            console.success(f"published {tag.name}{note}")
            console.print(location, Style.DIM)
        case Failed(stage=stage, error=error):
            print_pipeline_error(error, console, stage=stage)
    return outcome_exit_code(outcome)
