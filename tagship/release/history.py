from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from tagship.core.result import Err, Ok, Result
from tagship.git.repository import GitError, LogEntry
from tagship.release.commits import change_type_trailer
from tagship.release.errors import HistoryUnavailable
from tagship.release.model import CommitRecord
from tagship.release.planner import PriorRelease, find_prior_release


class HistorySource(Protocol):
    def merged_tags(self, pattern: str = "*") -> Result[list[str], GitError]: ...

    def log_since(self, ref: str | None) -> Result[list[LogEntry], GitError]: ...


@dataclass(frozen=True, slots=True)
class History:
    prior: PriorRelease | None
    commits: tuple[CommitRecord, ...]


def to_commit_record(entry: LogEntry) -> CommitRecord:
    return CommitRecord(
        sha=entry.sha,
        message=entry.message,
        change_type=change_type_trailer(entry.message),
    )


def read_history(source: HistorySource, *, prefix: str) -> Result[History, HistoryUnavailable]:
    """Last release reachable from HEAD plus the commits made since.

    No matching tag means "never released": the whole history is returned.
    """
    tags = source.merged_tags(f"{prefix}*")
    if isinstance(tags, Err):
        return Err(HistoryUnavailable(detail=tags.error.message))

    prior = find_prior_release(tags.value, prefix=prefix)

    log = source.log_since(prior.tag if prior is not None else None)
    if isinstance(log, Err):
        return Err(HistoryUnavailable(detail=log.error.message))

    return Ok(History(prior=prior, commits=tuple(to_commit_record(e) for e in log.value)))
