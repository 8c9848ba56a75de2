from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from tagship.release.commits import classify, max_severity
from tagship.release.model import CommitRecord, ReleaseDecision, Severity
from tagship.release.notes import render_changelog
from tagship.release.semver import Version, parse_tag


@dataclass(frozen=True, slots=True)
class PriorRelease:
    tag: str
    version: Version


def find_prior_release(tags: Iterable[str], *, prefix: str) -> PriorRelease | None:
    """Highest version among ``tags``; names that do not parse are ignored."""
    best: PriorRelease | None = None
    for tag in tags:
        if prefix and not tag.startswith(prefix):
            continue
        v = parse_tag(tag, prefix)
        if v is None:
            continue
        if best is None or v > best.version:
            best = PriorRelease(tag=tag, version=v)
    return best


class VersionPlanner:
    """Computes the next version from the commits since the last release.

    Args:
        initial: Seed version used when no release tag exists yet.
        prefix: Tag prefix, used for the changelog title.
    """

    def __init__(self, *, initial: Version, prefix: str = "") -> None:
        self._initial = initial
        self._prefix = prefix

    def plan(
        self,
        commits: Sequence[CommitRecord],
        prior: Version | None,
        *,
        force: bool = False,
    ) -> ReleaseDecision:
        classified = tuple(classify(c) for c in commits)
        severity = max_severity(list(classified))
        base = prior if prior is not None else self._initial
        since = f"since {prior.to_tag(self._prefix)}" if prior is not None else "in history"

        if severity == Severity.NONE and force:
            severity = Severity.FIX
            reason_head = "forced release"
        else:
            reason_head = f"{severity.label} changes {since}"

        bump = severity.bump
        if bump is None:
            return ReleaseDecision(
                should_release=False,
                version=base,
                reason=f"no releasable changes {since} ({_count(len(commits))})",
                prior=prior,
                severity=severity,
                changelog=render_changelog(title=base.to_tag(self._prefix), commits=classified),
                commits=classified,
            )

        version = base.bump(bump)
        return ReleaseDecision(
            should_release=True,
            version=version,
            reason=f"{reason_head}: {base} -> {version}",
            prior=prior,
            severity=severity,
            changelog=render_changelog(title=version.to_tag(self._prefix), commits=classified),
            commits=classified,
        )


def _count(n: int) -> str:
    return "1 commit" if n == 1 else f"{n} commits"
