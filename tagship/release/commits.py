"""Conventional-commit classification.

Header grammar: ``type(scope)!: subject``. ``feat`` (or ``feature``) is a
feature, ``fix`` and ``perf`` are fixes. A ``breaking`` type, a ``!`` before
the colon or a ``BREAKING CHANGE:`` footer is breaking. Everything else
(chore, docs, ci, unprefixed...) is none.
"""

from __future__ import annotations

import re

from tagship.release.model import ChangeType, ClassifiedCommit, CommitRecord, Severity

_HEADER_RE = re.compile(
    r"^(?P<type>[A-Za-z]+)(?:\((?P<scope>[^()]*)\))?(?P<bang>!)?:\s*(?P<subject>.*)$"
)
_BREAKING_FOOTER_RE = re.compile(r"^BREAKING[ -]CHANGE:\s*\S", re.MULTILINE)
_CHANGE_TYPE_TRAILER_RE = re.compile(
    r"^Change-Type:\s*(?P<value>breaking|feature|fix|none)\s*$",
    re.MULTILINE | re.IGNORECASE,
)

_TYPE_SEVERITY: dict[str, Severity] = {
    "breaking": Severity.BREAKING,
    "feat": Severity.FEATURE,
    "feature": Severity.FEATURE,
    "fix": Severity.FIX,
    "perf": Severity.FIX,
}


def change_type_trailer(message: str) -> ChangeType | None:
    """Read an explicit ``Change-Type:`` trailer from a commit message."""
    m = _CHANGE_TYPE_TRAILER_RE.search(message)
    if m is None:
        return None
    value = m.group("value").lower()
    match value:
        case "breaking" | "feature" | "fix" | "none":
            return value
        case _:
            return None


def classify(commit: CommitRecord) -> ClassifiedCommit:
    subject = commit.subject
    header = _HEADER_RE.match(subject)
    summary = header.group("subject").strip() if header else subject
    summary = summary or subject

    if commit.change_type is not None:
        return ClassifiedCommit(commit, Severity.from_label(commit.change_type), summary)

    body = commit.message.strip().split("\n", 1)[1] if "\n" in commit.message.strip() else ""
    if _BREAKING_FOOTER_RE.search(body):
        return ClassifiedCommit(commit, Severity.BREAKING, summary)

    if header is None:
        return ClassifiedCommit(commit, Severity.NONE, summary)

    if header.group("bang"):
        return ClassifiedCommit(commit, Severity.BREAKING, summary)

    severity = _TYPE_SEVERITY.get(header.group("type").lower(), Severity.NONE)
    return ClassifiedCommit(commit, severity, summary)


def max_severity(classified: list[ClassifiedCommit]) -> Severity:
    # A ceiling, not a sum: ten fixes are still a patch release.
    return max((c.severity for c in classified), default=Severity.NONE)
