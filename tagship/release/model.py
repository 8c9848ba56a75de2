from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Literal

from tagship.release.semver import ReleaseBump, Version

ChangeType = Literal["breaking", "feature", "fix", "none"]
Stage = Literal["plan", "gate", "tag", "build", "upload"]
UploadStatus = Literal["uploaded", "conflict"]


class Severity(IntEnum):
    """Impact of a change; the release bump is the maximum over all commits."""

    NONE = 0
    FIX = 1
    FEATURE = 2
    BREAKING = 3

    @property
    def label(self) -> ChangeType:
        match self:
            case Severity.BREAKING:
                return "breaking"
            case Severity.FEATURE:
                return "feature"
            case Severity.FIX:
                return "fix"
            case _:
                return "none"

    @property
    def bump(self) -> ReleaseBump | None:
        match self:
            case Severity.BREAKING:
                return "major"
            case Severity.FEATURE:
                return "minor"
            case Severity.FIX:
                return "patch"
            case _:
                return None

    @classmethod
    def from_label(cls, label: ChangeType) -> Severity:
        return {
            "breaking": cls.BREAKING,
            "feature": cls.FEATURE,
            "fix": cls.FIX,
            "none": cls.NONE,
        }[label]


@dataclass(frozen=True, slots=True)
class CommitRecord:
    sha: str
    message: str
    # Structured annotation (commit trailer); overrides message parsing.
    change_type: ChangeType | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:8]

    @property
    def subject(self) -> str:
        lines = self.message.strip().splitlines()
        return lines[0].strip() if lines else ""


@dataclass(frozen=True, slots=True)
class ClassifiedCommit:
    commit: CommitRecord
    severity: Severity
    # Subject with the conventional-commit header removed.
    summary: str


@dataclass(frozen=True, slots=True)
class ReleaseDecision:
    should_release: bool
    version: Version
    reason: str
    prior: Version | None
    severity: Severity
    changelog: str
    commits: tuple[ClassifiedCommit, ...] = ()


@dataclass(frozen=True, slots=True)
class ReleaseTag:
    name: str
    version: Version

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Artifact:
    """Built binary staged for upload.

    ``build_ref`` is the commit the binary was built from; it always equals
    the commit the tag points at.
    """

    path: Path
    target: str
    tag: ReleaseTag
    build_ref: str

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class UploadReceipt:
    status: UploadStatus
    location: str
