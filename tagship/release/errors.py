"""Error taxonomy of the release pipeline.

Every error carries a ``message`` and an optional ``hint`` so it can be
rendered without knowing its type; ``tagship.output.errors`` maps each type
onto an exit code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class HistoryUnavailable:
    """Commit history or tags could not be read. Re-running later may help."""

    detail: str

    @property
    def message(self) -> str:
        return f"commit history unavailable: {self.detail}"

    @property
    def hint(self) -> str | None:
        return "Check the repository checkout and re-run the release."


@dataclass(frozen=True, slots=True)
class InvalidVersion:
    raw: str

    @property
    def message(self) -> str:
        return f"invalid version: {self.raw!r}"

    @property
    def hint(self) -> str | None:
        return "Expected: MAJOR.MINOR.PATCH[-LABEL]"


@dataclass(frozen=True, slots=True)
class InvalidTagName:
    name: str
    reason: str

    @property
    def message(self) -> str:
        return f"invalid tag name {self.name!r}: {self.reason}"

    @property
    def hint(self) -> str | None:
        return None


@dataclass(frozen=True, slots=True)
class TagAlreadyExists:
    """Permanent for this version; never retried automatically.

    ``stale_local`` is set when this checkout also holds a local tag of the
    same name that may point at a different commit than the remote one.
    """

    name: str
    where: Literal["local", "remote"]
    stale_local: bool = False

    @property
    def message(self) -> str:
        return f"tag already exists ({self.where}): {self.name}"

    @property
    def hint(self) -> str | None:
        if self.where == "local":
            return f"If the tag never reached the remote, run: tagship push-tag {self.name}"
        if self.stale_local:
            return (
                "Another run already released this version. Replace the local tag "
                f"{self.name} with the published one: git fetch --tags --force"
            )
        return "Another run already released this version."


@dataclass(frozen=True, slots=True)
class TagNotFound:
    name: str

    @property
    def message(self) -> str:
        return f"tag not found: {self.name}"

    @property
    def hint(self) -> str | None:
        return "Fetch tags (git fetch --tags) or create it with: tagship tag <VERSION>"


@dataclass(frozen=True, slots=True)
class TagCheckFailed:
    """Tag existence could not be determined; nothing was created."""

    name: str
    detail: str

    @property
    def message(self) -> str:
        return f"failed to check tag {self.name}: {self.detail}"

    @property
    def hint(self) -> str | None:
        return "No tag was created; re-running is safe."


@dataclass(frozen=True, slots=True)
class TagCreateFailed:
    name: str
    detail: str

    @property
    def message(self) -> str:
        return f"failed to create tag {self.name}: {self.detail}"

    @property
    def hint(self) -> str | None:
        return None


@dataclass(frozen=True, slots=True)
class TagPushFailed:
    """The tag exists locally but not on the remote.

    Retrying the push alone is safe; retrying creation is not.
    """

    name: str
    detail: str

    @property
    def message(self) -> str:
        return f"failed to push tag {self.name}: {self.detail}"

    @property
    def hint(self) -> str | None:
        return f"Retry the push only: tagship push-tag {self.name}"


@dataclass(frozen=True, slots=True)
class BuildFailed:
    """Deterministic for a given source; not retried automatically."""

    target: str
    detail: str
    returncode: int | None = None

    @property
    def message(self) -> str:
        code = f" (exit {self.returncode})" if self.returncode is not None else ""
        return f"build failed for {self.target}{code}: {self.detail}"

    @property
    def hint(self) -> str | None:
        return "Fix the build, then run: tagship resume <TAG>"


@dataclass(frozen=True, slots=True)
class UploadFailed:
    tag: str
    detail: str
    conflict: bool = False

    @property
    def message(self) -> str:
        if self.conflict:
            return f"asset already published for {self.tag}: {self.detail}"
        return f"upload failed for {self.tag}: {self.detail}"

    @property
    def hint(self) -> str | None:
        if self.conflict:
            return "Set upload.on_conflict = \"succeed\" to treat re-uploads as done."
        return f"The tag is in place; retry with: tagship resume {self.tag}"


TagError = (
    InvalidVersion
    | InvalidTagName
    | TagAlreadyExists
    | TagNotFound
    | TagCheckFailed
    | TagCreateFailed
    | TagPushFailed
)

PipelineError = HistoryUnavailable | TagError | BuildFailed | UploadFailed
