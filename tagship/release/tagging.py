"""Release tag creation.

A tag is created in two phases: an annotated tag object locally, then a push
of that single tag to the remote. Existence (local or remote) is the only
guard against releasing the same version twice, including two runs racing
each other, so it is checked before anything is created and the push
rejection of a racing run is reported as ``TagAlreadyExists`` too.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from tagship.core.result import Err, Ok, Result
from tagship.git.repository import GitError
from tagship.output.console import ConsoleProtocol, Style
from tagship.release.errors import (
    InvalidTagName,
    InvalidVersion,
    TagAlreadyExists,
    TagCheckFailed,
    TagCreateFailed,
    TagError,
    TagNotFound,
    TagPushFailed,
)
from tagship.release.model import ReleaseTag
from tagship.release.semver import Version, parse_tag

_FORBIDDEN_REF_CHARS_RE = re.compile(r"[\x00-\x20\x7f~^:?*\[\\]")
_PUSH_REJECTED_MARKERS = ("already exists", "[rejected]", "would clobber existing tag")


class TagRepository(Protocol):
    def tag_exists_local(self, name: str) -> Result[bool, GitError]: ...

    def tag_exists_remote(self, name: str) -> Result[bool, GitError]: ...

    def create_annotated_tag(
        self, name: str, message: str, commit: str = "HEAD"
    ) -> Result[None, GitError]: ...

    def push_tag(self, name: str) -> Result[str, GitError]: ...


def _ref_name_problem(name: str) -> str | None:
    if not name:
        return "empty name"
    if _FORBIDDEN_REF_CHARS_RE.search(name):
        return "contains whitespace or one of ~^:?*[\\"
    if ".." in name or "@{" in name or "//" in name:
        return "contains '..', '@{' or '//'"
    if name.startswith(("-", ".", "/")) or name.endswith((".", "/", ".lock")) or name == "@":
        return "not a valid git ref name"
    return None


@dataclass(frozen=True, slots=True)
class TagNamePolicy:
    """How tag names are derived from versions and validated.

    Tags are ``prefix + version``. ``require_prefix`` makes user-supplied
    version strings (``tagship tag``) carry the prefix explicitly; it is off
    by default, so "1.2.3" and "v1.2.3" are both accepted with prefix "v".
    """

    prefix: str = ""
    require_prefix: bool = False

    def tag_for(self, version: Version) -> ReleaseTag:
        return ReleaseTag(name=version.to_tag(self.prefix), version=version)

    def validate(self, name: str) -> Result[None, InvalidTagName]:
        if self.require_prefix and self.prefix and not name.startswith(self.prefix):
            return Err(InvalidTagName(name=name, reason=f"must start with {self.prefix!r}"))
        problem = _ref_name_problem(name)
        if problem is not None:
            return Err(InvalidTagName(name=name, reason=problem))
        return Ok(None)

    def parse(self, raw: str) -> Result[ReleaseTag, InvalidTagName | InvalidVersion]:
        """Turn a fully-qualified version string into its canonical tag."""
        raw = raw.strip()
        valid = self.validate(raw)
        if isinstance(valid, Err):
            return valid
        version = parse_tag(raw, self.prefix)
        if version is None:
            return Err(InvalidVersion(raw=raw))
        return Ok(self.tag_for(version))


class TagManager:
    """Creates and pushes immutable annotated release tags."""

    def __init__(
        self,
        *,
        repo: TagRepository,
        policy: TagNamePolicy,
        console: ConsoleProtocol,
    ) -> None:
        self._repo = repo
        self._policy = policy
        self._console = console

    @property
    def policy(self) -> TagNamePolicy:
        return self._policy

    def ensure_absent(self, name: str) -> Result[None, TagError]:
        """Fail when ``name`` exists locally or on the remote.

        The remote wins: a local tag that the remote also holds is reported
        as a remote tag, since it may be a leftover from a lost push race.
        """
        local = self._repo.tag_exists_local(name)
        if isinstance(local, Err):
            return Err(TagCheckFailed(name=name, detail=local.error.message))

        remote = self._repo.tag_exists_remote(name)
        if isinstance(remote, Ok) and remote.value:
            return Err(TagAlreadyExists(name=name, where="remote", stale_local=local.value))
        if local.value:
            return Err(TagAlreadyExists(name=name, where="local"))
        if isinstance(remote, Err):
            return Err(TagCheckFailed(name=name, detail=remote.error.message))

        return Ok(None)

    def create_tag(
        self,
        version: Version,
        *,
        message: str | None = None,
        commit: str = "HEAD",
    ) -> Result[ReleaseTag, TagError]:
        """Create ``prefix+version`` locally, then push it.

        A push failure after local creation returns ``TagPushFailed``; the
        caller must only ever retry ``push_tag`` after that.
        """
        tag = self._policy.tag_for(version)
        return self.create(tag, message=message, commit=commit)

    def create(
        self,
        tag: ReleaseTag,
        *,
        message: str | None = None,
        commit: str = "HEAD",
    ) -> Result[ReleaseTag, TagError]:
        valid = self._policy.validate(tag.name)
        if isinstance(valid, Err):
            return valid

        absent = self.ensure_absent(tag.name)
        if isinstance(absent, Err):
            return absent

        self._console.print(f"git tag -a {tag.name} {commit}", Style.DIM)
        created = self._repo.create_annotated_tag(
            tag.name, message or f"Release {tag.name}", commit
        )
        if isinstance(created, Err):
            if "already exists" in created.error.message:
                return Err(TagAlreadyExists(name=tag.name, where="local"))
            return Err(TagCreateFailed(name=tag.name, detail=created.error.message))

        pushed = self.push_tag(tag.name)
        if isinstance(pushed, Err):
            return pushed

        return Ok(tag)

    def push_tag(self, name: str) -> Result[None, TagError]:
        """Push an existing local tag; repeating it for an identical tag is a no-op."""
        local = self._repo.tag_exists_local(name)
        if isinstance(local, Err):
            return Err(TagCheckFailed(name=name, detail=local.error.message))
        if not local.value:
            return Err(TagNotFound(name=name))

        self._console.print(f"git push {name}", Style.DIM)
        result = self._repo.push_tag(name)
        if isinstance(result, Err):
            text = result.error.message.lower()
            if any(marker in text for marker in _PUSH_REJECTED_MARKERS):
                return Err(TagAlreadyExists(name=name, where="remote", stale_local=True))
            return Err(TagPushFailed(name=name, detail=result.error.message))

        return Ok(None)
