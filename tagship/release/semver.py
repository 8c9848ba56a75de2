from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Literal

ReleaseBump = Literal["major", "minor", "patch"]

_VERSION_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*))*))?$"
)


def _prerelease_key(label: str) -> tuple[tuple[int, int, str], ...]:
    # Numeric identifiers sort before alphanumeric ones, and numerically.
    out: list[tuple[int, int, str]] = []
    for ident in label.split("."):
        if ident.isdigit():
            out.append((0, int(ident), ""))
        else:
            out.append((1, 0, ident))
    return tuple(out)


@total_ordering
@dataclass(frozen=True, slots=True)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: str | None = None

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        return f"{core}-{self.prerelease}" if self.prerelease else core

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def _sort_key(self) -> tuple[int, int, int, int, tuple[tuple[int, int, str], ...]]:
        # A pre-release has lower precedence than the same release without one.
        if self.prerelease is None:
            return (self.major, self.minor, self.patch, 1, ())
        return (self.major, self.minor, self.patch, 0, _prerelease_key(self.prerelease))

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def to_tag(self, prefix: str = "") -> str:
        return f"{prefix}{self}"

    def bump(self, kind: ReleaseBump) -> "Version":
        match kind:
            case "major":
                return Version(self.major + 1, 0, 0)
            case "minor":
                return Version(self.major, self.minor + 1, 0)
            case "patch":
                return Version(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


def parse_version(text: str) -> Version | None:
    """Parse ``MAJOR.MINOR.PATCH[-LABEL]``; build metadata is not accepted."""
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return None
    return Version(int(m.group(1)), int(m.group(2)), int(m.group(3)), m.group(4))


def parse_tag(tag: str, prefix: str = "") -> Version | None:
    """Parse a release tag name, stripping ``prefix`` when present."""
    if prefix and tag.startswith(prefix):
        tag = tag[len(prefix) :]
    return parse_version(tag)
