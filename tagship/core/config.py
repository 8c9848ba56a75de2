"""Typed configuration loading and access.

This module provides dataclasses for the ``tagship.toml`` structure. Every
field has a default so a repository without a config file still gets a
working (cargo + GitHub) pipeline.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_raw_str,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "BuildConfig",
    "Config",
    "ConfigError",
    "ConflictPolicy",
    "GateConfig",
    "TagConfig",
    "UploadConfig",
    "VersionConfig",
    "CONFIG_FILE_NAME",
    "DEFAULT_TARGET",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "tagship.toml"

DEFAULT_TARGET = "x86_64-unknown-linux-gnu"
DEFAULT_INITIAL_VERSION = "0.0.0"
DEFAULT_REMOTE = "origin"

# What to do when the release store already holds an asset for the tag.
ConflictPolicy = Literal["succeed", "fail"]
_CONFLICT_POLICIES: frozenset[str] = frozenset({"succeed", "fail"})


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class TagConfig:
    """Tag naming.

    ``require_prefix`` is off by default: tags are bare versions ("1.2.3")
    until the project switches to a "v" prefix.
    """

    prefix: str = ""
    require_prefix: bool = False
    remote: str = DEFAULT_REMOTE


@dataclass(frozen=True, slots=True)
class VersionConfig:
    initial: str = DEFAULT_INITIAL_VERSION


@dataclass(frozen=True, slots=True)
class GateConfig:
    """Release policy layered on top of the planner decision."""

    allowed_branches: tuple[str, ...] = ()
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class BuildConfig:
    manifest: str = "Cargo.toml"
    binary: str = "app"
    target: str = DEFAULT_TARGET


@dataclass(frozen=True, slots=True)
class UploadConfig:
    # owner/name; None means "infer from the git remote" (gh does this).
    repo: str | None = None
    on_conflict: ConflictPolicy = "succeed"


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    tag: TagConfig = field(default_factory=TagConfig)
    version: VersionConfig = field(default_factory=VersionConfig)
    gate: GateConfig = field(default_factory=GateConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: On values that have no sensible fallback.
        """
        tag: StrDict = get_table(data, "tag") or {}
        version: StrDict = get_table(data, "version") or {}
        gate: StrDict = get_table(data, "gate") or {}
        build: StrDict = get_table(data, "build") or {}
        upload: StrDict = get_table(data, "upload") or {}

        on_conflict = get_str(upload, "on_conflict") or "succeed"
        if on_conflict not in _CONFLICT_POLICIES:
            raise ValueError(
                f"upload.on_conflict must be one of {sorted(_CONFLICT_POLICIES)}, "
                f"got {on_conflict!r}"
            )

        prefix = get_raw_str(tag, "prefix")
        if prefix is not None and prefix != prefix.strip():
            raise ValueError(f"tag.prefix must not contain surrounding whitespace: {prefix!r}")

        return cls(
            tag=TagConfig(
                prefix=prefix or "",
                require_prefix=bool(get_bool(tag, "require_prefix")),
                remote=get_str(tag, "remote") or DEFAULT_REMOTE,
            ),
            version=VersionConfig(
                initial=get_str(version, "initial") or DEFAULT_INITIAL_VERSION,
            ),
            gate=GateConfig(
                allowed_branches=get_str_list(gate, "allowed_branches") or (),
                enabled=get_bool(gate, "enabled") is not False,
            ),
            build=BuildConfig(
                manifest=get_str(build, "manifest") or "Cargo.toml",
                binary=get_str(build, "binary") or "app",
                target=get_str(build, "target") or DEFAULT_TARGET,
            ),
            upload=UploadConfig(
                repo=get_str(upload, "repo"),
                on_conflict="fail" if on_conflict == "fail" else "succeed",
            ),
        )

    def with_env(self, env: Mapping[str, str]) -> Config:
        """Apply environment overrides (``TAGSHIP_TARGET``)."""
        target = env.get("TAGSHIP_TARGET", "").strip()
        if not target:
            return self
        return replace(self, build=replace(self.build, target=target))


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Read ``path`` as a TOML document whose root is a table."""
    import tomllib

    try:
        with path.open("rb") as fh:
            raw: object = tomllib.load(fh)
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML in {path.name}: {e}", path=path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(ConfigError(f"Cannot read {path}: {e}", path=path))

    data = as_str_dict(raw)
    if data is None:
        return Err(ConfigError(f"{path.name}: top level must be a table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to tagship.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config, falling back to defaults only when the file is absent.

    A file that exists but does not parse is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
