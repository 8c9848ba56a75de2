"""Wires the pipeline components from configuration.

Everything a run depends on (repository path, remote, credentials, target)
is passed in explicitly; nothing is read from the current directory.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from tagship.core.config import Config
from tagship.core.result import Err, Ok, Result
from tagship.git.repository import Repository
from tagship.output.console import ConsoleProtocol
from tagship.release.builder import ArtifactBuilder, CargoToolchain
from tagship.release.errors import InvalidVersion
from tagship.release.gate import GatePolicy, ReleaseGate
from tagship.release.planner import VersionPlanner
from tagship.release.publisher import ReleasePublisher
from tagship.release.semver import parse_version
from tagship.release.store import GitHubReleaseStore
from tagship.release.tagging import TagManager, TagNamePolicy


@dataclass(frozen=True, slots=True)
class ReleaseServices:
    repo: Repository
    tags: TagManager
    publisher: ReleasePublisher


def build_services(
    *,
    repo_root: Path,
    config: Config,
    console: ConsoleProtocol,
    env: Mapping[str, str],
    target: str | None = None,
) -> Result[ReleaseServices, InvalidVersion]:
    initial = parse_version(config.version.initial)
    if initial is None:
        return Err(InvalidVersion(raw=config.version.initial))

    repo = Repository(repo_root, remote=config.tag.remote)
    policy = TagNamePolicy(prefix=config.tag.prefix, require_prefix=config.tag.require_prefix)
    tags = TagManager(repo=repo, policy=policy, console=console)

    builder = ArtifactBuilder(
        repo=repo,
        toolchain=CargoToolchain(binary=config.build.binary),
        manifest=config.build.manifest,
        console=console,
    )
    store = GitHubReleaseStore(
        repo_root=repo_root,
        repo_slug=config.upload.repo,
        token=env.get("GH_TOKEN") or env.get("GITHUB_TOKEN"),
        console=console,
    )
    gate = ReleaseGate(
        GatePolicy(
            allowed_branches=config.gate.allowed_branches,
            enabled=config.gate.enabled,
        ),
        branch=repo.current_branch(),
    )

    publisher = ReleasePublisher(
        history=repo,
        tag_lookup=repo,
        planner=VersionPlanner(initial=initial, prefix=config.tag.prefix),
        gate=gate,
        tags=tags,
        builder=builder,
        store=store,
        target=target or config.build.target,
        on_conflict=config.upload.on_conflict,
        console=console,
    )
    return Ok(ReleaseServices(repo=repo, tags=tags, publisher=publisher))
