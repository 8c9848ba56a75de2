"""Release artifact builds.

The build always runs in a detached worktree of the commit the release tag
points at, so a branch that moves on while a long build is running cannot
leak into the binary. The finished binary is copied out of the worktree into
a staging directory before the worktree is removed.
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from tagship.core.result import Err, Ok, Result
from tagship.git.repository import GitError
from tagship.output.console import ConsoleProtocol, Style
from tagship.platform.process import child_env
from tagship.platform.process import run as run_process
from tagship.release.errors import BuildFailed
from tagship.release.model import Artifact, ReleaseTag

BUILD_REF_ENV = "TAGSHIP_BUILD_REF"
RELEASE_TAG_ENV = "TAGSHIP_RELEASE_TAG"


@dataclass(frozen=True, slots=True)
class ToolchainResult:
    exit_code: int
    artifact_path: Path | None
    detail: str = ""


class Toolchain(Protocol):
    def invoke_build(
        self, manifest_path: Path, target: str, env: Mapping[str, str]
    ) -> ToolchainResult: ...


class WorktreeRepository(Protocol):
    def resolve_commit(self, ref: str) -> Result[str, GitError]: ...

    def add_worktree(self, path: Path, commit: str) -> Result[None, GitError]: ...

    def remove_worktree(self, path: Path) -> Result[None, GitError]: ...


class CargoToolchain:
    """``cargo build --release`` for one binary and one target triple."""

    def __init__(self, *, binary: str, timeout: float | None = None) -> None:
        self._binary = binary
        self._timeout = timeout

    def invoke_build(
        self, manifest_path: Path, target: str, env: Mapping[str, str]
    ) -> ToolchainResult:
        # Pin the target dir so the output location does not depend on
        # workspace layout or the caller's CARGO_TARGET_DIR.
        target_dir = manifest_path.parent / "target"
        build_env = {**env, "CARGO_TARGET_DIR": str(target_dir)}
        cmd = [
            "cargo",
            "build",
            "--release",
            "--locked",
            "--manifest-path",
            str(manifest_path),
            "--target",
            target,
            "--bin",
            self._binary,
        ]
        result = run_process(cmd, cwd=manifest_path.parent, env=build_env, timeout=self._timeout)
        if isinstance(result, Err):
            return ToolchainResult(
                exit_code=result.error.returncode,
                artifact_path=None,
                detail=result.error.detail(),
            )

        exe = f"{self._binary}.exe" if "windows" in target else self._binary
        return ToolchainResult(exit_code=0, artifact_path=target_dir / target / "release" / exe)


def asset_name(binary_name: str, tag: ReleaseTag, target: str) -> str:
    stem, dot, ext = binary_name.partition(".")
    suffix = f".{ext}" if dot else ""
    return f"{stem}-{tag.name}-{target}{suffix}"


class ArtifactBuilder:
    """Builds the release binary from the exact commit of a tag.

    Args:
        repo: Repository the tag lives in.
        toolchain: Build collaborator.
        manifest: Manifest path relative to the repository root.
        console: Progress output.
        env: Extra environment for the toolchain (credentials, caches).
        scratch_root: Parent directory for worktrees and staged artifacts.
    """

    def __init__(
        self,
        *,
        repo: WorktreeRepository,
        toolchain: Toolchain,
        manifest: str,
        console: ConsoleProtocol,
        env: Mapping[str, str] | None = None,
        scratch_root: Path | None = None,
    ) -> None:
        self._repo = repo
        self._toolchain = toolchain
        self._manifest = manifest
        self._console = console
        self._env = dict(env or {})
        self._scratch_root = scratch_root

    def build(self, target: str, source_ref: ReleaseTag) -> Result[Artifact, BuildFailed]:
        commit = self._repo.resolve_commit(source_ref.name)
        if isinstance(commit, Err):
            return Err(BuildFailed(target=target, detail=commit.error.message))
        sha = commit.value

        try:
            work_dir = Path(tempfile.mkdtemp(prefix="tagship-", dir=self._scratch_root))
        except OSError as e:
            return Err(BuildFailed(target=target, detail=f"cannot create scratch dir: {e}"))

        src_dir = work_dir / "src"
        self._console.print(f"git worktree add --detach {src_dir} {sha[:12]}", Style.DIM)
        added = self._repo.add_worktree(src_dir, sha)
        if isinstance(added, Err):
            shutil.rmtree(work_dir, ignore_errors=True)
            return Err(BuildFailed(target=target, detail=added.error.message))

        try:
            staged = self._build_in(src_dir, work_dir / "dist", target, source_ref, sha)
        finally:
            removed = self._repo.remove_worktree(src_dir)
            if isinstance(removed, Err):
                self._console.warning(removed.error.message)

        if isinstance(staged, Err):
            shutil.rmtree(work_dir, ignore_errors=True)
            return staged

        return Ok(Artifact(path=staged.value, target=target, tag=source_ref, build_ref=sha))

    def discard(self, artifact: Artifact) -> None:
        """Delete the staged artifact and its scratch directory."""
        shutil.rmtree(artifact.path.parent.parent, ignore_errors=True)

    def _build_in(
        self,
        src_dir: Path,
        dist_dir: Path,
        target: str,
        tag: ReleaseTag,
        sha: str,
    ) -> Result[Path, BuildFailed]:
        manifest_path = src_dir / self._manifest
        env = child_env(
            {
                **self._env,
                BUILD_REF_ENV: sha,
                RELEASE_TAG_ENV: tag.name,
            }
        )

        self._console.print(f"build {manifest_path.name} --target {target}", Style.DIM)
        result = self._toolchain.invoke_build(manifest_path, target, env)
        if result.exit_code != 0:
            return Err(
                BuildFailed(
                    target=target,
                    detail=result.detail or "toolchain reported failure",
                    returncode=result.exit_code,
                )
            )

        produced = result.artifact_path
        if produced is None or not produced.is_file():
            return Err(BuildFailed(target=target, detail=f"output not found: {produced}"))

        try:
            dist_dir.mkdir(parents=True, exist_ok=True)
            staged = dist_dir / asset_name(produced.name, tag, target)
            shutil.copy2(produced, staged)
        except OSError as e:
            return Err(BuildFailed(target=target, detail=f"failed to stage artifact: {e}"))

        return Ok(staged)
