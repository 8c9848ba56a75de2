from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import pytest

from tagship.core.result import Err, Ok, Result
from tagship.output.console import MockConsole
from tagship.platform.process import ProcessError
from tagship.release import builder as builder_mod
from tagship.release.builder import (
    BUILD_REF_ENV,
    RELEASE_TAG_ENV,
    ArtifactBuilder,
    CargoToolchain,
    asset_name,
)
from tagship.release.errors import BuildFailed
from tagship.release.model import ReleaseTag
from tagship.release.semver import Version
from tagship.test.release.fakes import FakeRepo, FakeToolchain, sha

TARGET = "x86_64-unknown-linux-gnu"
TAG = ReleaseTag(name="v1.2.4", version=Version(1, 2, 4))


def _builder(tmp_path: Path, repo: FakeRepo, toolchain: FakeToolchain) -> ArtifactBuilder:
    scratch = tmp_path / "scratch"
    scratch.mkdir(exist_ok=True)
    return ArtifactBuilder(
        repo=repo,
        toolchain=toolchain,
        manifest="Cargo.toml",
        console=MockConsole(),
        scratch_root=scratch,
    )


def test_build_uses_the_tagged_commit_not_head(tmp_path: Path) -> None:
    repo = FakeRepo(tags={"v1.2.4": sha(7)}, head=sha(8))
    toolchain = FakeToolchain()
    builder = _builder(tmp_path, repo, toolchain)

    result = builder.build(TARGET, TAG)

    assert isinstance(result, Ok)
    artifact = result.value
    assert artifact.build_ref == sha(7)
    assert artifact.tag == TAG
    assert artifact.target == TARGET
    assert artifact.name == f"app-v1.2.4-{TARGET}"
    assert artifact.path.read_text(encoding="utf-8") == sha(7)
    assert toolchain.calls[0].build_ref == sha(7)
    assert toolchain.calls[0].manifest_path.name == "Cargo.toml"


def test_worktree_is_removed_after_build(tmp_path: Path) -> None:
    repo = FakeRepo(tags={"v1.2.4": sha(7)})
    toolchain = FakeToolchain()
    builder = _builder(tmp_path, repo, toolchain)

    result = builder.build(TARGET, TAG)

    assert isinstance(result, Ok)
    assert repo.worktrees == {}
    assert not toolchain.calls[0].manifest_path.parent.exists()
    assert result.value.path.is_file()

    builder.discard(result.value)
    assert list((tmp_path / "scratch").iterdir()) == []


def test_toolchain_failure_is_build_failed(tmp_path: Path) -> None:
    repo = FakeRepo(tags={"v1.2.4": sha(7)})
    builder = _builder(tmp_path, repo, FakeToolchain(exit_code=101))

    result = builder.build(TARGET, TAG)

    assert isinstance(result, Err)
    assert isinstance(result.error, BuildFailed)
    assert result.error.returncode == 101
    assert "E0425" in result.error.detail
    assert repo.worktrees == {}
    assert list((tmp_path / "scratch").iterdir()) == []


def test_missing_output_is_build_failed(tmp_path: Path) -> None:
    repo = FakeRepo(tags={"v1.2.4": sha(7)})
    builder = _builder(tmp_path, repo, FakeToolchain(produce_output=False))

    result = builder.build(TARGET, TAG)

    assert isinstance(result, Err)
    assert "output not found" in result.error.detail


def test_unknown_tag_is_build_failed(tmp_path: Path) -> None:
    repo = FakeRepo()
    toolchain = FakeToolchain()
    builder = _builder(tmp_path, repo, toolchain)

    result = builder.build(TARGET, TAG)

    assert isinstance(result, Err)
    assert toolchain.calls == []


@pytest.mark.parametrize(
    ("binary", "target", "expected"),
    [
        ("app", TARGET, f"app-v1.2.4-{TARGET}"),
        ("app.exe", "x86_64-pc-windows-msvc", "app-v1.2.4-x86_64-pc-windows-msvc.exe"),
    ],
)
def test_asset_name(binary: str, target: str, expected: str) -> None:
    assert asset_name(binary, TAG, target) == expected


def test_cargo_toolchain_command(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    seen: dict[str, object] = {}

    def fake_run(
        cmd: list[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        seen["cmd"] = cmd
        seen["cwd"] = cwd
        seen["env"] = dict(env or {})
        return Ok("")

    monkeypatch.setattr(builder_mod, "run_process", fake_run)

    manifest = tmp_path / "Cargo.toml"
    result = CargoToolchain(binary="app").invoke_build(
        manifest, TARGET, {BUILD_REF_ENV: sha(1), RELEASE_TAG_ENV: "v1.2.4"}
    )

    assert result.exit_code == 0
    assert result.artifact_path == tmp_path / "target" / TARGET / "release" / "app"
    cmd = seen["cmd"]
    assert isinstance(cmd, list)
    assert cmd[:4] == ["cargo", "build", "--release", "--locked"]
    assert ["--target", TARGET] == cmd[cmd.index("--target") : cmd.index("--target") + 2]
    assert ["--bin", "app"] == cmd[-2:]
    env = seen["env"]
    assert isinstance(env, dict)
    assert env["CARGO_TARGET_DIR"] == str(tmp_path / "target")
    assert env[BUILD_REF_ENV] == sha(1)


def test_cargo_toolchain_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(
        cmd: list[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=101,
                stdout="",
                stderr="   Compiling app\nerror: could not compile `app`\n",
            )
        )

    monkeypatch.setattr(builder_mod, "run_process", fake_run)

    result = CargoToolchain(binary="app").invoke_build(tmp_path / "Cargo.toml", TARGET, {})

    assert result.exit_code == 101
    assert result.artifact_path is None
    assert result.detail == "error: could not compile `app`"


def test_windows_target_appends_exe(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(builder_mod, "run_process", lambda *a, **k: Ok(""))

    result = CargoToolchain(binary="app").invoke_build(
        tmp_path / "Cargo.toml", "x86_64-pc-windows-msvc", {}
    )

    assert result.artifact_path is not None
    assert result.artifact_path.name == "app.exe"
