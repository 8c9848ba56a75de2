from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

import tagship.cli.commands.release_cmd as release_cmd
from tagship import __version__
from tagship.cli.app import app
from tagship.cli.context import CLIContext, CLIOptions
from tagship.core.config import Config
from tagship.core.errors import ErrorCode
from tagship.core.result import Err, Ok
from tagship.release.errors import InvalidVersion
from tagship.release.service import ReleaseServices
from tagship.test.release.fakes import FakeRepo, FakeToolchain, Pipeline, entry, make_pipeline, sha

runner = CliRunner()


def _install(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    pipeline: Pipeline,
) -> CLIContext:
    cli = CLIContext(repo_root=tmp_path, config=Config(), console=pipeline.console, env={})

    def fake_context(options: CLIOptions | None = None) -> CLIContext:
        return cli

    def fake_services(**_: object) -> Ok[ReleaseServices]:
        return Ok(
            ReleaseServices(
                repo=pipeline.repo,  # type: ignore[arg-type]
                tags=pipeline.tags,
                publisher=pipeline.publisher,
            )
        )

    monkeypatch.setattr(release_cmd, "build_context", fake_context)
    monkeypatch.setattr(release_cmd, "build_services", fake_services)
    return cli


def _repo(*messages: str) -> FakeRepo:
    return FakeRepo(
        commits=[entry(i + 1, m) for i, m in enumerate(messages)],
        tags={"1.2.3": sha(100)},
        remote_tags={"1.2.3": sha(100)},
    )


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_publish_success(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = make_pipeline(tmp_path, repo=_repo("fix: x"))
    _install(monkeypatch, tmp_path, p)

    result = runner.invoke(app, ["publish"])

    assert result.exit_code == int(ErrorCode.OK)
    assert "OK published 1.2.4" in p.console.messages
    assert p.console.headers()[-1] == "result"


def test_publish_nothing_to_release(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = make_pipeline(tmp_path, repo=_repo("chore: x"))
    _install(monkeypatch, tmp_path, p)

    result = runner.invoke(app, ["publish"])

    assert result.exit_code == int(ErrorCode.OK)
    assert any(m.startswith("info: nothing to release") for m in p.console.messages)


def test_publish_existing_tag_exits_with_tag_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    repo = _repo("fix: x")
    repo.remote_tags["1.2.4"] = sha(999)
    p = make_pipeline(tmp_path, repo=repo)
    _install(monkeypatch, tmp_path, p)

    result = runner.invoke(app, ["publish"])

    assert result.exit_code == int(ErrorCode.TAG_ERROR)
    assert "error: [tag] tag already exists (remote): 1.2.4" in p.console.messages


def test_publish_build_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = make_pipeline(tmp_path, repo=_repo("fix: x"), toolchain=FakeToolchain(exit_code=101))
    _install(monkeypatch, tmp_path, p)

    result = runner.invoke(app, ["publish"])

    assert result.exit_code == int(ErrorCode.BUILD_ERROR)
    assert any(m.startswith("error: [build]") for m in p.console.messages)


def test_publish_dry_run(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = make_pipeline(tmp_path, repo=_repo("feat: y"))
    _install(monkeypatch, tmp_path, p)

    result = runner.invoke(app, ["publish", "--dry-run"])

    assert result.exit_code == 0
    assert "1.3.0" not in p.repo.tags


def test_plan_shows_next_version(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = make_pipeline(tmp_path, repo=_repo("feat: y"))
    _install(monkeypatch, tmp_path, p)

    result = runner.invoke(app, ["plan"])

    assert result.exit_code == 0
    assert "OK next: 1.3.0" in p.console.messages
    assert "severity: feature" in p.console.messages
    assert p.repo.tags.keys() == {"1.2.3"}


def test_tag_command_creates_once(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = make_pipeline(tmp_path, repo=_repo())
    _install(monkeypatch, tmp_path, p)

    first = runner.invoke(app, ["tag", "2.0.0", "-m", "manual"])
    second = runner.invoke(app, ["tag", "2.0.0"])

    assert first.exit_code == 0
    assert p.repo.tag_messages["2.0.0"] == "manual"
    assert second.exit_code == int(ErrorCode.TAG_ERROR)


def test_tag_command_rejects_bad_version(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = make_pipeline(tmp_path, repo=_repo())
    _install(monkeypatch, tmp_path, p)

    result = runner.invoke(app, ["tag", "two"])

    assert result.exit_code == int(ErrorCode.USER_ERROR)
    assert p.repo.calls == []


def test_push_tag_retries_only_the_push(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    repo = _repo("fix: x")
    repo.push_error = "fatal: unable to access remote"
    p = make_pipeline(tmp_path, repo=repo)
    _install(monkeypatch, tmp_path, p)

    failed = runner.invoke(app, ["publish"])
    assert failed.exit_code == int(ErrorCode.NETWORK_ERROR)

    repo.push_error = None
    pushed = runner.invoke(app, ["push-tag", "1.2.4"])

    assert pushed.exit_code == 0
    assert repo.remote_tags["1.2.4"] == repo.tags["1.2.4"]
    assert repo.calls.count("tag 1.2.4") == 1


def test_resume_unknown_tag(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = make_pipeline(tmp_path, repo=_repo())
    _install(monkeypatch, tmp_path, p)

    result = runner.invoke(app, ["resume", "9.9.9"])

    assert result.exit_code == int(ErrorCode.ENV_ERROR)


def test_global_options_reach_context(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = make_pipeline(tmp_path, repo=_repo())
    seen: list[CLIOptions | None] = []
    cli = _install(monkeypatch, tmp_path, p)

    def capture(options: CLIOptions | None = None) -> CLIContext:
        seen.append(options)
        return cli

    monkeypatch.setattr(release_cmd, "build_context", capture)

    runner.invoke(app, ["--repo", str(tmp_path), "--config", "x.toml", "plan"])

    assert seen == [CLIOptions(repo=tmp_path, config=Path("x.toml"))]


def test_invalid_initial_version_is_env_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    p = make_pipeline(tmp_path, repo=_repo())
    _install(monkeypatch, tmp_path, p)
    monkeypatch.setattr(
        release_cmd, "build_services", lambda **_: Err(InvalidVersion(raw="one"))
    )

    result = runner.invoke(app, ["publish"])

    assert result.exit_code == int(ErrorCode.ENV_ERROR)
    assert p.console.has_error()
