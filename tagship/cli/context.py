from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from tagship.core.config import CONFIG_FILE_NAME, Config, load_config_or_default
from tagship.core.errors import ErrorCode
from tagship.core.result import Err
from tagship.git.repository import Repository
from tagship.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIOptions:
    """Global options collected by the app callback."""

    repo: Path | None = None
    config: Path | None = None


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo_root: Path
    config: Config
    console: ConsoleProtocol
    env: dict[str, str]


def build_context(options: CLIOptions | None = None) -> CLIContext:
    options = options or CLIOptions()
    console = RichConsole()

    try:
        repo_root = (options.repo or Path.cwd()).expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid --repo: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    if not Repository(repo_root).exists():
        typer.echo(f"error: not a git repository: {repo_root}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    config_path = options.config or repo_root / CONFIG_FILE_NAME
    config_result = load_config_or_default(config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    env = dict(os.environ)
    return CLIContext(
        repo_root=repo_root,
        config=config_result.value.with_env(env),
        console=console,
        env=env,
    )
