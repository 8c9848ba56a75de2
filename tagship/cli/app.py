from __future__ import annotations

from pathlib import Path

import typer

from tagship import __version__
from tagship.cli.commands.release_cmd import plan, publish, push_tag, resume, tag
from tagship.cli.context import CLIOptions


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(plan)
app.command()(publish)
app.command()(tag)
app.command("push-tag")(push_tag)
app.command()(resume)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_print_version,
        is_eager=True,
    ),
    repo: Path | None = typer.Option(
        None,
        "--repo",
        help="Repository root (defaults to the current directory)",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (defaults to <repo>/tagship.toml)",
    ),
) -> None:
    del version
    ctx.obj = CLIOptions(repo=repo, config=config)


def main() -> None:
    app()
