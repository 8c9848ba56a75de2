from __future__ import annotations

import typer

from tagship.cli.commands._helpers import exit_with_code, report_outcome
from tagship.cli.context import CLIContext, CLIOptions, build_context
from tagship.core.errors import ErrorCode
from tagship.core.result import Err
from tagship.output.console import Style
from tagship.output.errors import pipeline_error_exit_code, print_pipeline_error
from tagship.release.service import ReleaseServices, build_services


def _context(ctx: typer.Context) -> CLIContext:
    options = ctx.obj if isinstance(ctx.obj, CLIOptions) else None
    return build_context(options)


def _services(cli: CLIContext, *, target: str | None = None) -> ReleaseServices:
    services = build_services(
        repo_root=cli.repo_root,
        config=cli.config,
        console=cli.console,
        env=cli.env,
        target=target,
    )
    if isinstance(services, Err):
        cli.console.error(f"version.initial: {services.error.message}")
        exit_with_code(int(ErrorCode.ENV_ERROR))
    return services.value


def plan(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Plan a patch release even without changes."),
) -> None:
    """Show the next version and changelog without changing anything."""
    cli = _context(ctx)
    services = _services(cli)

    cli.console.header("plan")
    decision = services.publisher.plan(force=force)
    if isinstance(decision, Err):
        print_pipeline_error(decision.error, cli.console, stage="plan")
        exit_with_code(pipeline_error_exit_code(decision.error))

    d = decision.value
    prior = d.prior.to_tag(cli.config.tag.prefix) if d.prior is not None else "(none)"
    cli.console.print(f"previous: {prior}")
    cli.console.print(f"severity: {d.severity.label}")
    if d.should_release:
        cli.console.success(f"next: {d.version.to_tag(cli.config.tag.prefix)}")
    else:
        cli.console.info(d.reason)
    cli.console.print(d.changelog.rstrip(), Style.DIM)


def publish(
    ctx: typer.Context,
    dry_run: bool = typer.Option(False, "--dry-run", help="Plan and gate only."),
    force: bool = typer.Option(False, "--force", help="Release a patch even without changes."),
    target: str | None = typer.Option(None, "--target", help="Target triple to build."),
) -> None:
    """Plan, tag, build and upload a release."""
    cli = _context(ctx)
    services = _services(cli, target=target)
    outcome = services.publisher.run(dry_run=dry_run, force=force)
    exit_with_code(report_outcome(outcome, cli.console))


def tag(
    ctx: typer.Context,
    version: str = typer.Argument(..., help="Fully-qualified version, e.g. 1.2.3 or v1.2.3"),
    message: str | None = typer.Option(None, "--message", "-m", help="Tag annotation."),
) -> None:
    """Create and push an annotated tag for VERSION."""
    cli = _context(ctx)
    services = _services(cli)

    parsed = services.tags.policy.parse(version)
    if isinstance(parsed, Err):
        print_pipeline_error(parsed.error, cli.console, stage="tag")
        exit_with_code(pipeline_error_exit_code(parsed.error))

    created = services.tags.create(parsed.value, message=message)
    if isinstance(created, Err):
        print_pipeline_error(created.error, cli.console, stage="tag")
        exit_with_code(pipeline_error_exit_code(created.error))

    cli.console.success(f"tag {created.value.name} pushed to {cli.config.tag.remote}")


def push_tag(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Existing local tag to push."),
) -> None:
    """Push an existing tag (safe to repeat after a failed push)."""
    cli = _context(ctx)
    services = _services(cli)

    pushed = services.tags.push_tag(name)
    if isinstance(pushed, Err):
        print_pipeline_error(pushed.error, cli.console, stage="tag")
        exit_with_code(pipeline_error_exit_code(pushed.error))

    cli.console.success(f"tag {name} is on {cli.config.tag.remote}")


def resume(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Existing release tag."),
    target: str | None = typer.Option(None, "--target", help="Target triple to build."),
) -> None:
    """Build and upload the artifact for an existing tag."""
    cli = _context(ctx)
    services = _services(cli, target=target)
    outcome = services.publisher.resume(name)
    exit_with_code(report_outcome(outcome, cli.console))
