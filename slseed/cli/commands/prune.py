"""Prune command - delete old versions outside the retention window."""

from __future__ import annotations

import typer

from slseed.cli.commands._helpers import exit_on_error
from slseed.cli.commands.deploy import choose_prune_versions
from slseed.cli.context import aws_clients, build_context, deployment_context, select_stage
from slseed.core.errors import ErrorCode
from slseed.services.release.model import version_prefix
from slseed.services.release.retention import prune as prune_versions


def prune(
    stage: str | None = typer.Option(None, "--stage", "-s", help="Target stage"),
    auto: bool = typer.Option(False, "--auto", help="Delete every candidate without asking"),
    keep: int | None = typer.Option(
        None,
        "--keep",
        min=0,
        help="Previous versions to keep (default: deploy.keep)",
    ),
) -> None:
    """Delete deployed versions older than the live one and its kept predecessors."""
    ctx = build_context()
    if ctx.config.type != "app":
        ctx.console.error("prune only applies to app projects")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    selected = select_stage(ctx, stage, auto=auto)
    dctx = deployment_context(ctx, stage=selected, auto=auto, keep=keep)
    target = dctx.target
    if target is None:
        ctx.console.error(f"no deploy target for stage {dctx.stage}")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    clients = aws_clients(ctx, profile=dctx.profile, region=dctx.region)

    ctx.console.header(f"Pruning s3://{target.bucket} [{dctx.stage}]")
    report = exit_on_error(
        prune_versions(
            clients.s3,
            target,
            current=dctx.version,
            keep=dctx.keep,
            auto=dctx.auto,
            console=ctx.console,
            choose=choose_prune_versions,
        ),
        ctx,
    )

    if report.deleted:
        deleted = ", ".join(version_prefix(v) for v in report.deleted)
        ctx.console.success(f"deleted {deleted} ({report.deleted_objects} objects)")
