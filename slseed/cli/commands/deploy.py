"""Deploy command - publish the build output as a new version."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import typer

from slseed.cli.commands._helpers import exit_on_error, exit_with_code
from slseed.cli.context import (
    CLIContext,
    aws_clients,
    build_context,
    deployment_context,
    select_stage,
)
from slseed.cli.selector import SelectorOption, is_interactive_terminal, select_many
from slseed.core.errors import ErrorCode
from slseed.output.console import ConsoleProtocol, Style
from slseed.services.build import deploy_api
from slseed.services.release.cutover import wait_for_deployed
from slseed.services.release.model import PrunePlan, ReleaseReport, version_prefix
from slseed.services.release.service import ReleaseOptions, release


def choose_prune_versions(plan: PrunePlan) -> Sequence[str]:
    """Checkbox picker over every deployed version; protected rows are locked."""
    if not is_interactive_terminal():
        return plan.candidates

    options: list[SelectorOption[str]] = []
    for v in plan.versions:
        if v == plan.current:
            detail = "live"
        elif v in plan.excluded:
            detail = "kept"
        else:
            detail = None
        options.append(
            SelectorOption(
                value=v,
                label=version_prefix(v),
                detail=detail,
                disabled=v in plan.excluded,
            )
        )

    picked = select_many(
        title="Select versions to delete",
        subtitle=f"keeping {version_prefix(plan.current)} and {plan.keep} previous",
        options=options,
    )
    if picked.action != "select":
        return ()
    return picked.values


def confirm(prompt: str) -> bool:
    return typer.confirm(prompt, default=True)


def print_release_report(report: ReleaseReport, console: ConsoleProtocol) -> None:
    console.newline()
    console.header("Release")
    console.field("version", version_prefix(report.version))
    console.field("files", str(report.uploaded))
    console.field("distribution", report.cutover.distribution_id)
    console.field("origin", report.cutover.origin_path)
    if report.invalidation_id:
        console.field("invalidation", report.invalidation_id)
    if report.pruned is not None and report.pruned.deleted:
        pruned = ", ".join(version_prefix(v) for v in report.pruned.deleted)
        console.field("pruned", pruned)
    if report.distribution is not None:
        for url in report.distribution.urls:
            console.field("url", url)


def _deploy_api(ctx: CLIContext, *, stage: str) -> None:
    ctx.console.header(f"Deploying {ctx.config.stack} to [{stage}]")
    exit_on_error(
        deploy_api(
            cwd=ctx.project.root,
            stage=stage,
            profile=ctx.config.stages[stage],
            console=ctx.console,
        ),
        ctx,
    )
    ctx.console.success("serverless deploy finished")


def _wait_deployed(ctx: CLIContext, cloudfront: Any, distribution_id: str) -> None:
    ctx.console.newline()
    ctx.console.info(f"waiting for {distribution_id} to deploy (Ctrl+C stops waiting)...")
    try:
        exit_on_error(wait_for_deployed(cloudfront, distribution_id), ctx)
    except KeyboardInterrupt:
        ctx.console.newline()
        ctx.console.print("stopped waiting; the rollout continues", Style.DIM)
        return
    ctx.console.success(f"{distribution_id} is deployed")


def deploy(
    stage: str | None = typer.Option(None, "--stage", "-s", help="Target stage"),
    auto: bool = typer.Option(
        False,
        "--auto",
        help="Non-interactive: invalidate and prune without asking",
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an already deployed version"),
    no_build: bool = typer.Option(False, "--no-build", help="Upload the existing build output"),
    keep: int | None = typer.Option(
        None,
        "--keep",
        min=0,
        help="Previous versions to keep when pruning (default: deploy.keep)",
    ),
    wait: bool = typer.Option(
        False,
        "--wait",
        help="Wait until CloudFront reports the distribution as Deployed",
    ),
) -> None:
    """Build, upload and cut the CDN over to the package version."""
    ctx = build_context()
    selected = select_stage(ctx, stage, auto=auto)

    if ctx.config.type == "api":
        _deploy_api(ctx, stage=selected)
        return

    dctx = deployment_context(ctx, stage=selected, auto=auto, keep=keep)
    clients = aws_clients(ctx, profile=dctx.profile, region=dctx.region)

    options = ReleaseOptions(
        source_tree=ctx.project.resolve(ctx.config.dist),
        force=force,
        build_command=None if no_build else ctx.config.build_command,
    )

    try:
        result = release(
            s3=clients.s3,
            cloudfront=clients.cloudfront,
            ctx=dctx,
            options=options,
            console=ctx.console,
            confirm=confirm,
            choose=choose_prune_versions,
        )
    except KeyboardInterrupt:
        ctx.console.newline()
        ctx.console.print("interrupted", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))

    report = exit_on_error(result, ctx)
    print_release_report(report, ctx.console)

    if wait:
        _wait_deployed(ctx, clients.cloudfront, report.cutover.distribution_id)
