"""Release flow: plan -> build -> upload -> cutover -> invalidate -> prune.

Each step runs only if the previous one succeeded. In particular the cutover
is never attempted unless every artifact of the version was uploaded.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from slseed.core.context import DeploymentContext
from slseed.core.result import Err, Ok, Result
from slseed.output.console import ConsoleProtocol, Style
from slseed.services.build import run_build
from slseed.services.errors import DeployError
from slseed.services.release.cutover import cutover_with_retry, describe_distribution, invalidate
from slseed.services.release.model import (
    DistributionInfo,
    PruneReport,
    ReleaseReport,
    version_prefix,
)
from slseed.services.release.planner import plan_release
from slseed.services.release.retention import PruneChooser, prune
from slseed.services.release.uploader import upload

Confirm = Callable[[str], bool]


@dataclass(frozen=True, slots=True)
class ReleaseOptions:
    source_tree: Path
    force: bool = False
    build_command: tuple[str, ...] | None = None
    invalidate: bool = True
    prune: bool = True


def _always_yes(_: str) -> bool:
    return True


def release(
    *,
    s3: Any,
    cloudfront: Any,
    ctx: DeploymentContext,
    options: ReleaseOptions,
    console: ConsoleProtocol,
    confirm: Confirm | None = None,
    choose: PruneChooser | None = None,
) -> Result[ReleaseReport, DeployError]:
    """Publish ``ctx.version`` and make it live.

    Args:
        s3: boto3 S3 client.
        cloudfront: boto3 CloudFront client.
        ctx: Resolved deployment context (must carry a target).
        options: What to run beyond upload + cutover.
        console: Progress output.
        confirm: Asked before invalidation and pruning; ignored in auto mode.
        choose: Interactive prune selection; ignored in auto mode.
    """
    target = ctx.target
    if target is None:
        return Err(
            DeployError(
                kind="config_invalid",
                message=f"no deploy target for stage {ctx.stage}",
                hint="Set deploy.bucket in slseed.toml.",
            )
        )
    if not target.distribution_id:
        return Err(
            DeployError(
                kind="config_invalid",
                message=f"no CloudFront distribution for stage {ctx.stage}",
                hint=(
                    "Set deploy.distribution in slseed.toml, or define the variable it "
                    f"references in .env.{ctx.stage} / .env.{ctx.stage}.local."
                ),
            )
        )

    ask = _always_yes if ctx.auto or confirm is None else confirm
    version = ctx.version
    label = version_prefix(version)

    console.header(f"Deploying {label} to [{ctx.stage}]")

    planned = plan_release(
        s3=s3, target=target, version=version, force=options.force, console=console
    )
    if isinstance(planned, Err):
        return planned

    if options.build_command:
        console.info("building...")
        built = run_build(
            command=options.build_command,
            cwd=ctx.project_root,
            stage=ctx.stage,
            console=console,
        )
        if isinstance(built, Err):
            return built

    console.info(f"uploading {options.source_tree} to s3://{target.bucket}/{label}/ ...")

    def on_progress(done: int, total: int, key: str) -> None:
        console.print(f"[{done}/{total}] /{key}", Style.DIM)

    uploaded = upload(
        s3,
        target,
        version,
        options.source_tree,
        max_workers=ctx.max_workers,
        on_progress=on_progress,
    )
    if isinstance(uploaded, Err):
        return uploaded
    console.success(f"{uploaded.value} files uploaded")

    console.info(f"updating CloudFront distribution {target.distribution_id}...")
    switched = cutover_with_retry(cloudfront, target, version, console=console)
    if isinstance(switched, Err):
        return switched
    console.success(f"distribution now serves {switched.value.origin_path}")

    invalidation_id: str | None = None
    if options.invalidate and ask("Invalidate the distribution?"):
        inv = invalidate(cloudfront, switched.value.distribution_id)
        if isinstance(inv, Err):
            console.warning(inv.error.pretty())
        else:
            invalidation_id = inv.value
            console.success(f"invalidation requested ({inv.value})")

    pruned: PruneReport | None = None
    if options.prune and ask("Prune old deployed versions?"):
        pr = prune(
            s3,
            target,
            current=version,
            keep=ctx.keep,
            auto=ctx.auto,
            console=console,
            choose=choose,
        )
        if isinstance(pr, Err):
            console.warning(f"{label} is live; re-run 'slseed prune' once resolved")
            return pr
        pruned = pr.value

    info: DistributionInfo | None = None
    described = describe_distribution(cloudfront, switched.value.distribution_id)
    if isinstance(described, Err):
        console.warning(described.error.pretty())
    else:
        info = described.value

    return Ok(
        ReleaseReport(
            version=version,
            uploaded=uploaded.value,
            cutover=switched.value,
            invalidation_id=invalidation_id,
            pruned=pruned,
            distribution=info,
        )
    )
