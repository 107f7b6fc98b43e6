from __future__ import annotations

from dataclasses import dataclass

import typer

from slseed.cli.selector import SelectorOption, is_interactive_terminal, select_one
from slseed.core.config import ProjectConfig, load_config
from slseed.core.context import DeploymentContext, resolve_context
from slseed.core.errors import ErrorCode
from slseed.core.project import Project, detect_project
from slseed.core.result import Err
from slseed.output.console import ConsoleProtocol, RichConsole, Style
from slseed.platform.aws import AwsClients, create_clients


@dataclass(frozen=True, slots=True)
class CLIContext:
    project: Project
    config: ProjectConfig
    console: ConsoleProtocol


def build_context() -> CLIContext:
    project_result = detect_project()
    if isinstance(project_result, Err):
        typer.echo(f"error: {project_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    project = project_result.value
    config_result = load_config(project.config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(
        project=project,
        config=config_result.value,
        console=RichConsole(),
    )


def select_stage(ctx: CLIContext, stage: str | None, *, auto: bool) -> str:
    """Return ``stage`` if given, otherwise ask the operator to pick one."""
    names = ctx.config.stage_names
    if stage is not None:
        if stage not in ctx.config.stages:
            ctx.console.error(f"Unknown stage: {stage}")
            ctx.console.print(f"Available: {', '.join(names) or '(none)'}", Style.DIM)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
        return stage

    if not names:
        ctx.console.error("no stages declared in slseed.toml")
        ctx.console.print("hint: add a [stages] table mapping stage -> AWS profile", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    if len(names) == 1:
        return names[0]
    if auto or not is_interactive_terminal():
        ctx.console.error("--stage is required in non-interactive mode")
        ctx.console.print(f"Available: {', '.join(names)}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    picked = select_one(
        title="Select a stage",
        subtitle=str(ctx.project.root),
        options=[
            SelectorOption(value=name, label=name, detail=f"profile: {profile}")
            for name, profile in ctx.config.stages.items()
        ],
    )
    if picked.action != "select" or picked.value is None:
        ctx.console.warning("cancelled")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    return picked.value


def deployment_context(
    ctx: CLIContext,
    *,
    stage: str,
    auto: bool,
    keep: int | None = None,
) -> DeploymentContext:
    resolved = resolve_context(
        config=ctx.config,
        project=ctx.project,
        stage=stage,
        auto=auto,
        keep=keep,
    )
    if isinstance(resolved, Err):
        ctx.console.error(resolved.error.message)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    return resolved.value


def aws_clients(ctx: CLIContext, *, profile: str, region: str) -> AwsClients:
    created = create_clients(profile=profile, region=region)
    if isinstance(created, Err):
        ctx.console.error(created.error.message)
        if created.error.hint:
            ctx.console.print(f"hint: {created.error.hint}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    return created.value
