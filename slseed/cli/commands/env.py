"""Env command - write ``.env.<stage>`` from the parameter store."""

from __future__ import annotations

from typing import Any

import typer

from slseed.cli.commands._helpers import exit_on_error
from slseed.cli.context import CLIContext, aws_clients, build_context, select_stage
from slseed.services.env import resolve_parameters, write_env_file


def write_stage_env(ctx: CLIContext, stage: str, ssm: Any) -> None:
    path = ctx.project.env_path(stage)

    ctx.console.header(f"Setting {path.name}")
    if not ctx.config.env.parameters:
        ctx.console.warning("no [env].parameters configured; only NODE_ENV is written")

    entries = exit_on_error(
        resolve_parameters(ssm, config=ctx.config, stage=stage, console=ctx.console),
        ctx,
    )
    exit_on_error(write_env_file(path, stage, entries), ctx)
    ctx.console.success(f"env file saved: {path}")


def env(
    stage: str | None = typer.Option(None, "--stage", "-s", help="Target stage"),
    auto: bool = typer.Option(False, "--auto", help="Fail instead of asking for a stage"),
) -> None:
    """Create or update the stage's .env file."""
    ctx = build_context()
    selected = select_stage(ctx, stage, auto=auto)
    clients = aws_clients(ctx, profile=ctx.config.stages[selected], region=ctx.config.aws.region)
    write_stage_env(ctx, selected, clients.ssm)
