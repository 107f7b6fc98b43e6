from __future__ import annotations

import os
from pathlib import Path

from slseed.core.result import Err, Ok, Result
from slseed.output.console import ConsoleProtocol, Style
from slseed.platform.process import run_silent
from slseed.services.errors import DeployError

__all__ = ["SERVERLESS_DEPLOY", "deploy_api", "run_build"]


def run_build(
    *,
    command: tuple[str, ...],
    cwd: Path,
    stage: str,
    console: ConsoleProtocol,
) -> Result[None, DeployError]:
    """Run the project's build command with ``NODE_ENV`` set to the stage."""
    console.print(" ".join(command), Style.DIM)
    env = dict(os.environ)
    env["NODE_ENV"] = stage

    result = run_silent(list(command), cwd=cwd, env=env)
    if isinstance(result, Err):
        return Err(
            DeployError(
                kind="build_failed",
                message=str(result.error),
                hint=result.error.stderr or None,
            )
        )
    return Ok(None)


SERVERLESS_DEPLOY: tuple[str, ...] = ("sls", "deploy", "--stage")


def deploy_api(
    *,
    cwd: Path,
    stage: str,
    profile: str,
    console: ConsoleProtocol,
) -> Result[None, DeployError]:
    """Deploy an ``api`` project with the Serverless Framework CLI."""
    command = [*SERVERLESS_DEPLOY, stage]
    console.print(" ".join(command), Style.DIM)
    env = dict(os.environ)
    env["NODE_ENV"] = stage
    env["AWS_PROFILE"] = profile

    result = run_silent(command, cwd=cwd, env=env)
    if isinstance(result, Err):
        return Err(
            DeployError(
                kind="provisioning_failed",
                message=str(result.error),
                hint=result.error.stderr or "Check the serverless output above.",
            )
        )
    return Ok(None)
