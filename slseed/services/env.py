"""Generate ``.env.<stage>`` from parameter-store values.

Each configured name is read from ``/<stack>/<stage>/<name>`` (decrypted) and
written as ``NAME_UPPER_SNAKE=value``. On app projects the variable is
prefixed (``VUE_APP_`` by default) unless the configured name starts with
``!``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from slseed.core.config import ProjectConfig
from slseed.core.result import Err, Ok, Result
from slseed.core.structured import as_str_dict, get_table
from slseed.output.console import ConsoleProtocol, Style
from slseed.platform.aws import client_error_code, describe_aws_error
from slseed.services.errors import DeployError

__all__ = [
    "EnvEntry",
    "env_var_name",
    "parameter_path",
    "render_env_file",
    "resolve_parameters",
    "write_env_file",
]

_NON_ALNUM = re.compile(r"[^A-Z0-9]+")


@dataclass(frozen=True, slots=True)
class EnvEntry:
    variable: str
    value: str
    source: str


def env_var_name(name: str) -> str:
    """``api-url`` -> ``API_URL``."""
    return _NON_ALNUM.sub("_", name.upper())


def parameter_path(stack: str, stage: str, name: str) -> str:
    return "/" + "/".join(part.strip("/") for part in (stack, stage, name))


def _fetch(ssm: Any, path: str) -> Result[str, DeployError]:
    try:
        response: object = ssm.get_parameter(Name=path, WithDecryption=True)
    except ClientError as e:
        if client_error_code(e) == "ParameterNotFound":
            return Err(
                DeployError(
                    kind="parameter_missing",
                    message=f"parameter not found: {path}",
                    hint="Create it in SSM Parameter Store or remove it from [env].parameters.",
                )
            )
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to read parameter {path}",
                hint=describe_aws_error(e),
            )
        )
    except BotoCoreError as e:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to read parameter {path}",
                hint=describe_aws_error(e),
            )
        )

    parameter = get_table(as_str_dict(response) or {}, "Parameter") or {}
    value = parameter.get("Value")
    if not isinstance(value, str):
        return Err(
            DeployError(kind="parameter_missing", message=f"parameter has no value: {path}")
        )
    return Ok(value)


def resolve_parameters(
    ssm: Any,
    *,
    config: ProjectConfig,
    stage: str,
    console: ConsoleProtocol,
) -> Result[list[EnvEntry], DeployError]:
    """Read every configured parameter for ``stage``; stops at the first failure."""
    entries: list[EnvEntry] = []
    for raw in config.env.parameters:
        with_prefix = config.type == "app" and not raw.startswith("!")
        name = raw.removeprefix("!")
        path = parameter_path(config.stack, stage, name)

        fetched = _fetch(ssm, path)
        if isinstance(fetched, Err):
            return fetched

        prefix = config.env.prefix if with_prefix else ""
        variable = f"{prefix}{env_var_name(name)}"
        console.print(f"{variable}=[ssm:{path}]", Style.DIM)
        entries.append(EnvEntry(variable=variable, value=fetched.value, source=path))
    return Ok(entries)


def render_env_file(stage: str, entries: list[EnvEntry]) -> str:
    lines = [f"NODE_ENV={stage}"]
    lines.extend(f"{e.variable}={e.value}" for e in entries)
    return "\n".join(lines) + "\n"


def write_env_file(
    path: Path, stage: str, entries: list[EnvEntry]
) -> Result[Path, DeployError]:
    try:
        path.write_text(render_env_file(stage, entries), encoding="utf-8")
    except OSError as e:
        return Err(
            DeployError(
                kind="invalid_input",
                message=f"failed to write {path}",
                hint=str(e),
            )
        )
    return Ok(path)
