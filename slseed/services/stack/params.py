"""Stack template parameters.

Parameters are declared in ``<configs>/stack/values.toml``:

    [[parameters]]
    key = "DomainName"
    description = "Public domain name"
    default = "app.example.com"
    required = true

Answers are checked against that schema before anything is submitted. On
update an empty answer keeps the stack's previous value.
"""

from __future__ import annotations

import copy
import json
import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from slseed.core.result import Err, Ok, Result
from slseed.core.structured import StrDict, as_str_dict, get_dicts, get_str, get_table
from slseed.services.errors import DeployError
from slseed.services.stack.model import StackRequest

__all__ = [
    "StackParameter",
    "build_stack_request",
    "load_parameter_schema",
    "load_template",
    "stack_name",
    "validate_answers",
]

_SLUG_SPLIT = re.compile(r"[^A-Za-z0-9]+")


@dataclass(frozen=True, slots=True)
class StackParameter:
    key: str
    description: str
    default: str | None = None
    required: bool = True


def stack_name(stack: str, stage: str) -> str:
    """Slug of ``"<stack> <stage> base stack"`` (e.g. ``my-app-production-base-stack``)."""
    words = [w for w in _SLUG_SPLIT.split(f"{stack} {stage} base stack") if w]
    return "-".join(w.lower() for w in words)


def load_template(path: Path) -> Result[StrDict, DeployError]:
    try:
        obj: object = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(
            DeployError(
                kind="config_invalid",
                message=f"stack template not found: {path}",
            )
        )
    except (OSError, json.JSONDecodeError) as e:
        return Err(
            DeployError(
                kind="template_invalid",
                message=f"stack template is not valid JSON: {path}",
                hint=str(e),
            )
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(
            DeployError(
                kind="template_invalid",
                message=f"stack template must be an object: {path}",
            )
        )
    return Ok(data)


def load_parameter_schema(path: Path) -> Result[tuple[StackParameter, ...], DeployError]:
    if not path.exists():
        return Ok(())

    try:
        data: object = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        return Err(
            DeployError(
                kind="config_invalid",
                message=f"invalid stack values file: {path}",
                hint=str(e),
            )
        )

    table = as_str_dict(data) or {}
    params: list[StackParameter] = []
    seen: set[str] = set()
    for entry in get_dicts(table, "parameters"):
        key = get_str(entry, "key")
        if key is None:
            return Err(
                DeployError(
                    kind="config_invalid",
                    message=f"stack parameter without key in {path}",
                )
            )
        if key in seen:
            return Err(
                DeployError(kind="config_invalid", message=f"duplicate stack parameter: {key}")
            )
        seen.add(key)
        required = entry.get("required", True)
        params.append(
            StackParameter(
                key=key,
                description=get_str(entry, "description") or key,
                default=get_str(entry, "default"),
                required=required if isinstance(required, bool) else True,
            )
        )
    return Ok(tuple(params))


def validate_answers(
    schema: tuple[StackParameter, ...],
    answers: Mapping[str, str | None],
    *,
    is_update: bool,
) -> Result[dict[str, str | None], DeployError]:
    """Check answers against the schema.

    Returns one entry per schema key: the answer, or None to keep the
    previous value (update only). Unknown answer keys are rejected.
    """
    known = {p.key for p in schema}
    unknown = sorted(k for k in answers if k not in known)
    if unknown:
        return Err(
            DeployError(
                kind="invalid_input",
                message=f"unknown stack parameter(s): {', '.join(unknown)}",
            )
        )

    resolved: dict[str, str | None] = {}
    missing: list[str] = []
    for p in schema:
        value = (answers.get(p.key) or "").strip()
        if not value and not is_update and p.default is not None:
            value = p.default
        if value:
            resolved[p.key] = value
        elif is_update:
            resolved[p.key] = None
        elif p.required:
            missing.append(p.key)
        else:
            resolved[p.key] = ""

    if missing:
        return Err(
            DeployError(
                kind="parameter_missing",
                message=f"missing required stack parameter(s): {', '.join(missing)}",
            )
        )
    return Ok(resolved)


def build_stack_request(
    *,
    name: str,
    template: Mapping[str, object],
    schema: tuple[StackParameter, ...],
    values: Mapping[str, str | None],
) -> StackRequest:
    """Merge the schema into the template and build the API parameters.

    Each schema key is declared in the template's ``Parameters`` as a
    ``String`` with its description; a None value becomes
    ``UsePreviousValue``.
    """
    body: StrDict = copy.deepcopy(dict(template))
    declared: StrDict = dict(get_table(body, "Parameters") or {})
    for p in schema:
        declared[p.key] = {"Description": p.description, "Type": "String"}
    if declared:
        body["Parameters"] = declared

    parameters: list[dict[str, object]] = []
    for p in schema:
        value = values.get(p.key)
        if value is None:
            parameters.append({"ParameterKey": p.key, "UsePreviousValue": True})
        else:
            parameters.append({"ParameterKey": p.key, "ParameterValue": value})

    return StackRequest(
        name=name,
        template_body=json.dumps(body),
        parameters=tuple(parameters),
    )
