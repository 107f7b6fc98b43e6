"""CloudFormation provisioning state machine.

    ABSENT --create--> CREATE_IN_PROGRESS --> CREATE_COMPLETE | FAILED
    *_COMPLETE --update--> UPDATE_IN_PROGRESS [--> CLEANUP_IN_PROGRESS]
                                              --> UPDATE_COMPLETE | FAILED

The poll loop waits on a ``threading.Event`` between describe calls, so the
caller can cancel it at any time. Cancelling only stops the local wait; the
remote stack keeps going and CloudFormation owns any rollback.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from slseed.core.result import Err, Ok, Result
from slseed.core.structured import as_str_dict, get_dicts, get_str
from slseed.output.console import ConsoleProtocol, Style
from slseed.platform.aws import client_error_code, client_error_message, describe_aws_error
from slseed.services.errors import DeployError
from slseed.services.stack.model import (
    PollCancelled,
    PollOutcome,
    StackDescription,
    StackFailed,
    StackOutput,
    StackRequest,
    StackStatus,
    StackSucceeded,
    classify_status,
)
from slseed.services.timeouts import STACK_POLL_INTERVAL_SECONDS

__all__ = [
    "describe",
    "poll",
    "provision",
    "submit",
    "validate",
]

StatusCallback = Callable[[StackDescription], None]


def _is_missing_stack(error: ClientError) -> bool:
    return client_error_code(error) == "ValidationError" and "does not exist" in (
        client_error_message(error)
    )


def describe(cfn: Any, name: str) -> Result[StackDescription, DeployError]:
    """Describe ``name``; a missing stack is ``ABSENT``, not an error."""
    try:
        response: object = cfn.describe_stacks(StackName=name)
    except ClientError as e:
        if _is_missing_stack(e):
            return Ok(StackDescription(name=name, status=StackStatus.ABSENT, raw_status=None))
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to describe stack {name}",
                hint=describe_aws_error(e),
            )
        )
    except BotoCoreError as e:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to describe stack {name}",
                hint=describe_aws_error(e),
            )
        )

    stacks = get_dicts(as_str_dict(response) or {}, "Stacks")
    if not stacks:
        return Ok(StackDescription(name=name, status=StackStatus.ABSENT, raw_status=None))

    stack = stacks[0]
    raw = get_str(stack, "StackStatus")
    outputs = tuple(
        StackOutput(
            key=get_str(o, "OutputKey") or "",
            value=get_str(o, "OutputValue") or "",
            description=get_str(o, "Description"),
            export_name=get_str(o, "ExportName"),
        )
        for o in get_dicts(stack, "Outputs")
    )
    parameters = tuple(
        (get_str(p, "ParameterKey") or "", get_str(p, "ParameterValue") or "")
        for p in get_dicts(stack, "Parameters")
    )
    return Ok(
        StackDescription(
            name=get_str(stack, "StackName") or name,
            status=classify_status(raw),
            raw_status=raw,
            outputs=outputs,
            parameters=parameters,
            reason=get_str(stack, "StackStatusReason"),
        )
    )


def validate(cfn: Any, template_body: str) -> Result[None, DeployError]:
    """Ask CloudFormation to validate the template; no stack is touched."""
    try:
        cfn.validate_template(TemplateBody=template_body)
    except ClientError as e:
        return Err(
            DeployError(
                kind="template_invalid",
                message="stack template rejected by CloudFormation",
                hint=describe_aws_error(e),
            )
        )
    except BotoCoreError as e:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message="failed to validate stack template",
                hint=describe_aws_error(e),
            )
        )
    return Ok(None)


def submit(cfn: Any, request: StackRequest, *, is_update: bool) -> Result[str | None, DeployError]:
    """Issue create (termination protection on) or update; returns the stack id."""
    params: dict[str, object] = {
        "StackName": request.name,
        "TemplateBody": request.template_body,
        "Parameters": list(request.parameters),
        "Capabilities": list(request.capabilities),
    }
    action = "update" if is_update else "create"
    try:
        if is_update:
            response: object = cfn.update_stack(**params)
        else:
            response = cfn.create_stack(**params, EnableTerminationProtection=True)
    except ClientError as e:
        return Err(
            DeployError(
                kind="provisioning_failed",
                message=f"stack {action} rejected: {request.name}",
                hint=describe_aws_error(e),
            )
        )
    except BotoCoreError as e:
        return Err(
            DeployError(
                kind="storage_unavailable",
                message=f"failed to {action} stack {request.name}",
                hint=describe_aws_error(e),
            )
        )
    return Ok(get_str(as_str_dict(response) or {}, "StackId"))


def poll(
    cfn: Any,
    name: str,
    *,
    interval: float = STACK_POLL_INTERVAL_SECONDS,
    cancel: threading.Event | None = None,
    on_status: StatusCallback | None = None,
) -> Result[PollOutcome, DeployError]:
    """Describe ``name`` every ``interval`` seconds until a terminal status.

    There is no overall deadline; set ``cancel`` to stop waiting.
    """
    stop = cancel if cancel is not None else threading.Event()
    last: StackStatus | None = None

    while True:
        if stop.is_set():
            return Ok(PollCancelled(name=name, last_status=last))

        described = describe(cfn, name)
        if isinstance(described, Err):
            return described
        desc = described.value
        last = desc.status
        if on_status is not None:
            on_status(desc)

        if desc.status.is_success:
            return Ok(StackSucceeded(name=name, status=desc.status, outputs=desc.outputs))
        if not desc.status.is_in_progress:
            return Ok(StackFailed(name=name, raw_status=desc.raw_status, reason=desc.reason))

        if stop.wait(interval):
            return Ok(PollCancelled(name=name, last_status=last))


def provision(
    cfn: Any,
    request: StackRequest,
    *,
    is_update: bool,
    console: ConsoleProtocol,
    interval: float = STACK_POLL_INTERVAL_SECONDS,
    cancel: threading.Event | None = None,
) -> Result[PollOutcome, DeployError]:
    """Validate, submit and poll one create/update to its terminal status.

    A ``StackFailed`` outcome is returned as ``Err(provisioning_failed)``
    carrying the reported status; no rollback is attempted here.
    """
    console.info("validating stack template...")
    valid = validate(cfn, request.template_body)
    if isinstance(valid, Err):
        return valid
    console.success("template body is valid")

    verb = "update" if is_update else "creation"
    submitted = submit(cfn, request, is_update=is_update)
    if isinstance(submitted, Err):
        return submitted
    console.success(f"stack {verb} initiated: {request.name}")
    console.print(
        "checking stack status (this may take several minutes; Ctrl+C stops waiting)",
        Style.DIM,
    )

    def on_status(desc: StackDescription) -> None:
        console.print(f"  {desc.raw_status or desc.status.value}", Style.DIM)

    outcome = poll(cfn, request.name, interval=interval, cancel=cancel, on_status=on_status)
    if isinstance(outcome, Err):
        return outcome

    match outcome.value:
        case StackFailed(raw_status=raw, reason=reason):
            return Err(
                DeployError(
                    kind="provisioning_failed",
                    message=f"stack {verb} failed: {request.name} ({raw or 'ABSENT'})",
                    hint=reason or "Check the CloudFormation console for stack events.",
                )
            )
        case _:
            return outcome
