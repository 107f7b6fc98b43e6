"""Stack command - create or update the stage's base CloudFormation stack."""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path

import typer

from slseed.cli.commands._helpers import exit_on_error
from slseed.cli.commands.env import write_stage_env
from slseed.cli.context import CLIContext, aws_clients, build_context, select_stage
from slseed.core.errors import ErrorCode
from slseed.core.result import Result
from slseed.output.console import Style
from slseed.services.errors import DeployError
from slseed.services.stack.model import (
    PollCancelled,
    PollOutcome,
    StackDescription,
    StackFailed,
    StackSucceeded,
)
from slseed.services.stack.params import (
    StackParameter,
    build_stack_request,
    load_parameter_schema,
    load_template,
    stack_name,
    validate_answers,
)
from slseed.services.stack.provisioning import describe, provision

TEMPLATE_FILENAME = "template.json"
VALUES_FILENAME = "values.toml"


def parse_params(values: list[str]) -> dict[str, str]:
    """Parse repeated ``--param KEY=VALUE`` options."""
    out: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--param")
        out[key] = value
    return out


def stack_dir(ctx: CLIContext) -> Path:
    return ctx.project.resolve(ctx.config.configs) / "stack"


def prompt_answers(
    schema: tuple[StackParameter, ...],
    given: dict[str, str],
    *,
    current: StackDescription,
    interactive: bool,
) -> dict[str, str | None]:
    answers: dict[str, str | None] = dict(given)
    previous = dict(current.parameters)
    for p in schema:
        if p.key in answers or not interactive:
            continue
        if current.exists:
            shown = previous.get(p.key)
            suffix = f" [current: {shown}]" if shown else ""
            answers[p.key] = typer.prompt(
                f"{p.description}{suffix} (empty keeps current)",
                default="",
                show_default=False,
            )
        else:
            answers[p.key] = typer.prompt(
                p.description,
                default=p.default or "",
                show_default=p.default is not None,
            )
    return answers


def run_cancellable(
    fn: Callable[[threading.Event], Result[PollOutcome, DeployError]],
    *,
    on_interrupt: Callable[[], None],
) -> Result[PollOutcome, DeployError]:
    """Run ``fn`` in a worker; Ctrl+C sets its cancel event and waits for it to stop."""
    cancel = threading.Event()
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(fn, cancel)
        while True:
            try:
                return future.result(timeout=0.2)
            except FutureTimeout:
                continue
            except KeyboardInterrupt:
                if not cancel.is_set():
                    cancel.set()
                    on_interrupt()


def stack(
    stage: str | None = typer.Option(None, "--stage", "-s", help="Target stage"),
    auto: bool = typer.Option(
        False,
        "--auto",
        help="Non-interactive: take values from --param and defaults",
    ),
    param: list[str] = typer.Option(
        [],
        "--param",
        "-p",
        help="Stack parameter KEY=VALUE (repeatable)",
    ),
) -> None:
    """Create or update the base CloudFormation stack of a stage."""
    ctx = build_context()
    given = parse_params(param)
    selected = select_stage(ctx, stage, auto=auto)
    profile = ctx.config.stages[selected]
    region = ctx.config.aws.region
    name = stack_name(ctx.config.stack, selected)

    ctx.console.header("CloudFormation stack")
    ctx.console.field("stack", name)
    ctx.console.field("stage", selected)
    ctx.console.field("profile", profile)
    ctx.console.field("region", region)
    ctx.console.newline()

    directory = stack_dir(ctx)
    template = exit_on_error(load_template(directory / TEMPLATE_FILENAME), ctx)
    schema = exit_on_error(load_parameter_schema(directory / VALUES_FILENAME), ctx)

    clients = aws_clients(ctx, profile=profile, region=region)
    cfn = clients.cloudformation
    current = exit_on_error(describe(cfn, name), ctx)
    if current.status.is_in_progress:
        ctx.console.error(f"stack {name} is busy ({current.raw_status})")
        ctx.console.print("hint: wait for the running operation to finish", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    is_update = current.exists
    if is_update:
        ctx.console.warning(f"the stack already exists ({current.raw_status})")
        if not auto and not typer.confirm("Proceed with the update?", default=False):
            ctx.console.error("update cancelled")
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    answers = prompt_answers(schema, given, current=current, interactive=not auto)
    values = exit_on_error(validate_answers(schema, answers, is_update=is_update), ctx)
    request = build_stack_request(name=name, template=template, schema=schema, values=values)

    def on_interrupt() -> None:
        ctx.console.newline()
        ctx.console.print("stopping the status check...", Style.DIM)

    outcome = exit_on_error(
        run_cancellable(
            lambda cancel: provision(
                cfn,
                request,
                is_update=is_update,
                console=ctx.console,
                cancel=cancel,
            ),
            on_interrupt=on_interrupt,
        ),
        ctx,
    )

    match outcome:
        case StackSucceeded(outputs=outputs):
            ctx.console.success(f"stack successfully {'updated' if is_update else 'created'}")
            if outputs:
                ctx.console.header("Outputs")
                for o in outputs:
                    ctx.console.field(o.key, o.value)
            env_name = ctx.project.env_path(selected).name
            if auto:
                ctx.console.print(f"run 'slseed env' to refresh {env_name}", Style.DIM)
            elif typer.confirm(f"Update {env_name}?", default=True):
                write_stage_env(ctx, selected, clients.ssm)
        case PollCancelled(last_status=last):
            last_label = last.value if last is not None else "unknown"
            ctx.console.warning(f"stopped waiting; {name} was {last_label}")
            ctx.console.print(
                "CloudFormation keeps running the operation; check the console for its result",
                Style.DIM,
            )
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        case StackFailed():
            raise typer.Exit(code=int(ErrorCode.DEPLOY_ERROR))
