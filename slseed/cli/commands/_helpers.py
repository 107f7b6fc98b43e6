"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from slseed.core.result import Err, Result
from slseed.output.errors import deploy_error_exit_code, print_deploy_error
from slseed.services.errors import DeployError

if TYPE_CHECKING:
    from slseed.cli.context import CLIContext


def exit_on_error[T](result: Result[T, DeployError], ctx: CLIContext) -> T:
    """Return the Ok value, or print the error and exit with its mapped code.

    This helper reduces boilerplate for the common pattern:
        match result:
            case Err(e):
                print_deploy_error(e, ctx.console)
                raise typer.Exit(code=deploy_error_exit_code(e.kind))
            case Ok(value):
                ...
    """
    if isinstance(result, Err):
        print_deploy_error(result.error, ctx.console)
        raise typer.Exit(code=deploy_error_exit_code(result.error.kind))
    return result.value


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)
