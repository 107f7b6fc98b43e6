"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from slseed.core.errors import ErrorCode
from slseed.output.console import Style
from slseed.services.errors import DeployError, DeployErrorKind

if TYPE_CHECKING:
    from slseed.output.console import ConsoleProtocol

__all__ = ["deploy_error_exit_code", "print_deploy_error"]


def print_deploy_error(error: DeployError, console: ConsoleProtocol) -> None:
    """Print deploy error to console with appropriate formatting."""
    match error.kind:
        case "already_deployed":
            console.error(error.message)
            console.print("hint: re-run with --force to overwrite the version", Style.DIM)
            return
        case "cutover_conflict":
            console.error(error.message)
            console.print(
                "hint: another change to the distribution is in flight; retry shortly",
                Style.DIM,
            )
            return
        case _:
            console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def deploy_error_exit_code(kind: DeployErrorKind) -> int:
    """Get exit code for a deploy error kind."""
    match kind:
        case "already_deployed" | "invalid_input" | "parameter_missing":
            return int(ErrorCode.USER_ERROR)
        case "config_invalid" | "template_invalid":
            return int(ErrorCode.ENV_ERROR)
        case "upload_failed" | "cutover_conflict" | "provisioning_failed":
            return int(ErrorCode.DEPLOY_ERROR)
        case "storage_unavailable":
            return int(ErrorCode.NETWORK_ERROR)
        case "build_failed":
            return int(ErrorCode.IO_ERROR)
    # Fallback for exhaustiveness
    return int(ErrorCode.DEPLOY_ERROR)
