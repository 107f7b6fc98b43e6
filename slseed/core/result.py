"""Result type for explicit error handling.

Every AWS-facing operation in slseed returns a ``Result`` instead of raising:
a release step either yields ``Ok(value)`` or ``Err(DeployError)``, and the
caller decides whether to stop the flow. botocore exceptions are caught at the
service boundary and never leak past it.

Usage:
    result = check_idempotent(s3, target, "1.2.3")
    match result:
        case Ok(True):
            console.warning("already deployed")
        case Ok(False):
            ...
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """A successful result.

    Attributes:
        value: The success value.
    """

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """A failed result.

    Attributes:
        error: The error payload (usually a frozen dataclass with a ``kind``).
    """

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
