"""Error payload shared by the release, stack and env services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

DeployErrorKind = Literal[
    "already_deployed",
    "upload_failed",
    "cutover_conflict",
    "template_invalid",
    "provisioning_failed",
    "storage_unavailable",
    "invalid_input",
    "config_invalid",
    "build_failed",
    "parameter_missing",
]


@dataclass(frozen=True, slots=True)
class DeployError:
    """Canonical failure payload.

    ``kind`` drives the CLI exit code; ``message`` names the failure and the
    identifiers involved (version, stack name, distribution id); ``hint``
    carries provider detail or the next step for the operator.
    """

    kind: DeployErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
