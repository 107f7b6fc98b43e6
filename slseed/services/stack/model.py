from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StackStatus(Enum):
    """Closed set of provisioning states.

    Raw CloudFormation statuses are folded into these by
    :func:`classify_status`; anything unexpected (rollbacks, deletes) is
    ``FAILED``.
    """

    ABSENT = "ABSENT"
    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    UPDATE_IN_PROGRESS = "UPDATE_IN_PROGRESS"
    CREATE_COMPLETE = "CREATE_COMPLETE"
    UPDATE_COMPLETE = "UPDATE_COMPLETE"
    CLEANUP_IN_PROGRESS = "CLEANUP_IN_PROGRESS"
    FAILED = "FAILED"

    @property
    def is_in_progress(self) -> bool:
        return self in _IN_PROGRESS

    @property
    def is_success(self) -> bool:
        return self in _SUCCESS

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_IN_PROGRESS = frozenset(
    {
        StackStatus.CREATE_IN_PROGRESS,
        StackStatus.UPDATE_IN_PROGRESS,
        StackStatus.CLEANUP_IN_PROGRESS,
    }
)
_SUCCESS = frozenset({StackStatus.CREATE_COMPLETE, StackStatus.UPDATE_COMPLETE})
_TERMINAL = _SUCCESS | {StackStatus.FAILED}

_RAW_STATUS = {
    "CREATE_IN_PROGRESS": StackStatus.CREATE_IN_PROGRESS,
    "UPDATE_IN_PROGRESS": StackStatus.UPDATE_IN_PROGRESS,
    "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS": StackStatus.CLEANUP_IN_PROGRESS,
    "CREATE_COMPLETE": StackStatus.CREATE_COMPLETE,
    "UPDATE_COMPLETE": StackStatus.UPDATE_COMPLETE,
}


def classify_status(raw: str | None) -> StackStatus:
    """Map a CloudFormation ``StackStatus`` onto :class:`StackStatus`.

    ``None`` means the stack does not exist.
    """
    if raw is None:
        return StackStatus.ABSENT
    return _RAW_STATUS.get(raw, StackStatus.FAILED)


@dataclass(frozen=True, slots=True)
class StackOutput:
    key: str
    value: str
    description: str | None = None
    export_name: str | None = None


@dataclass(frozen=True, slots=True)
class StackDescription:
    name: str
    status: StackStatus
    raw_status: str | None
    outputs: tuple[StackOutput, ...] = ()
    parameters: tuple[tuple[str, str], ...] = ()
    reason: str | None = None

    @property
    def exists(self) -> bool:
        return self.status is not StackStatus.ABSENT


@dataclass(frozen=True, slots=True)
class StackRequest:
    """A validated create/update request."""

    name: str
    template_body: str
    parameters: tuple[dict[str, object], ...]
    capabilities: tuple[str, ...] = ("CAPABILITY_NAMED_IAM", "CAPABILITY_AUTO_EXPAND")


# Poll outcomes


@dataclass(frozen=True, slots=True)
class StackSucceeded:
    name: str
    status: StackStatus
    outputs: tuple[StackOutput, ...]


@dataclass(frozen=True, slots=True)
class StackFailed:
    name: str
    raw_status: str | None
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class PollCancelled:
    name: str
    last_status: StackStatus | None


PollOutcome = StackSucceeded | StackFailed | PollCancelled
