"""Error codes for CLI exit status.

Every command maps its failure onto one of these codes so scripts and CI
jobs driving ``slseed --auto`` can tell failure classes apart.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad input, missing build output, already deployed)
    - 2: Environment error (missing config, unknown stage, no credentials)
    - 3: Deploy error (upload, cutover or stack operation rejected)
    - 4: Network error (AWS endpoint unreachable, throttled)
    - 5: I/O error (the build command failed)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    DEPLOY_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
