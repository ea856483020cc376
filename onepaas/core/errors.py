"""Exit codes for the `onepaas` CLI.

Each pipeline stage maps to its own code so wrappers (CI jobs, schedulers)
can tell a bad request from a failed release without parsing output.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values are stable.

    - 0: Success
    - 1: User error (bad input, no source reference)
    - 2: Environment error (unreadable config, engine unavailable)
    - 3: Source error (clone failed)
    - 4: Image error (build, login or push failed)
    - 5: Chart error (chart could not be materialized)
    - 6: Release error (helm returned non-zero)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    SOURCE_ERROR = 3
    IMAGE_ERROR = 4
    CHART_ERROR = 5
    RELEASE_ERROR = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
