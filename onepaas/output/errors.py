"""Error presentation utilities.

Centralized error formatting and exit code mapping for step errors and
pipeline failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from onepaas.core.errors import ErrorCode
from onepaas.core.step_errors import (
    ChartMaterializeFailed,
    CloneFailed,
    EngineUnavailable,
    HelmUpgradeFailed,
    IdentifierGenerationFailed,
    ImagePublishFailed,
    NoReferenceSpecified,
    OperationTimedOut,
    StepError,
    StorageFailed,
    UnknownActivity,
)
from onepaas.output.console import Style

if TYPE_CHECKING:
    from onepaas.output.console import ConsoleProtocol
    from onepaas.pipeline.orchestrator import PipelineFailure

__all__ = [
    "pipeline_failure_exit_code",
    "print_pipeline_failure",
    "print_step_error",
    "step_error_exit_code",
    "step_error_hint",
]


def step_error_hint(error: StepError) -> str | None:
    match error:
        case NoReferenceSpecified():
            return "set one of --branch, --tag or --ref"
        case CloneFailed():
            return "check the repository URL, the reference name and the access rights"
        case ImagePublishFailed(stage="build"):
            return "check the Dockerfile path and the build output above"
        case ImagePublishFailed(stage="login"):
            return "check the registry address, username and secret"
        case EngineUnavailable():
            return "is the docker daemon running and reachable?"
        case OperationTimedOut():
            return "raise policy.start_to_close_seconds in the worker config"
        case HelmUpgradeFailed():
            return "see the helm output above"
        case _:
            return None


def print_step_error(error: StepError, console: ConsoleProtocol) -> None:
    """Print a step error to console with its hint, if any."""
    console.error(error.message)
    hint = step_error_hint(error)
    if hint:
        console.print(f"hint: {hint}", Style.DIM)


def print_pipeline_failure(failure: PipelineFailure, console: ConsoleProtocol) -> None:
    console.error(f"{failure.stage} failed: {failure.error.message}")
    hint = step_error_hint(failure.error)
    if hint:
        console.print(f"hint: {hint}", Style.DIM)


def step_error_exit_code(error: StepError) -> int:
    """Get exit code for a step error."""
    match error:
        case NoReferenceSpecified():
            return int(ErrorCode.USER_ERROR)
        case IdentifierGenerationFailed() | StorageFailed() | EngineUnavailable() | UnknownActivity():
            return int(ErrorCode.ENV_ERROR)
        case CloneFailed():
            return int(ErrorCode.SOURCE_ERROR)
        case ImagePublishFailed():
            return int(ErrorCode.IMAGE_ERROR)
        case ChartMaterializeFailed():
            return int(ErrorCode.CHART_ERROR)
        case HelmUpgradeFailed():
            return int(ErrorCode.RELEASE_ERROR)
        case OperationTimedOut():
            return int(ErrorCode.ENV_ERROR)


def pipeline_failure_exit_code(failure: PipelineFailure) -> int:
    """Exit code for a failed run; timeouts count against the stage they hit."""
    if not isinstance(failure.error, OperationTimedOut):
        return step_error_exit_code(failure.error)
    match failure.stage:
        case "cloning":
            return int(ErrorCode.SOURCE_ERROR)
        case "building":
            return int(ErrorCode.IMAGE_ERROR)
        case "chart_pending":
            return int(ErrorCode.CHART_ERROR)
        case "releasing":
            return int(ErrorCode.RELEASE_ERROR)
        case _:
            return int(ErrorCode.ENV_ERROR)
