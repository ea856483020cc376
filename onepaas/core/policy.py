"""Per-step execution policy handed to the step runner."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_SCHEDULE_TO_CLOSE_SECONDS",
    "DEFAULT_START_TO_CLOSE_SECONDS",
    "DEFAULT_STEP_POLICY",
    "StepPolicy",
]

DEFAULT_SCHEDULE_TO_CLOSE_SECONDS = 60 * 60.0
DEFAULT_START_TO_CLOSE_SECONDS = 10 * 60.0
DEFAULT_MAX_ATTEMPTS = 1


@dataclass(frozen=True, slots=True)
class StepPolicy:
    """Timeouts and attempt budget for one step.

    Attributes:
        schedule_to_close: End-to-end budget for the step, all attempts included.
        start_to_close: Budget for a single attempt.
        max_attempts: Upper bound on attempts. Only retryable errors are re-attempted.
    """

    schedule_to_close: float = DEFAULT_SCHEDULE_TO_CLOSE_SECONDS
    start_to_close: float = DEFAULT_START_TO_CLOSE_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS


DEFAULT_STEP_POLICY = StepPolicy()
