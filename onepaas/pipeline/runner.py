"""Execute named activities under a step policy.

`StepRunner` is the seam a durable execution service would implement.
`LocalStepRunner` applies the policy in-process: each attempt gets a deadline
of `start_to_close` (capped by what is left of `schedule_to_close`), and only
retryable errors are re-attempted, at a fixed interval, while attempts remain.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from onepaas.core.deadline import Deadline
from onepaas.core.policy import DEFAULT_STEP_POLICY, StepPolicy
from onepaas.core.result import Err, Result
from onepaas.core.step_errors import StepError, UnknownActivity
from onepaas.output.console import ConsoleProtocol, MockConsole

__all__ = [
    "Activity",
    "ActivityRegistry",
    "LocalStepRunner",
    "RETRY_INTERVAL_SECONDS",
    "StepContext",
    "StepRunner",
]

RETRY_INTERVAL_SECONDS = 1.0


@dataclass(frozen=True, slots=True)
class StepContext:
    """What an activity gets besides its parameter."""

    name: str
    attempt: int
    deadline: Deadline
    console: ConsoleProtocol


type Activity = Callable[[StepContext, Any], Result[Any, StepError]]


class StepRunner(Protocol):
    def execute(
        self, name: str, param: object, policy: StepPolicy = DEFAULT_STEP_POLICY
    ) -> Result[object, StepError]: ...


class ActivityRegistry:
    """Activities by name."""

    def __init__(self) -> None:
        self._activities: dict[str, Activity] = {}

    def register(self, name: str, activity: Activity) -> None:
        if name in self._activities:
            raise ValueError(f"activity already registered: {name}")
        self._activities[name] = activity

    def get(self, name: str) -> Activity | None:
        return self._activities.get(name)

    def names(self) -> list[str]:
        return sorted(self._activities)


class LocalStepRunner:
    def __init__(
        self,
        registry: ActivityRegistry,
        *,
        console: ConsoleProtocol | None = None,
        retry_interval: float = RETRY_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._registry = registry
        self._console: ConsoleProtocol = console if console is not None else MockConsole()
        self._retry_interval = retry_interval
        self._sleep = sleep

    def execute(
        self, name: str, param: object, policy: StepPolicy = DEFAULT_STEP_POLICY
    ) -> Result[object, StepError]:
        activity = self._registry.get(name)
        if activity is None:
            return Err(UnknownActivity(name=name))

        schedule = Deadline.after(policy.schedule_to_close)
        attempt = 0
        while True:
            attempt += 1
            deadline = Deadline.after(policy.start_to_close).earliest(schedule)
            ctx = StepContext(name=name, attempt=attempt, deadline=deadline, console=self._console)

            result = activity(ctx, param)
            if not isinstance(result, Err):
                return result

            error = result.error
            if not error.retryable or attempt >= policy.max_attempts:
                return result
            remaining = schedule.remaining()
            if remaining is not None and remaining <= self._retry_interval:
                return result

            self._console.warning(
                f"{name} attempt {attempt}/{policy.max_attempts} failed: {error.message}"
            )
            self._sleep(self._retry_interval)
