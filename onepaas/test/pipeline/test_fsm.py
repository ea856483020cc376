from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace

from onepaas.core.result import Err, Ok, Result
from onepaas.pipeline.fsm import StepOutcome, advance, finish, run_state_machine


@dataclass(frozen=True, slots=True)
class Session:
    step: str
    visited: tuple[str, ...] = ()


def _to(step: str) -> Callable[[Session], Result[StepOutcome[Session], str]]:
    def handler(s: Session) -> Result[StepOutcome[Session], str]:
        return Ok(advance(replace(s, step=step, visited=(*s.visited, s.step))))

    return handler


def _done(s: Session) -> Result[StepOutcome[Session], str]:
    return Ok(finish(s))


def test_runs_until_finish() -> None:
    saved: list[str] = []

    def save(s: Session) -> Result[Session, str]:
        saved.append(s.step)
        return Ok(s)

    result = run_state_machine(
        initial_state=Session(step="a"),
        get_step=lambda s: s.step,
        handlers={"a": _to("b"), "b": _to("c"), "c": _done},
        save_state=save,
        unknown_step=lambda s, step: f"unknown {step}",
    )

    assert result == Ok(Session(step="c", visited=("a", "b")))
    assert saved == ["b", "c"]


def test_handler_error_stops() -> None:
    def boom(s: Session) -> Result[StepOutcome[Session], str]:
        return Err("boom")

    result = run_state_machine(
        initial_state=Session(step="a"),
        get_step=lambda s: s.step,
        handlers={"a": _to("b"), "b": boom, "c": _done},
        save_state=Ok,
        unknown_step=lambda s, step: f"unknown {step}",
    )

    assert result == Err("boom")


def test_unknown_step() -> None:
    result = run_state_machine(
        initial_state=Session(step="a"),
        get_step=lambda s: s.step,
        handlers={"a": _to("zzz")},
        save_state=Ok,
        unknown_step=lambda s, step: f"unknown {step}",
    )

    assert result == Err("unknown zzz")


def test_save_error_stops() -> None:
    result = run_state_machine(
        initial_state=Session(step="a"),
        get_step=lambda s: s.step,
        handlers={"a": _to("b"), "b": _done},
        save_state=lambda s: Err("disk full"),
        unknown_step=lambda s, step: f"unknown {step}",
    )

    assert result == Err("disk full")
