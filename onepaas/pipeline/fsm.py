from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from onepaas.core.result import Err, Ok, Result


@dataclass(frozen=True, slots=True)
class StepAdvance[S]:
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish[S]:
    session: S


type StepOutcome[S] = StepAdvance[S] | StepFinish[S]
type StepHandler[S, E] = Callable[[S], Result[StepOutcome[S], E]]
type SaveState[S, E] = Callable[[S], Result[S, E]]
type GetStep[S] = Callable[[S], str]


def advance[S](session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


def finish[S](session: S) -> StepFinish[S]:
    return StepFinish(session=session)


def run_state_machine[S, E](
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S, E]],
    save_state: SaveState[S, E],
    unknown_step: Callable[[S, str], E],
) -> Result[S, E]:
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            return Err(unknown_step(current, step))

        outcome = handler(current)
        if isinstance(outcome, Err):
            return outcome

        if isinstance(outcome.value, StepFinish):
            return Ok(outcome.value.session)

        current = outcome.value.session
        saved = save_state(current)
        if isinstance(saved, Err):
            return saved
        current = saved.value
