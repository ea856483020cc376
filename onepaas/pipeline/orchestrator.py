"""Linear deployment pipeline: clone, build and publish, chart, release.

    START -> CLONING -> BUILDING -> CHART_PENDING -> RELEASING -> DONE

Any step failure moves the run to FAILED.

Each step runs through a `StepRunner` under the pipeline's `StepPolicy`. The
first failure stops the run; nothing already done is undone.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum

from onepaas.core.policy import DEFAULT_STEP_POLICY, StepPolicy
from onepaas.core.request import DeploymentRequest
from onepaas.core.result import Err, Ok, Result
from onepaas.core.step_errors import StepError, UnknownActivity
from onepaas.output.console import ConsoleProtocol, MockConsole
from onepaas.output.errors import print_pipeline_failure
from onepaas.services.chart import ChartOutcome, ChartValues
from onepaas.services.image import (
    DEFAULT_IMAGE_TAG,
    DEFAULT_REGISTRY_ADDRESS,
    BuildAndPublishParam,
)
from onepaas.services.release import UpgradeInstallParam

from .activities import (
    DOCKER_BUILD_AND_PUBLISH,
    GIT_CLONE,
    HELM_CREATE_CHART,
    HELM_UPGRADE_INSTALL,
    CloneParam,
    CloneResult,
    CreateChartParam,
)
from .fsm import StepOutcome, advance, finish, run_state_machine
from .runner import StepRunner

__all__ = [
    "DeploymentPipeline",
    "PipelineFailure",
    "PipelineRun",
    "PipelineState",
]


class PipelineState(StrEnum):
    START = "start"
    CLONING = "cloning"
    BUILDING = "building"
    CHART_PENDING = "chart_pending"
    RELEASING = "releasing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PipelineRun:
    """State of one run, replaced (never mutated) at each transition."""

    request: DeploymentRequest
    state: PipelineState = PipelineState.START
    repository_path: str = ""
    image_address: str = ""
    chart_created: bool = False
    history: tuple[PipelineState, ...] = (PipelineState.START,)


@dataclass(frozen=True, slots=True)
class PipelineFailure:
    """The step that failed, its error, and the states entered before it."""

    stage: PipelineState
    error: StepError
    history: tuple[PipelineState, ...]

    @property
    def message(self) -> str:
        return f"{self.stage} failed: {self.error.message}"


type TransitionObserver = Callable[[PipelineRun], None]

type _Handler = Callable[[PipelineRun], Result[StepOutcome[PipelineRun], PipelineFailure]]


class DeploymentPipeline:
    def __init__(
        self,
        runner: StepRunner,
        *,
        console: ConsoleProtocol | None = None,
        policy: StepPolicy = DEFAULT_STEP_POLICY,
        on_transition: TransitionObserver | None = None,
    ) -> None:
        self._runner = runner
        self._console: ConsoleProtocol = console if console is not None else MockConsole()
        self._policy = policy
        self._on_transition = on_transition

    def run(self, request: DeploymentRequest) -> Result[PipelineRun, PipelineFailure]:
        """Run the four steps in order for `request`.

        Returns:
            Ok(PipelineRun) in state DONE
            Err(PipelineFailure) naming the state that failed
        """
        name = request.application_slug or request.repository_url
        self._console.header(f"Deploying {name}")

        initial = PipelineRun(request=request)
        self._notify(initial)

        handlers: dict[str, _Handler] = {
            PipelineState.START: self._start,
            PipelineState.CLONING: self._clone,
            PipelineState.BUILDING: self._build,
            PipelineState.CHART_PENDING: self._chart,
            PipelineState.RELEASING: self._release,
            PipelineState.DONE: _finish,
        }
        result = run_state_machine(
            initial_state=initial,
            get_step=lambda run: run.state,
            handlers=handlers,
            save_state=self._save,
            unknown_step=lambda run, step: PipelineFailure(
                stage=run.state, error=UnknownActivity(name=step), history=run.history
            ),
        )

        if isinstance(result, Err):
            failure = result.error
            self._notify(
                PipelineRun(
                    request=request,
                    state=PipelineState.FAILED,
                    history=(*failure.history, PipelineState.FAILED),
                )
            )
            print_pipeline_failure(failure, self._console)
            return result

        self._console.success(f"{name} deployed ({result.value.image_address})")
        return result

    def _save(self, run: PipelineRun) -> Result[PipelineRun, PipelineFailure]:
        saved = replace(run, history=(*run.history, run.state))
        self._notify(saved)
        return Ok(saved)

    def _notify(self, run: PipelineRun) -> None:
        self._console.print(f"[{run.state}]")
        if self._on_transition is not None:
            self._on_transition(run)

    def _execute(self, run: PipelineRun, name: str, param: object) -> Result[object, PipelineFailure]:
        result = self._runner.execute(name, param, self._policy)
        if isinstance(result, Err):
            return Err(PipelineFailure(stage=run.state, error=result.error, history=run.history))
        return result

    def _start(self, run: PipelineRun) -> Result[StepOutcome[PipelineRun], PipelineFailure]:
        return Ok(advance(replace(run, state=PipelineState.CLONING)))

    def _clone(self, run: PipelineRun) -> Result[StepOutcome[PipelineRun], PipelineFailure]:
        req = run.request
        param = CloneParam(url=req.repository_url, branch=req.branch, tag=req.tag, ref=req.ref)
        result = self._execute(run, GIT_CLONE, param)
        if isinstance(result, Err):
            return result
        cloned = _expect(result.value, CloneResult)
        return Ok(
            advance(
                replace(run, state=PipelineState.BUILDING, repository_path=cloned.repository_path)
            )
        )

    def _build(self, run: PipelineRun) -> Result[StepOutcome[PipelineRun], PipelineFailure]:
        req = run.request
        param = BuildAndPublishParam(
            work_directory=run.repository_path,
            image_repository=req.image_repository,
            registry_address=_registry(req),
            registry_username=req.registry.username,
            registry_secret=req.registry.secret,
            image_tag=_tag(req),
        )
        result = self._execute(run, DOCKER_BUILD_AND_PUBLISH, param)
        if isinstance(result, Err):
            return result
        address = _expect(result.value, str)
        return Ok(advance(replace(run, state=PipelineState.CHART_PENDING, image_address=address)))

    def _chart(self, run: PipelineRun) -> Result[StepOutcome[PipelineRun], PipelineFailure]:
        req = run.request
        values = ChartValues(
            application_name=req.application_name,
            application_slug=req.application_slug,
            application_hostname=req.application_hostname,
            image_registry=_registry(req),
            image_repository=req.image_repository,
            image_tag=_tag(req),
            ingress_class=req.ingress_class,
        )
        param = CreateChartParam(repository_path=run.repository_path, values=values)
        result = self._execute(run, HELM_CREATE_CHART, param)
        if isinstance(result, Err):
            return result
        outcome = _expect(result.value, ChartOutcome)
        return Ok(
            advance(replace(run, state=PipelineState.RELEASING, chart_created=outcome.created))
        )

    def _release(self, run: PipelineRun) -> Result[StepOutcome[PipelineRun], PipelineFailure]:
        req = run.request
        param = UpgradeInstallParam(
            repository_path=run.repository_path,
            application_slug=req.application_slug,
            kubernetes_api_server=req.cluster.api_server,
            kubernetes_ca=req.cluster.ca,
            kubernetes_token=req.cluster.token,
            kubernetes_namespace=req.cluster.namespace,
        )
        result = self._execute(run, HELM_UPGRADE_INSTALL, param)
        if isinstance(result, Err):
            return result
        return Ok(advance(replace(run, state=PipelineState.DONE)))


def _finish(run: PipelineRun) -> Result[StepOutcome[PipelineRun], PipelineFailure]:
    return Ok(finish(run))


def _registry(req: DeploymentRequest) -> str:
    return req.registry.address or DEFAULT_REGISTRY_ADDRESS


def _tag(req: DeploymentRequest) -> str:
    return req.image_tag or DEFAULT_IMAGE_TAG


def _expect[T](value: object, kind: type[T]) -> T:
    if not isinstance(value, kind):
        raise TypeError(f"unexpected activity result {type(value).__name__}, expected {kind.__name__}")
    return value
