"""The four deployment activities, registered under stable names.

Each activity takes a `StepContext` and one parameter object, and returns a
`Result` whose error is a `StepError`.
"""

from __future__ import annotations

from dataclasses import dataclass

from onepaas.core.result import Err, Ok, Result
from onepaas.core.step_errors import StepError
from onepaas.core.workspace import WorkspaceAllocator
from onepaas.git.fetcher import SourceFetcher
from onepaas.git.reference import resolve_reference
from onepaas.services.chart import ChartMaterializer, ChartOutcome, ChartValues
from onepaas.services.image import BuildAndPublishParam, ImagePublisher
from onepaas.services.release import ReleaseInstaller, UpgradeInstallParam

from .runner import ActivityRegistry, StepContext

__all__ = [
    "DOCKER_BUILD_AND_PUBLISH",
    "GIT_CLONE",
    "HELM_CREATE_CHART",
    "HELM_UPGRADE_INSTALL",
    "CloneParam",
    "CloneResult",
    "CreateChartParam",
    "DeploymentActivities",
]

GIT_CLONE = "GitClone"
DOCKER_BUILD_AND_PUBLISH = "DockerBuildAndPublish"
HELM_CREATE_CHART = "HelmCreateChart"
HELM_UPGRADE_INSTALL = "HelmUpgradeInstall"


@dataclass(frozen=True, slots=True)
class CloneParam:
    url: str
    branch: str = ""
    tag: str = ""
    ref: str = ""


@dataclass(frozen=True, slots=True)
class CloneResult:
    repository_path: str


@dataclass(frozen=True, slots=True)
class CreateChartParam:
    repository_path: str
    values: ChartValues


class DeploymentActivities:
    def __init__(
        self,
        *,
        allocator: WorkspaceAllocator,
        fetcher: SourceFetcher,
        publisher: ImagePublisher,
        materializer: ChartMaterializer,
        installer: ReleaseInstaller,
    ) -> None:
        self._allocator = allocator
        self._fetcher = fetcher
        self._publisher = publisher
        self._materializer = materializer
        self._installer = installer

    def register(self, registry: ActivityRegistry) -> None:
        registry.register(GIT_CLONE, self.git_clone)
        registry.register(DOCKER_BUILD_AND_PUBLISH, self.docker_build_and_publish)
        registry.register(HELM_CREATE_CHART, self.helm_create_chart)
        registry.register(HELM_UPGRADE_INSTALL, self.helm_upgrade_install)

    def git_clone(self, ctx: StepContext, param: CloneParam) -> Result[CloneResult, StepError]:
        workspace = self._allocator.allocate()
        if isinstance(workspace, Err):
            return workspace

        reference = resolve_reference(param.branch, param.tag, param.ref, url=param.url)
        if isinstance(reference, Err):
            return reference

        fetched = self._fetcher.fetch(
            param.url, reference.value, workspace.value, deadline=ctx.deadline
        )
        if isinstance(fetched, Err):
            return fetched
        return Ok(CloneResult(repository_path=fetched.value))

    def docker_build_and_publish(
        self, ctx: StepContext, param: BuildAndPublishParam
    ) -> Result[str, StepError]:
        return self._publisher.build_and_publish(param, deadline=ctx.deadline)

    def helm_create_chart(
        self, ctx: StepContext, param: CreateChartParam
    ) -> Result[ChartOutcome, StepError]:
        return self._materializer.materialize(param.repository_path, param.values)

    def helm_upgrade_install(
        self, ctx: StepContext, param: UpgradeInstallParam
    ) -> Result[None, StepError]:
        return self._installer.upgrade_install(param, deadline=ctx.deadline)
