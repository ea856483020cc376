"""Assemble a ready-to-run `DeploymentPipeline` from the worker configuration."""

from __future__ import annotations

from pathlib import Path

from onepaas.container.engine import DockerCliEngine
from onepaas.core.config import Config
from onepaas.core.workspace import WorkspaceAllocator
from onepaas.git.fetcher import SourceFetcher
from onepaas.output.console import ConsoleProtocol
from onepaas.platform.storage import LocalStorage
from onepaas.services.chart import ChartMaterializer, TemplateCatalog
from onepaas.services.image import ImagePublisher
from onepaas.services.release import ReleaseInstaller

from .activities import DeploymentActivities
from .orchestrator import DeploymentPipeline, TransitionObserver
from .runner import ActivityRegistry, LocalStepRunner

__all__ = ["build_activities", "build_pipeline"]


def build_activities(config: Config, console: ConsoleProtocol) -> DeploymentActivities:
    engine = DockerCliEngine(docker=config.engine.docker, console=console)
    return DeploymentActivities(
        allocator=WorkspaceAllocator(LocalStorage(Path(config.workspace.base_dir))),
        fetcher=SourceFetcher(console=console),
        publisher=ImagePublisher(engine, console=console),
        materializer=ChartMaterializer(
            TemplateCatalog.from_package(),
            dependency_repository=config.helm.repo_url,
            console=console,
        ),
        installer=ReleaseInstaller(engine, helm=config.helm, console=console),
    )


def build_pipeline(
    config: Config,
    console: ConsoleProtocol,
    *,
    on_transition: TransitionObserver | None = None,
) -> DeploymentPipeline:
    registry = ActivityRegistry()
    build_activities(config, console).register(registry)

    return DeploymentPipeline(
        LocalStepRunner(registry, console=console),
        console=console,
        policy=config.policy,
        on_transition=on_transition,
    )
