"""Deployment pipeline: named activities, step runner and orchestrator."""

from onepaas.pipeline.activities import (
    DOCKER_BUILD_AND_PUBLISH,
    GIT_CLONE,
    HELM_CREATE_CHART,
    HELM_UPGRADE_INSTALL,
    CloneParam,
    CloneResult,
    CreateChartParam,
    DeploymentActivities,
)
from onepaas.pipeline.orchestrator import (
    DeploymentPipeline,
    PipelineFailure,
    PipelineRun,
    PipelineState,
)
from onepaas.pipeline.runner import ActivityRegistry, LocalStepRunner, StepContext, StepRunner

__all__ = [
    "DOCKER_BUILD_AND_PUBLISH",
    "GIT_CLONE",
    "HELM_CREATE_CHART",
    "HELM_UPGRADE_INSTALL",
    "ActivityRegistry",
    "CloneParam",
    "CloneResult",
    "CreateChartParam",
    "DeploymentActivities",
    "DeploymentPipeline",
    "LocalStepRunner",
    "PipelineFailure",
    "PipelineRun",
    "PipelineState",
    "StepContext",
    "StepRunner",
]
