"""Container engine adapters."""

from onepaas.container.engine import (
    ContainerEngine,
    ContainerRun,
    DockerCliEngine,
    EngineFailure,
)

__all__ = [
    "ContainerEngine",
    "ContainerRun",
    "DockerCliEngine",
    "EngineFailure",
]
