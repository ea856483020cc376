"""Containerized `helm upgrade --install` of a materialized chart.

The helm image runs with the chart mounted at /chart. The bearer token and
the cluster CA arrive on stdin: the first line is the token, the rest is the
CA. A small shell script exports the token, writes the CA to a file outside
the mount, registers the chart repository, builds the chart dependencies and
upgrades (or installs) the release. The container exit code is the only
success signal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from onepaas.container.engine import ContainerEngine, ContainerRun
from onepaas.core.config import HelmConfig
from onepaas.core.deadline import Deadline
from onepaas.core.result import Err, Ok, Result
from onepaas.core.step_errors import (
    ChartMaterializeFailed,
    EngineUnavailable,
    HelmUpgradeFailed,
    OperationTimedOut,
    StepError,
)
from onepaas.output.console import ConsoleProtocol, MockConsole

from .chart import chart_path

__all__ = [
    "CHART_MOUNT",
    "KUBE_CA_FILE",
    "ReleaseInstaller",
    "UpgradeInstallParam",
]

CHART_MOUNT = "/chart"
KUBE_CA_FILE = "/tmp/kube-ca.crt"

# $1 repo name, $2 repo url, $3 namespace, $4 release name.
_HELM_SCRIPT = """set -e
IFS= read -r HELM_KUBETOKEN
export HELM_KUBETOKEN
cat > "$HELM_KUBECAFILE"
helm repo add "$1" "$2"
helm dependency build
exec helm --namespace "$3" upgrade --install --cleanup-on-fail "$4" .
"""


@dataclass(frozen=True, slots=True)
class UpgradeInstallParam:
    """Parameters of the release step.

    Attributes:
        repository_path: Checkout holding `.onepaas/chart`.
        application_slug: Release name.
        kubernetes_ca: PEM encoded CA of the API server.
        kubernetes_api_server: API server URL.
        kubernetes_token: Bearer token. Never printed.
        kubernetes_namespace: Release namespace.
    """

    repository_path: str
    application_slug: str
    kubernetes_api_server: str = ""
    kubernetes_ca: str = field(default="", repr=False)
    kubernetes_token: str = field(default="", repr=False)
    kubernetes_namespace: str = "default"


class ReleaseInstaller:
    def __init__(
        self,
        engine: ContainerEngine,
        *,
        helm: HelmConfig | None = None,
        console: ConsoleProtocol | None = None,
    ) -> None:
        self._engine = engine
        self._helm = helm if helm is not None else HelmConfig()
        self._console: ConsoleProtocol = console if console is not None else MockConsole()

    def container_spec(self, param: UpgradeInstallParam) -> ContainerRun:
        chart_dir = chart_path(Path(param.repository_path).absolute())
        return ContainerRun(
            image=self._helm.image,
            entrypoint="sh",
            command=(
                "-c",
                _HELM_SCRIPT,
                "helm",
                self._helm.repo_name,
                self._helm.repo_url,
                param.kubernetes_namespace,
                param.application_slug,
            ),
            workdir=CHART_MOUNT,
            mounts=((chart_dir, CHART_MOUNT),),
            env=(
                ("HELM_KUBEAPISERVER", param.kubernetes_api_server),
                ("HELM_KUBECAFILE", KUBE_CA_FILE),
            ),
            stdin=f"{param.kubernetes_token}\n{param.kubernetes_ca}",
        )

    def upgrade_install(
        self,
        param: UpgradeInstallParam,
        *,
        deadline: Deadline | None = None,
    ) -> Result[None, StepError]:
        """Upgrade the release, installing it if it does not exist.

        Returns:
            Ok(None) when helm exits 0
            Err(HelmUpgradeFailed) with the exit code otherwise
            Err(EngineUnavailable) if the helm container could not be started
            Err(OperationTimedOut) if the deadline elapsed
            Err(ChartMaterializeFailed) if the repository has no chart
        """
        deadline = deadline if deadline is not None else Deadline.unbounded()
        chart_dir = chart_path(param.repository_path)
        if not chart_dir.is_dir():
            return Err(ChartMaterializeFailed(path=str(chart_dir), reason="chart directory does not exist"))

        self._console.info(
            f"upgrading release {param.application_slug} in namespace {param.kubernetes_namespace}"
        )
        timeout = deadline.remaining()
        result = self._engine.run(self.container_spec(param), timeout=timeout)
        if isinstance(result, Err):
            failure = result.error
            if failure.timed_out:
                return Err(OperationTimedOut(operation="helm upgrade", timeout=timeout))
            return Err(EngineUnavailable(operation="helm upgrade", reason=failure.message))

        exit_code = result.value
        if exit_code != 0:
            return Err(
                HelmUpgradeFailed(
                    release=param.application_slug,
                    namespace=param.kubernetes_namespace,
                    exit_code=exit_code,
                )
            )

        self._console.success(f"release {param.application_slug} is up to date")
        return Ok(None)
