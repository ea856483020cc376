"""Tests for onepaas.services.release module."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from onepaas.container.engine import ContainerRun, DockerCliEngine, EngineFailure
from onepaas.core.config import HelmConfig
from onepaas.core.result import Err, Ok, Result
from onepaas.core.step_errors import (
    ChartMaterializeFailed,
    EngineUnavailable,
    HelmUpgradeFailed,
    OperationTimedOut,
)
from onepaas.output.console import MockConsole
from onepaas.services.release import KUBE_CA_FILE, ReleaseInstaller, UpgradeInstallParam

CA = "-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----\n"


@dataclass
class RunEngine:
    """Container engine double that only runs containers."""

    outcome: Result[int, EngineFailure] = field(default_factory=lambda: Ok(0))
    runs: list[ContainerRun] = field(default_factory=list)

    def run(self, spec: ContainerRun, *, timeout: float | None = None) -> Result[int, EngineFailure]:
        self.runs.append(spec)
        return self.outcome

    def build(
        self, *, context_dir: Path, dockerfile: Path, tag: str, timeout: float | None = None
    ) -> Result[None, EngineFailure]:
        raise AssertionError("not used")

    def login(
        self, *, registry: str, username: str, secret: str, timeout: float | None = None
    ) -> Result[None, EngineFailure]:
        raise AssertionError("not used")

    def push(self, *, address: str, timeout: float | None = None) -> Result[None, EngineFailure]:
        raise AssertionError("not used")

    @contextmanager
    def isolated(self) -> Iterator[RunEngine]:
        yield self


def _repo(tmp_path: Path) -> Path:
    (tmp_path / ".onepaas" / "chart").mkdir(parents=True)
    return tmp_path


def _param(repo: Path) -> UpgradeInstallParam:
    return UpgradeInstallParam(
        repository_path=str(repo),
        application_slug="acme-app",
        kubernetes_api_server="https://k8s.acme.test:6443",
        kubernetes_ca=CA,
        kubernetes_token="bearer-token",
        kubernetes_namespace="apps",
    )


class TestExitCode:
    def test_zero_is_success(self, tmp_path: Path) -> None:
        engine = RunEngine(Ok(0))
        console = MockConsole()

        result = ReleaseInstaller(engine, console=console).upgrade_install(_param(_repo(tmp_path)))

        assert result == Ok(None)
        assert console.find("release acme-app is up to date")

    def test_non_zero_is_helm_failure(self, tmp_path: Path) -> None:
        engine = RunEngine(Ok(1))

        result = ReleaseInstaller(engine).upgrade_install(_param(_repo(tmp_path)))

        assert result == Err(HelmUpgradeFailed(release="acme-app", namespace="apps", exit_code=1))
        assert not result.error.retryable

    def test_launch_failure(self, tmp_path: Path) -> None:
        engine = RunEngine(Err(EngineFailure("run", "Cannot connect to the Docker daemon", 125, launched=False)))

        result = ReleaseInstaller(engine).upgrade_install(_param(_repo(tmp_path)))

        assert isinstance(result, Err)
        assert isinstance(result.error, EngineUnavailable)
        assert "Docker daemon" in result.error.message

    def test_timeout(self, tmp_path: Path) -> None:
        engine = RunEngine(Err(EngineFailure("run", "", timed_out=True)))

        result = ReleaseInstaller(engine).upgrade_install(_param(_repo(tmp_path)))

        assert isinstance(result, Err)
        assert isinstance(result.error, OperationTimedOut)

    def test_missing_chart(self, tmp_path: Path) -> None:
        engine = RunEngine()

        result = ReleaseInstaller(engine).upgrade_install(_param(tmp_path))

        assert isinstance(result, Err)
        assert isinstance(result.error, ChartMaterializeFailed)
        assert engine.runs == []


class TestContainerSpec:
    def test_mount_and_workdir(self, tmp_path: Path) -> None:
        spec = ReleaseInstaller(RunEngine()).container_spec(_param(tmp_path))

        assert spec.mounts == ((tmp_path / ".onepaas" / "chart", "/chart"),)
        assert spec.workdir == "/chart"

    def test_image_and_repository_from_config(self, tmp_path: Path) -> None:
        helm = HelmConfig(image="alpine/helm:3.14.0", repo_name="internal", repo_url="https://charts.internal")

        spec = ReleaseInstaller(RunEngine(), helm=helm).container_spec(_param(tmp_path))

        assert spec.image == "alpine/helm:3.14.0"
        assert spec.command[-4:] == ("internal", "https://charts.internal", "apps", "acme-app")

    def test_default_image(self, tmp_path: Path) -> None:
        spec = ReleaseInstaller(RunEngine()).container_spec(_param(tmp_path))

        assert spec.image == "alpine/helm:3.11.3"
        assert spec.command[-4:] == (
            "companyinfo",
            "https://companyinfo.github.io/helm-charts",
            "apps",
            "acme-app",
        )

    def test_script_steps(self, tmp_path: Path) -> None:
        spec = ReleaseInstaller(RunEngine()).container_spec(_param(tmp_path))
        script = spec.command[1]

        assert spec.entrypoint == "sh"
        assert spec.command[0] == "-c"
        assert script.index("helm repo add") < script.index("helm dependency build")
        assert script.index("helm dependency build") < script.index("upgrade --install --cleanup-on-fail")

    def test_cluster_settings(self, tmp_path: Path) -> None:
        spec = ReleaseInstaller(RunEngine()).container_spec(_param(tmp_path))

        assert dict(spec.env) == {
            "HELM_KUBEAPISERVER": "https://k8s.acme.test:6443",
            "HELM_KUBECAFILE": KUBE_CA_FILE,
        }
        assert spec.stdin == f"bearer-token\n{CA}"

    def test_script_reads_secrets_from_stdin(self, tmp_path: Path) -> None:
        spec = ReleaseInstaller(RunEngine()).container_spec(_param(tmp_path))
        script = spec.command[1]

        assert script.index("read -r HELM_KUBETOKEN") < script.index('cat > "$HELM_KUBECAFILE"')
        assert script.index('cat > "$HELM_KUBECAFILE"') < script.index("helm repo add")

    def test_secrets_never_reach_the_container_config(self, tmp_path: Path) -> None:
        spec = ReleaseInstaller(RunEngine()).container_spec(_param(tmp_path))

        cmd = DockerCliEngine().run_command(spec, name="onepaas-abc")
        env_pairs = [cmd[i + 1] for i, arg in enumerate(cmd) if arg == "--env"]
        assert "--interactive" in cmd
        assert not any("HELM_KUBETOKEN" in pair for pair in env_pairs)
        assert "bearer-token" not in " ".join(cmd)
        assert "BEGIN CERTIFICATE" not in " ".join(cmd)

    def test_secrets_stay_out_of_arguments(self, tmp_path: Path) -> None:
        spec = ReleaseInstaller(RunEngine()).container_spec(_param(tmp_path))

        flat = " ".join([*spec.command, *(v for _, v in spec.env)])
        assert "bearer-token" not in flat
        assert "BEGIN CERTIFICATE" not in flat
        assert "bearer-token" not in repr(spec)
        assert "bearer-token" not in repr(_param(tmp_path))

    def test_ca_file_is_outside_the_mount(self) -> None:
        assert not KUBE_CA_FILE.startswith("/chart")
