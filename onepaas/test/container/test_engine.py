"""Tests for onepaas.container.engine module."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

import pytest

import onepaas.container.engine as engine_mod
from onepaas.container.engine import ContainerRun, DockerCliEngine
from onepaas.core.result import Err, Ok, Result
from onepaas.output.console import MockConsole
from onepaas.platform.process import LAUNCH_FAILED, ProcessError


class FakeDocker:
    def __init__(self, results: list[Result[str, ProcessError]] | None = None) -> None:
        self.results = list(results or [])
        self.calls: list[list[str]] = []
        self.envs: list[dict[str, str]] = []
        self.inputs: list[str | None] = []
        self.timeouts: list[float | None] = []

    def __call__(
        self,
        cmd: list[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
        input: str | None = None,
    ) -> Result[str, ProcessError]:
        self.calls.append(cmd)
        self.envs.append(dict(env or {}))
        self.inputs.append(input)
        self.timeouts.append(timeout)
        if self.results:
            return self.results.pop(0)
        return Ok("")


def _error(returncode: int, stderr: str = "", *, timed_out: bool = False) -> Err[ProcessError]:
    return Err(ProcessError(("docker",), returncode, "", stderr, timed_out=timed_out))


def _spec() -> ContainerRun:
    return ContainerRun(
        image="alpine/helm:3.11.3",
        command=("-c", "helm version"),
        entrypoint="sh",
        workdir="/chart",
        mounts=((Path("/tmp/projects/x/.onepaas/chart"), "/chart"),),
        env=(("HELM_KUBEAPISERVER", "https://k8s:6443"),),
        stdin="t0ken\n",
    )


class TestBuildLoginPush:
    def test_build_command(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = FakeDocker()
        monkeypatch.setattr(engine_mod, "run_process", fake)

        result = DockerCliEngine().build(
            context_dir=tmp_path, dockerfile=tmp_path / "Dockerfile", tag="docker.io/acme/app:v1"
        )

        assert result == Ok(None)
        assert fake.calls == [
            [
                "docker",
                "build",
                "--file",
                str(tmp_path / "Dockerfile"),
                "--tag",
                "docker.io/acme/app:v1",
                str(tmp_path),
            ]
        ]

    def test_login_secret_on_stdin_only(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = FakeDocker()
        monkeypatch.setattr(engine_mod, "run_process", fake)
        console = MockConsole()

        DockerCliEngine(console=console).login(registry="docker.io", username="acme", secret="hunter2")

        assert fake.calls == [["docker", "login", "docker.io", "--username", "acme", "--password-stdin"]]
        assert fake.inputs == ["hunter2"]
        assert "hunter2" not in console.text

    def test_push_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(engine_mod, "run_process", FakeDocker([_error(1, "denied: requested access")]))

        result = DockerCliEngine().push(address="docker.io/acme/app:v1")

        assert isinstance(result, Err)
        assert result.error.operation == "push"
        assert result.error.returncode == 1
        assert result.error.launched
        assert "denied" in result.error.message

    def test_missing_binary(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(engine_mod, "run_process", FakeDocker([_error(LAUNCH_FAILED, "No such file")]))

        result = DockerCliEngine().push(address="docker.io/acme/app:v1")

        assert isinstance(result, Err)
        assert not result.error.launched


class TestIsolated:
    def test_private_config_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKER_CONFIG", str(tmp_path / "absent"))
        fake = FakeDocker()
        monkeypatch.setattr(engine_mod, "run_process", fake)

        with DockerCliEngine().isolated() as first:
            first.push(address="a")
            config_dir = Path(fake.envs[0]["DOCKER_CONFIG"])
            assert config_dir.is_dir()
        with DockerCliEngine().isolated() as second:
            second.push(address="a")

        assert fake.envs[1]["DOCKER_CONFIG"] != str(config_dir)
        assert not config_dir.exists()

    def test_daemon_selection_is_carried_but_not_credentials(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        user = tmp_path / "user-docker"
        (user / "contexts" / "meta").mkdir(parents=True)
        (user / "cli-plugins").mkdir()
        (user / "cli-plugins" / "docker-buildx").write_text("#!/bin/sh\n", encoding="utf-8")
        (user / "config.json").write_text(
            json.dumps(
                {
                    "currentContext": "remote-builder",
                    "auths": {"docker.io": {"auth": "c2VjcmV0"}},
                    "credsStore": "desktop",
                }
            ),
            encoding="utf-8",
        )
        monkeypatch.setenv("DOCKER_CONFIG", str(user))
        fake = FakeDocker()
        monkeypatch.setattr(engine_mod, "run_process", fake)

        with DockerCliEngine().isolated() as engine:
            engine.push(address="a")
            private = Path(fake.envs[0]["DOCKER_CONFIG"])
            assert private != user
            config = json.loads((private / "config.json").read_text(encoding="utf-8"))
            assert config == {"currentContext": "remote-builder"}
            assert (private / "cli-plugins" / "docker-buildx").is_file()
            assert (private / "contexts" / "meta").is_dir()

        assert not private.exists()
        assert (user / "cli-plugins" / "docker-buildx").is_file()

    def test_without_user_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKER_CONFIG", str(tmp_path / "absent"))

        with DockerCliEngine().isolated() as engine:
            assert isinstance(engine, DockerCliEngine)

    def test_unreadable_user_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "config.json").write_text("{not json", encoding="utf-8")
        monkeypatch.setenv("DOCKER_CONFIG", str(tmp_path))

        with pytest.raises(OSError, match="invalid docker config"):
            with DockerCliEngine().isolated():
                pass


class TestRun:
    def test_command_never_holds_secret_values(self) -> None:
        cmd = DockerCliEngine().run_command(_spec(), name="onepaas-abc")

        assert cmd == [
            "docker",
            "run",
            "--rm",
            "--name",
            "onepaas-abc",
            "--interactive",
            "--volume",
            "/tmp/projects/x/.onepaas/chart:/chart:rw",
            "--workdir",
            "/chart",
            "--env",
            "HELM_KUBEAPISERVER=https://k8s:6443",
            "--entrypoint",
            "sh",
            "alpine/helm:3.11.3",
            "-c",
            "helm version",
        ]
        assert "t0ken" not in " ".join(cmd)

    def test_secret_value_only_on_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = FakeDocker()
        monkeypatch.setattr(engine_mod, "run_process", fake)
        console = MockConsole()

        result = DockerCliEngine(console=console).run(_spec())

        assert result == Ok(0)
        assert fake.inputs == ["t0ken\n"]
        assert "t0ken" not in " ".join(fake.calls[0])
        assert all("t0ken" not in value for value in fake.envs[0].values())
        assert "t0ken" not in console.text

    def test_no_stdin_means_not_interactive(self) -> None:
        spec = ContainerRun(image="alpine:3", command=("true",))

        cmd = DockerCliEngine().run_command(spec, name="onepaas-abc")

        assert cmd == ["docker", "run", "--rm", "--name", "onepaas-abc", "alpine:3", "true"]

    def test_non_zero_exit_is_returned(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(engine_mod, "run_process", FakeDocker([_error(1, "Error: UPGRADE FAILED")]))
        console = MockConsole()

        result = DockerCliEngine(console=console).run(_spec())

        assert result == Ok(1)
        assert console.find("UPGRADE FAILED")

    @pytest.mark.parametrize("returncode", [125, 126, 127, LAUNCH_FAILED])
    def test_launch_failures(self, returncode: int, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(engine_mod, "run_process", FakeDocker([_error(returncode, "daemon down")]))

        result = DockerCliEngine().run(_spec())

        assert isinstance(result, Err)
        assert not result.error.launched

    def test_timeout_removes_container(self, monkeypatch: pytest.MonkeyPatch) -> None:
        fake = FakeDocker([_error(LAUNCH_FAILED, timed_out=True)])
        monkeypatch.setattr(engine_mod, "run_process", fake)

        result = DockerCliEngine().run(_spec(), timeout=1.0)

        assert isinstance(result, Err)
        assert result.error.timed_out
        name = fake.calls[0][fake.calls[0].index("--name") + 1]
        assert fake.calls[1] == ["docker", "rm", "--force", name]
