"""Container engine: build, registry login, push and run.

`ContainerEngine` is the coarse interface the image publisher and the
release installer depend on. `DockerCliEngine` implements it on top of the
docker CLI.

Secrets never appear on a command line or in a container's configuration:
the registry secret is written to `docker login --password-stdin`, and a
container's secret input is streamed to its stdin (`docker run --interactive`).

`isolated()` gives each caller a private docker config directory. It carries
over the daemon selection (`currentContext`, `contexts/`) and CLI plugins of
the user's config, never its credentials.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from onepaas.core.result import Err, Ok, Result
from onepaas.output.console import ConsoleProtocol, MockConsole
from onepaas.platform.process import ProcessError
from onepaas.platform.process import run as run_process

__all__ = [
    "ContainerEngine",
    "ContainerRun",
    "DockerCliEngine",
    "EngineFailure",
    "ENGINE_LAUNCH_EXIT_CODES",
]

# `docker run` exit codes meaning the container command never ran:
# 125 daemon/run error, 126 command not executable, 127 command not found.
ENGINE_LAUNCH_EXIT_CODES = frozenset({125, 126, 127})

# Parts of the user docker config that select the daemon and CLI plugins.
_CARRIED_CONFIG_KEYS = ("currentContext", "cliPluginsExtraDirs")
_CARRIED_CONFIG_DIRS = ("contexts", "cli-plugins")


@dataclass(frozen=True, slots=True)
class EngineFailure:
    """A failed engine operation.

    Attributes:
        operation: "build", "login", "push" or "run".
        message: Engine error output.
        returncode: Engine exit code (-1 if the engine could not be started).
        launched: False when the engine itself could not be started or reached.
        timed_out: True if the operation was cancelled by its deadline.
    """

    operation: str
    message: str
    returncode: int = -1
    launched: bool = True
    timed_out: bool = False


@dataclass(frozen=True, slots=True)
class ContainerRun:
    """One containerized command.

    `stdin` is streamed to the container and never shown. It is the only
    channel for secrets.
    """

    image: str
    command: tuple[str, ...]
    entrypoint: str | None = None
    workdir: str | None = None
    mounts: tuple[tuple[Path, str], ...] = ()
    env: tuple[tuple[str, str], ...] = ()
    stdin: str = field(default="", repr=False)


class ContainerEngine(Protocol):
    def build(
        self, *, context_dir: Path, dockerfile: Path, tag: str, timeout: float | None = None
    ) -> Result[None, EngineFailure]: ...

    def login(
        self, *, registry: str, username: str, secret: str, timeout: float | None = None
    ) -> Result[None, EngineFailure]: ...

    def push(self, *, address: str, timeout: float | None = None) -> Result[None, EngineFailure]: ...

    def run(self, spec: ContainerRun, *, timeout: float | None = None) -> Result[int, EngineFailure]:
        """Run a container to completion and return its exit code."""
        ...

    def isolated(self) -> AbstractContextManager[ContainerEngine]:
        """Context manager yielding an engine with a private credential store."""
        ...


class DockerCliEngine:
    """`ContainerEngine` backed by the docker CLI."""

    def __init__(
        self,
        *,
        docker: str = "docker",
        config_dir: Path | None = None,
        console: ConsoleProtocol | None = None,
    ) -> None:
        self._docker = docker
        self._config_dir = config_dir
        self._console: ConsoleProtocol = console if console is not None else MockConsole()

    @contextmanager
    def isolated(self) -> Iterator[DockerCliEngine]:
        config_dir = Path(tempfile.mkdtemp(prefix="onepaas-docker-"))
        try:
            _seed_config(config_dir, _user_config_dir())
            yield DockerCliEngine(docker=self._docker, config_dir=config_dir, console=self._console)
        finally:
            shutil.rmtree(config_dir, ignore_errors=True)

    def build(
        self, *, context_dir: Path, dockerfile: Path, tag: str, timeout: float | None = None
    ) -> Result[None, EngineFailure]:
        cmd = [self._docker, "build", "--file", str(dockerfile), "--tag", tag, str(context_dir)]
        return self._check("build", cmd, cwd=context_dir, timeout=timeout)

    def login(
        self, *, registry: str, username: str, secret: str, timeout: float | None = None
    ) -> Result[None, EngineFailure]:
        cmd = [self._docker, "login", registry, "--username", username, "--password-stdin"]
        return self._check("login", cmd, cwd=Path.cwd(), timeout=timeout, input=secret)

    def push(self, *, address: str, timeout: float | None = None) -> Result[None, EngineFailure]:
        cmd = [self._docker, "push", address]
        return self._check("push", cmd, cwd=Path.cwd(), timeout=timeout)

    def run(self, spec: ContainerRun, *, timeout: float | None = None) -> Result[int, EngineFailure]:
        name = f"onepaas-{uuid4().hex[:12]}"
        cmd = self.run_command(spec, name=name)
        self._console.command(cmd)

        result = run_process(
            cmd,
            cwd=Path.cwd(),
            env=self._env(),
            timeout=timeout,
            input=spec.stdin or None,
        )
        if isinstance(result, Ok):
            return Ok(0)

        e = result.error
        if e.timed_out:
            # The CLI was killed; the container may still be running.
            run_process(
                [self._docker, "rm", "--force", name],
                cwd=Path.cwd(),
                env=self._env(),
                timeout=30.0,
            )
            return Err(_failure("run", e))
        if not e.launched or e.returncode in ENGINE_LAUNCH_EXIT_CODES:
            return Err(_failure("run", e, launched=False))
        self._print_output(e)
        return Ok(e.returncode)

    def run_command(self, spec: ContainerRun, *, name: str) -> list[str]:
        """Build the `docker run` argument list for `spec`."""
        cmd = [self._docker, "run", "--rm", "--name", name]
        if spec.stdin:
            cmd.append("--interactive")
        for host_path, container_path in spec.mounts:
            cmd += ["--volume", f"{host_path}:{container_path}:rw"]
        if spec.workdir:
            cmd += ["--workdir", spec.workdir]
        for key, value in spec.env:
            cmd += ["--env", f"{key}={value}"]
        if spec.entrypoint is not None:
            cmd += ["--entrypoint", spec.entrypoint]
        cmd.append(spec.image)
        cmd.extend(spec.command)
        return cmd

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        if self._config_dir is not None:
            env["DOCKER_CONFIG"] = str(self._config_dir)
        return env

    def _check(
        self,
        operation: str,
        cmd: list[str],
        *,
        cwd: Path,
        timeout: float | None,
        input: str | None = None,
    ) -> Result[None, EngineFailure]:
        self._console.command(cmd)
        result = run_process(cmd, cwd=cwd, env=self._env(), timeout=timeout, input=input)
        if isinstance(result, Err):
            e = result.error
            return Err(_failure(operation, e, launched=e.launched))
        return Ok(None)

    def _print_output(self, e: ProcessError) -> None:
        for line in (e.stdout + e.stderr).strip().splitlines()[-20:]:
            self._console.print(line)


def _failure(operation: str, e: ProcessError, *, launched: bool = True) -> EngineFailure:
    output = e.stderr.strip() or e.stdout.strip()
    tail = "\n".join(output.splitlines()[-20:])
    return EngineFailure(
        operation=operation,
        message=tail or str(e),
        returncode=e.returncode,
        launched=launched,
        timed_out=e.timed_out,
    )


def _user_config_dir() -> Path:
    configured = os.environ.get("DOCKER_CONFIG")
    return Path(configured) if configured else Path.home() / ".docker"


def _seed_config(private: Path, user: Path) -> None:
    """Copy the daemon selection and plugin settings of `user` into `private`."""
    config_file = user / "config.json"
    if config_file.is_file():
        try:
            data: object = json.loads(config_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise OSError(f"invalid docker config {config_file}: {e}") from e
        if isinstance(data, dict):
            carried = {key: data[key] for key in _CARRIED_CONFIG_KEYS if key in data}
            if carried:
                (private / "config.json").write_text(json.dumps(carried), encoding="utf-8")
    for name in _CARRIED_CONFIG_DIRS:
        if (user / name).is_dir():
            (private / name).symlink_to(user / name, target_is_directory=True)
