"""Worker configuration loaded from TOML.

Every key is optional; missing or mistyped values fall back to the defaults
below, so an empty file is a valid configuration.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .policy import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_SCHEDULE_TO_CLOSE_SECONDS,
    DEFAULT_START_TO_CLOSE_SECONDS,
    StepPolicy,
)
from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_float, get_int, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "EngineConfig",
    "HelmConfig",
    "WorkspaceConfig",
    "load_config",
    "load_config_or_default",
    "CONFIG_ENV_VAR",
    "DEFAULT_PROJECTS_BASE_DIR",
    "DEFAULT_DOCKER_BINARY",
    "DEFAULT_HELM_IMAGE",
    "DEFAULT_CHART_REPO_NAME",
    "DEFAULT_CHART_REPO_URL",
]

CONFIG_ENV_VAR = "ONEPAAS_CONFIG"

DEFAULT_PROJECTS_BASE_DIR = "/tmp/projects"
DEFAULT_DOCKER_BINARY = "docker"
DEFAULT_HELM_IMAGE = "alpine/helm:3.11.3"
DEFAULT_CHART_REPO_NAME = "companyinfo"
DEFAULT_CHART_REPO_URL = "https://companyinfo.github.io/helm-charts"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class WorkspaceConfig:
    """Where per-run workspaces are allocated."""

    base_dir: str = DEFAULT_PROJECTS_BASE_DIR


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Container engine CLI."""

    docker: str = DEFAULT_DOCKER_BINARY


@dataclass(frozen=True, slots=True)
class HelmConfig:
    """Helm runtime image and the chart repository the generated chart depends on."""

    image: str = DEFAULT_HELM_IMAGE
    repo_name: str = DEFAULT_CHART_REPO_NAME
    repo_url: str = DEFAULT_CHART_REPO_URL


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    helm: HelmConfig = field(default_factory=HelmConfig)
    policy: StepPolicy = field(default_factory=StepPolicy)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        workspace: StrDict = get_table(data, "workspace") or {}
        engine: StrDict = get_table(data, "engine") or {}
        helm: StrDict = get_table(data, "helm") or {}
        policy: StrDict = get_table(data, "policy") or {}

        max_attempts = get_int(policy, "max_attempts")
        if max_attempts is None:
            max_attempts = DEFAULT_MAX_ATTEMPTS
        if max_attempts < 1:
            raise ValueError(f"policy.max_attempts must be >= 1 (got {max_attempts})")

        return cls(
            workspace=WorkspaceConfig(
                base_dir=get_str(workspace, "base_dir") or DEFAULT_PROJECTS_BASE_DIR,
            ),
            engine=EngineConfig(
                docker=get_str(engine, "docker") or DEFAULT_DOCKER_BINARY,
            ),
            helm=HelmConfig(
                image=get_str(helm, "image") or DEFAULT_HELM_IMAGE,
                repo_name=get_str(helm, "repo_name") or DEFAULT_CHART_REPO_NAME,
                repo_url=get_str(helm, "repo_url") or DEFAULT_CHART_REPO_URL,
            ),
            policy=StepPolicy(
                schedule_to_close=get_float(policy, "schedule_to_close_seconds")
                or DEFAULT_SCHEDULE_TO_CLOSE_SECONDS,
                start_to_close=get_float(policy, "start_to_close_seconds")
                or DEFAULT_START_TO_CLOSE_SECONDS,
                max_attempts=max_attempts,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse the worker configuration.

    Args:
        path: Path to the TOML file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path | None) -> Result[Config, ConfigError]:
    """Load config from file, or return the default config if there is no file.

    A file that exists but cannot be parsed is still an error.
    """
    if path is None or not path.exists():
        return Ok(Config())
    return load_config(path)
