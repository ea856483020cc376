"""Core domain types and logic."""

from .config import Config, ConfigError, load_config, load_config_or_default
from .deadline import Deadline
from .errors import ErrorCode
from .policy import DEFAULT_STEP_POLICY, StepPolicy
from .request import ClusterConnection, DeploymentRequest, RegistryCredentials
from .result import Err, Ok, Result, is_err, is_ok
from .workspace import Workspace, WorkspaceAllocator

__all__ = [
    # config
    "Config",
    "ConfigError",
    "load_config",
    "load_config_or_default",
    # deadline
    "Deadline",
    # errors
    "ErrorCode",
    # policy
    "DEFAULT_STEP_POLICY",
    "StepPolicy",
    # request
    "ClusterConnection",
    "DeploymentRequest",
    "RegistryCredentials",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
    # workspace
    "Workspace",
    "WorkspaceAllocator",
]
