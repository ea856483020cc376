"""Deployment request: everything one pipeline run needs, fixed up front."""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = ["ClusterConnection", "DeploymentRequest", "RegistryCredentials"]


@dataclass(frozen=True, slots=True)
class RegistryCredentials:
    """Container registry address and login.

    The secret is kept out of `repr` so requests can be printed safely.
    """

    address: str = ""
    username: str = ""
    secret: str = field(default="", repr=False)


@dataclass(frozen=True, slots=True)
class ClusterConnection:
    """Kubernetes API endpoint, CA material, bearer token and target namespace."""

    api_server: str = ""
    ca: str = field(default="", repr=False)
    token: str = field(default="", repr=False)
    namespace: str = "default"


@dataclass(frozen=True, slots=True)
class DeploymentRequest:
    """Immutable input of a deployment run.

    Exactly one of `branch`, `tag` and `ref` is expected to be set. When
    several are, branch wins over tag, and tag over ref; when none is, the
    run fails before anything is cloned.
    """

    repository_url: str
    branch: str = ""
    tag: str = ""
    ref: str = ""
    image_repository: str = ""
    image_tag: str = ""
    application_name: str = ""
    application_slug: str = ""
    application_hostname: str = ""
    ingress_class: str = ""
    registry: RegistryCredentials = field(default_factory=RegistryCredentials)
    cluster: ClusterConnection = field(default_factory=ClusterConnection)
