"""Deploy command - clone, build, publish and release an application."""

from __future__ import annotations

from pathlib import Path

import typer

from onepaas.cli.context import build_context
from onepaas.core.config import CONFIG_ENV_VAR
from onepaas.core.errors import ErrorCode
from onepaas.core.request import ClusterConnection, DeploymentRequest, RegistryCredentials
from onepaas.core.result import Err, Ok
from onepaas.output.errors import pipeline_failure_exit_code
from onepaas.pipeline.worker import build_pipeline


def deploy(
    repository_url: str = typer.Argument(..., help="Git repository URL"),
    branch: str = typer.Option("", "--branch", help="Branch to deploy", show_default=False),
    tag: str = typer.Option("", "--tag", help="Tag to deploy", show_default=False),
    ref: str = typer.Option("", "--ref", help="Raw git reference to deploy", show_default=False),
    image_repository: str = typer.Option(
        ..., "--image-repository", help="Image repository (e.g. acme/app)"
    ),
    image_tag: str = typer.Option("", "--image-tag", help="Image tag [default: latest]"),
    registry: str = typer.Option("", "--registry", help="Registry address [default: docker.io]"),
    registry_username: str = typer.Option(
        "", "--registry-username", envvar="ONEPAAS_REGISTRY_USERNAME", show_default=False
    ),
    registry_secret: str = typer.Option(
        "", "--registry-secret", envvar="ONEPAAS_REGISTRY_SECRET", show_default=False
    ),
    app_name: str = typer.Option("", "--app-name", help="Human-readable application name"),
    app_slug: str = typer.Option(..., "--app-slug", help="Release name"),
    hostname: str = typer.Option("", "--hostname", help="Ingress hostname"),
    ingress_class: str = typer.Option("", "--ingress-class", help="Ingress class name"),
    api_server: str = typer.Option("", "--api-server", help="Kubernetes API server URL"),
    ca_file: Path | None = typer.Option(
        None, "--ca-file", help="PEM file of the cluster CA", show_default=False
    ),
    token: str = typer.Option("", "--token", envvar="ONEPAAS_KUBE_TOKEN", show_default=False),
    namespace: str = typer.Option("default", "--namespace", help="Release namespace"),
    config: Path | None = typer.Option(
        None, "--config", envvar=CONFIG_ENV_VAR, help="Worker config (TOML)", show_default=False
    ),
) -> None:
    """Deploy a repository reference to a Kubernetes cluster."""
    ctx = build_context(config)

    ca = ""
    if ca_file is not None:
        try:
            ca = ca_file.expanduser().read_text(encoding="utf-8")
        except OSError as e:
            ctx.console.error(f"cannot read --ca-file: {e}")
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    request = DeploymentRequest(
        repository_url=repository_url,
        branch=branch,
        tag=tag,
        ref=ref,
        image_repository=image_repository,
        image_tag=image_tag,
        application_name=app_name or app_slug,
        application_slug=app_slug,
        application_hostname=hostname,
        ingress_class=ingress_class,
        registry=RegistryCredentials(
            address=registry, username=registry_username, secret=registry_secret
        ),
        cluster=ClusterConnection(api_server=api_server, ca=ca, token=token, namespace=namespace),
    )

    pipeline = build_pipeline(ctx.config, ctx.console)
    match pipeline.run(request):
        case Ok(_):
            return
        case Err(failure):
            raise typer.Exit(code=pipeline_failure_exit_code(failure))
