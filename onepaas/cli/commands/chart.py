"""Chart command - write the Helm chart into an existing checkout."""

from __future__ import annotations

from pathlib import Path

import typer

from onepaas.cli.context import build_context
from onepaas.core.config import CONFIG_ENV_VAR
from onepaas.core.errors import ErrorCode
from onepaas.core.result import Err, Ok
from onepaas.output.errors import print_step_error, step_error_exit_code
from onepaas.services.chart import ChartMaterializer, ChartValues, TemplateCatalog
from onepaas.services.image import DEFAULT_IMAGE_TAG, DEFAULT_REGISTRY_ADDRESS


def chart(
    repository: Path = typer.Argument(..., help="Checkout to write .onepaas/chart into"),
    app_slug: str = typer.Option(..., "--app-slug", help="Release name"),
    image_repository: str = typer.Option(..., "--image-repository", help="Image repository"),
    app_name: str = typer.Option("", "--app-name", help="Human-readable application name"),
    hostname: str = typer.Option("", "--hostname", help="Ingress hostname"),
    ingress_class: str = typer.Option("", "--ingress-class", help="Ingress class name"),
    image_tag: str = typer.Option(DEFAULT_IMAGE_TAG, "--image-tag", help="Image tag"),
    registry: str = typer.Option(DEFAULT_REGISTRY_ADDRESS, "--registry", help="Registry address"),
    config: Path | None = typer.Option(
        None, "--config", envvar=CONFIG_ENV_VAR, help="Worker config (TOML)", show_default=False
    ),
) -> None:
    """Materialize the Helm chart without building or releasing."""
    ctx = build_context(config)

    if not repository.is_dir():
        ctx.console.error(f"not a directory: {repository}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    materializer = ChartMaterializer(
        TemplateCatalog.from_package(),
        dependency_repository=ctx.config.helm.repo_url,
        console=ctx.console,
    )
    values = ChartValues(
        application_name=app_name or app_slug,
        application_slug=app_slug,
        application_hostname=hostname,
        image_registry=registry or DEFAULT_REGISTRY_ADDRESS,
        image_repository=image_repository,
        image_tag=image_tag or DEFAULT_IMAGE_TAG,
        ingress_class=ingress_class,
    )

    match materializer.materialize(repository, values):
        case Ok(_):
            return
        case Err(error):
            print_step_error(error, ctx.console)
            raise typer.Exit(code=step_error_exit_code(error))
