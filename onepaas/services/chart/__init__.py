"""Helm chart materialization from the packaged template catalog."""

from onepaas.services.chart.materializer import (
    CHART_DIRNAME,
    ONEPAAS_DIRNAME,
    TEMPLATE_EXTENSION,
    ChartMaterializer,
    ChartOutcome,
    ChartValues,
    TemplateCatalog,
    chart_path,
)

__all__ = [
    "CHART_DIRNAME",
    "ONEPAAS_DIRNAME",
    "TEMPLATE_EXTENSION",
    "ChartMaterializer",
    "ChartOutcome",
    "ChartValues",
    "TemplateCatalog",
    "chart_path",
]
