"""Units of work run by the deployment pipeline.

Each service performs one step against an external collaborator (container
engine, filesystem) and returns a `Result` carrying a typed step error.
"""

from onepaas.services.chart import ChartMaterializer, ChartOutcome, ChartValues, TemplateCatalog
from onepaas.services.image import BuildAndPublishParam, ImagePublisher, image_address
from onepaas.services.release import ReleaseInstaller, UpgradeInstallParam

__all__ = [
    "BuildAndPublishParam",
    "ChartMaterializer",
    "ChartOutcome",
    "ChartValues",
    "ImagePublisher",
    "ReleaseInstaller",
    "TemplateCatalog",
    "UpgradeInstallParam",
    "image_address",
]
