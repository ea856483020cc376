"""Write `<repository>/.onepaas/chart` from a Jinja2 template catalog.

The catalog maps logical paths such as `chart/templates/app.yaml.j2` to
template sources. Each template is written to
`<repository>/.onepaas/<logical path without .j2>`.

A repository that already has a chart is left untouched. The chart is
written into a staging directory next to it and renamed into place, so
`.onepaas/chart` only ever appears complete.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterator, Mapping
from dataclasses import asdict, dataclass, field
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from uuid import uuid4

from jinja2 import DictLoader, Environment, StrictUndefined, TemplateError

from onepaas.core.config import DEFAULT_CHART_REPO_URL
from onepaas.core.result import Err, Ok, Result
from onepaas.core.step_errors import ChartMaterializeFailed
from onepaas.output.console import ConsoleProtocol, MockConsole

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

TEMPLATE_EXTENSION = ".j2"
ONEPAAS_DIRNAME = ".onepaas"
CHART_DIRNAME = "chart"

_ASSETS_DIRNAME = "assets"


def chart_path(repository_path: str | Path) -> Path:
    return Path(repository_path) / ONEPAAS_DIRNAME / CHART_DIRNAME


@dataclass(frozen=True, slots=True)
class ChartValues:
    """Values substituted into the chart templates."""

    application_name: str
    application_slug: str
    application_hostname: str
    image_registry: str
    image_repository: str
    image_tag: str
    ingress_class: str


@dataclass(frozen=True, slots=True)
class ChartOutcome:
    path: str
    created: bool


def _empty_templates() -> Mapping[str, str]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class TemplateCatalog:
    """Immutable mapping of logical path -> Jinja2 template source."""

    templates: Mapping[str, str] = field(default_factory=_empty_templates)

    def __post_init__(self) -> None:
        for logical in self.templates:
            p = PurePosixPath(logical)
            if p.is_absolute() or ".." in p.parts or p.parts[:1] != (CHART_DIRNAME,):
                raise ValueError(f"template path escapes the chart directory: {logical}")
            if not logical.endswith(TEMPLATE_EXTENSION):
                raise ValueError(f"template path must end with {TEMPLATE_EXTENSION}: {logical}")
        object.__setattr__(self, "templates", MappingProxyType(dict(self.templates)))

    @classmethod
    def from_package(cls) -> TemplateCatalog:
        """Load the catalog shipped in `onepaas/services/chart/assets`."""
        root = resources.files(__package__) / _ASSETS_DIRNAME
        return cls({logical: entry.read_text(encoding="utf-8") for logical, entry in _walk(root, "")})

    def __len__(self) -> int:
        return len(self.templates)


def _walk(node: Traversable, prefix: str) -> Iterator[tuple[str, Traversable]]:
    for entry in sorted(node.iterdir(), key=lambda e: e.name):
        logical = f"{prefix}{entry.name}"
        if entry.is_dir():
            yield from _walk(entry, f"{logical}/")
        elif entry.name.endswith(TEMPLATE_EXTENSION):
            yield logical, entry


class ChartMaterializer:
    """Renders the catalog into a repository, once."""

    def __init__(
        self,
        catalog: TemplateCatalog,
        *,
        dependency_repository: str = DEFAULT_CHART_REPO_URL,
        console: ConsoleProtocol | None = None,
    ) -> None:
        self._catalog = catalog
        self._dependency_repository = dependency_repository
        self._console: ConsoleProtocol = console if console is not None else MockConsole()
        self._env = Environment(
            loader=DictLoader(dict(catalog.templates)),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def materialize(
        self,
        repository_path: str | Path,
        values: ChartValues,
    ) -> Result[ChartOutcome, ChartMaterializeFailed]:
        """Create the chart unless the repository already has one.

        Returns:
            Ok(ChartOutcome(created=False)) if the chart directory exists
            Ok(ChartOutcome(created=True)) once every file is written
            Err(ChartMaterializeFailed) on template or filesystem errors
        """
        root = Path(repository_path) / ONEPAAS_DIRNAME
        chart_dir = root / CHART_DIRNAME

        if chart_dir.exists():
            self._console.info(f"chart already present at {chart_dir}, leaving it as is")
            return Ok(ChartOutcome(path=str(chart_dir), created=False))

        rendered = self._render(values)
        if isinstance(rendered, Err):
            return rendered

        staging = root / f".{CHART_DIRNAME}-{uuid4().hex[:12]}"
        try:
            _write_tree(staging, rendered.value)
            staging.rename(chart_dir)
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            return Err(ChartMaterializeFailed(path=str(chart_dir), reason=str(e)))

        self._console.success(f"chart written to {chart_dir} ({len(rendered.value)} files)")
        return Ok(ChartOutcome(path=str(chart_dir), created=True))

    def _render(self, values: ChartValues) -> Result[dict[str, str], ChartMaterializeFailed]:
        context = {**asdict(values), "chart_repository": self._dependency_repository}
        rendered: dict[str, str] = {}
        for logical in sorted(self._catalog.templates):
            try:
                rendered[logical] = self._env.get_template(logical).render(context)
            except TemplateError as e:
                return Err(ChartMaterializeFailed(path=logical, reason=f"template error: {e}"))
        return Ok(rendered)


def _write_tree(chart_dir: Path, rendered: Mapping[str, str]) -> None:
    """Write rendered templates (logical paths start with `chart/`) under `chart_dir`."""
    (chart_dir / "templates").mkdir(parents=True)
    for logical, text in rendered.items():
        rel = PurePosixPath(logical.removesuffix(TEMPLATE_EXTENSION)).relative_to(CHART_DIRNAME)
        target = chart_dir / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
