from __future__ import annotations

from pathlib import Path

import pytest
import typer

import onepaas.cli.commands.chart as chart_cmd
from onepaas.cli.context import CLIContext
from onepaas.core.config import Config
from onepaas.core.errors import ErrorCode
from onepaas.output.console import MockConsole


def _patch(monkeypatch: pytest.MonkeyPatch) -> MockConsole:
    console = MockConsole()
    ctx = CLIContext(config=Config(), console=console)
    monkeypatch.setattr(chart_cmd, "build_context", lambda config_path=None: ctx)
    return console


def _chart(repository: Path) -> None:
    chart_cmd.chart(
        repository=repository,
        app_slug="acme-app",
        image_repository="acme/app",
        app_name="Acme App",
        hostname="app.acme.test",
        ingress_class="nginx",
        image_tag="v1",
        registry="docker.io",
        config=None,
    )


def test_writes_chart(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    console = _patch(monkeypatch)

    _chart(tmp_path)

    assert (tmp_path / ".onepaas" / "chart" / "Chart.yaml").is_file()
    assert console.find("chart written to")


def test_not_a_directory(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _patch(monkeypatch)

    with pytest.raises(typer.Exit) as exc:
        _chart(tmp_path / "missing")

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
