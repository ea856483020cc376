"""Console output abstraction.

Activities and the orchestrator report progress through `ConsoleProtocol`
rather than printing directly. Production uses `RichConsole`; tests use
`MockConsole` and assert on what would have been shown.

Nothing passed to a console may contain a secret: commands are reported
with `command()`, which only ever receives argument lists that hold no
credential values.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """Where pipeline progress goes."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...

    def command(self, argv: Sequence[str]) -> None:
        """Show an external command about to run (dimmed)."""
        ...


class RichConsole:
    """Console implementation using Rich."""

    def __init__(self, *, stderr: bool = False) -> None:
        # Import Rich lazily to keep it out of library import time
        from rich.console import Console

        self._console = Console(stderr=stderr, highlight=False)
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.DIM: "dim",
            Style.HEADER: "blue bold",
        }

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style, markup=False)
        else:
            self._console.print(message, markup=False)

    def _prefixed(self, prefix: str, message: str) -> None:
        self._console.print(prefix, end=" ")
        self._console.print(message, markup=False)

    def success(self, message: str) -> None:
        self._prefixed("[green]OK[/green]", message)

    def error(self, message: str) -> None:
        self._prefixed("[red bold]error:[/red bold]", message)

    def warning(self, message: str) -> None:
        self._prefixed("[yellow]warning:[/yellow]", message)

    def info(self, message: str) -> None:
        self._prefixed("[cyan]info:[/cyan]", message)

    def header(self, message: str) -> None:
        self._console.print()
        self._console.print(message, style="blue bold", markup=False)

    def command(self, argv: Sequence[str]) -> None:
        self._console.print("$ " + " ".join(argv), style="dim", markup=False)


@dataclass
class OutputRecord:
    """A single output record for MockConsole."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console that captures output for tests."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def command(self, argv: Sequence[str]) -> None:
        self.outputs.append(OutputRecord("$ " + " ".join(argv), Style.DIM))

    # Test helpers

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        """All output as a single newline-separated string."""
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]
