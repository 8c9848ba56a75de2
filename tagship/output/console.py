"""Console output abstraction.

The pipeline reports progress through ``ConsoleProtocol`` so services never
touch Rich directly. Production code uses ``RichConsole``; tests use
``MockConsole`` and assert on the captured lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "ConsoleLine",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()  # command echoes, hints
    HEADER = auto()  # pipeline stage headers

    def __str__(self) -> str:
        return self.name.lower()


# Status lines carry a fixed word in front of the message.
_PREFIXES: dict[Style, str] = {
    Style.SUCCESS: "OK",
    Style.ERROR: "error:",
    Style.WARNING: "warning:",
    Style.INFO: "info:",
}

_RICH_STYLES: dict[Style, str | None] = {
    Style.DEFAULT: None,
    Style.SUCCESS: "green",
    Style.ERROR: "red bold",
    Style.WARNING: "yellow",
    Style.INFO: "cyan",
    Style.DIM: "dim",
    Style.HEADER: "blue bold",
}


class ConsoleProtocol(Protocol):
    """What the pipeline and the CLI write to."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None:
        """Print a stage header (``plan``, ``tag``, ``build``...)."""
        ...


class RichConsole:
    """Console implementation using Rich."""

    def __init__(self, *, stderr: bool = False) -> None:
        # Import Rich lazily to keep `import tagship` cheap
        from rich.console import Console

        self._console = Console(stderr=stderr, highlight=False)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        # Commit subjects and tag names may contain "[...]"; never parse markup.
        self._console.print(message, style=_RICH_STYLES[style], markup=False)

    def success(self, message: str) -> None:
        self._status(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._status(Style.ERROR, message)

    def warning(self, message: str) -> None:
        self._status(Style.WARNING, message)

    def info(self, message: str) -> None:
        self._status(Style.INFO, message)

    def header(self, message: str) -> None:
        self._console.line()
        self.print(message, Style.HEADER)

    def _status(self, style: Style, message: str) -> None:
        from rich.text import Text

        line = Text(_PREFIXES[style], style=_RICH_STYLES[style] or "")
        line.append(f" {message}")
        self._console.print(line)


@dataclass(frozen=True, slots=True)
class ConsoleLine:
    text: str
    style: Style


@dataclass
class MockConsole:
    """Captures output in memory; status prefixes are kept in the text."""

    lines: list[ConsoleLine] = field(default_factory=list)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.lines.append(ConsoleLine(message, style))

    def success(self, message: str) -> None:
        self._status(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._status(Style.ERROR, message)

    def warning(self, message: str) -> None:
        self._status(Style.WARNING, message)

    def info(self, message: str) -> None:
        self._status(Style.INFO, message)

    def header(self, message: str) -> None:
        self.print(message, Style.HEADER)

    def _status(self, style: Style, message: str) -> None:
        self.print(f"{_PREFIXES[style]} {message}", style)

    @property
    def messages(self) -> list[str]:
        return [line.text for line in self.lines]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return self._has(Style.ERROR)

    def has_warning(self) -> bool:
        return self._has(Style.WARNING)

    def headers(self) -> list[str]:
        """Stage headers in the order they were printed."""
        return [line.text for line in self.lines if line.style is Style.HEADER]

    def _has(self, style: Style) -> bool:
        return any(line.style is style for line in self.lines)
