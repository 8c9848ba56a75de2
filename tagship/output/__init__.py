"""Console output: Rich for the CLI, an in-memory console for tests."""

from tagship.output.console import ConsoleLine, ConsoleProtocol, MockConsole, RichConsole, Style

__all__ = ["ConsoleLine", "ConsoleProtocol", "MockConsole", "RichConsole", "Style"]
