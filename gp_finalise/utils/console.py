"""Terminal output for operator-facing messages."""

from __future__ import annotations

from rich.console import Console
from rich.text import Text

from .logging import get_logger

logger = get_logger("console")

WARN_STYLE = "bold yellow"
ERROR_STYLE = "bold red"


class Reporter:
    """Prints INFO/WARN/ERROR lines and mirrors them into the run log."""

    def __init__(self, color: bool = True, console: Console | None = None, err_console: Console | None = None) -> None:
        self.color = color
        self.console = console or Console(highlight=False, no_color=not color)
        self.err_console = err_console or Console(stderr=True, highlight=False, no_color=not color)

    def _emit(self, console: Console, text: str, style: str | None = None) -> None:
        # Text objects bypass markup parsing, so "[Service]" prints literally.
        console.print(Text(text, style=style if self.color else ""), soft_wrap=True)

    def info(self, message: str) -> None:
        logger.info(message)
        self._emit(self.console, f"INFO: {message}")

    def warn(self, message: str) -> None:
        logger.warning(message)
        self._emit(self.console, f"WARN: {message}", WARN_STYLE)

    def error(self, message: str) -> None:
        logger.error(message)
        self._emit(self.err_console, f"ERROR: {message}", ERROR_STYLE)

    def line(self, message: str = "") -> None:
        self._emit(self.console, message)

