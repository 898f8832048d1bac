"""Command line interface for gp-finalise."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer
from click import exceptions as click_exceptions
from rich.console import Console

try:
    from typer._click import exceptions as typer_click_exceptions
except ImportError:
    # Older typer releases parse with the installed click itself.
    typer_click_exceptions = click_exceptions

from . import __version__
from .core.errors import FinaliseError
from .core.finaliser import Finaliser, ensure_root
from .core.probe import PackageManager
from .core.settings import load_settings
from .utils.console import Reporter
from .utils.logging import configure_file_logging

PROG_NAME = "gp-finalise"

EXCEPTION_MODULES = (click_exceptions, typer_click_exceptions)
NO_SUCH_OPTION = tuple({module.NoSuchOption for module in EXCEPTION_MODULES})
USAGE_ERRORS = tuple({module.UsageError for module in EXCEPTION_MODULES})
ABORTS = tuple({click_exceptions.Abort, typer.Abort})
NO_COLOR_FLAGS = ("--no-color", "--no-colour")

console = Console(highlight=False)
app = typer.Typer(
    add_completion=False,
    help="Point an installed GlobalProtect client at the system CA certificates and restart it.",
    context_settings={"help_option_names": ["-h", "--help", "-?"]},
)


@app.command()
def finalise(
    prefer_dpkg: bool = typer.Option(False, "--prefer-dpkg", help="If both dpkg and rpm are found, dpkg will be used"),
    prefer_rpm: bool = typer.Option(False, "--prefer-rpm", help="If both dpkg and rpm are found, rpm will be used"),
    no_color: bool = typer.Option(False, *NO_COLOR_FLAGS, help="Print warnings and errors without formatting"),
    config: Optional[Path] = typer.Option(None, "--config", dir_okay=False, help="YAML file overriding the default paths"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """Patch the GlobalProtect environment and restart its agent and service."""

    reporter = Reporter(color=not no_color)
    if version:
        console.print(__version__)
        raise typer.Exit()
    if prefer_dpkg and prefer_rpm:
        reporter.error("Only one of --prefer-dpkg and --prefer-rpm may be specified")
        raise typer.Exit(code=1)
    prefer = PackageManager.DPKG if prefer_dpkg else PackageManager.RPM if prefer_rpm else None

    try:
        ensure_root()
        configure_file_logging()
        settings = load_settings(config)
        Finaliser(settings, reporter, prefer=prefer).run()
    except FinaliseError as exc:
        reporter.error(str(exc))
        raise typer.Exit(code=exc.exit_code)


def run_cli(argv: List[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    try:
        result = app(args=argv, prog_name=PROG_NAME, standalone_mode=False)
    except NO_SUCH_OPTION as exc:
        _usage_error(argv, f"Unrecognised option: {exc.option_name}")
        return 1
    except USAGE_ERRORS as exc:
        _usage_error(argv, exc.format_message())
        return 1
    except ABORTS:
        return 130
    except typer.Exit as exc:
        return exc.exit_code
    return result if isinstance(result, int) else 0


def _usage_error(argv: List[str] | None, message: str) -> None:
    color = not any(flag in (argv or []) for flag in NO_COLOR_FLAGS)
    reporter = Reporter(color=color)
    reporter.error(message)
    reporter.line(f"Try '{PROG_NAME} --help' for usage.")
