"""Shared utilities for wgdeploy CLI modules."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from wgdeploy.core.errors import WgDeployError


def setup_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file and console logging for CLI commands.

    Args:
        log_file: Path to log file (optional)
        verbose: Enable verbose logging
    """
    from wgdeploy.core.logger import set_verbose, setup_file_logging
    setup_file_logging(log_file=log_file, verbose=verbose)
    set_verbose(verbose)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
) -> None:
    """Print an error and exit with the code its class prescribes.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
    """
    stage = getattr(e, "stage", None)
    prefix = f"Error ({stage}):" if stage else "Error:"
    console.print(f"[red]{prefix}[/red] {e}")
    if verbose:
        console.print_exception()
    exit_code = e.exit_code if isinstance(e, WgDeployError) else 1
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    console.print(f"[cyan]{prefix}[/cyan] {message}")
