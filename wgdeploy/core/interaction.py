"""Interactive-session capability.

Stages that may need an operator (address prompt, deploy confirmation) ask
an ``Interaction`` instead of checking the terminal themselves.
"""
import sys

import typer


class Interaction:
    """Terminal-backed interaction using Typer prompts."""

    def is_interactive(self) -> bool:
        return sys.stdin.isatty()

    def prompt(self, message: str) -> str:
        return typer.prompt(message).strip()

    def confirm(self, message: str) -> bool:
        return typer.confirm(message)
