#!/usr/bin/env python3
"""wgdeploy CLI - WireGuard server deployment for a single host."""

import typer
from rich.console import Console

from wgdeploy import __version__
from wgdeploy.cli_deploy_commands import register_deploy_commands
from wgdeploy.cli_host_commands import register_host_commands

app = typer.Typer(
    name="wgdeploy",
    help="""wgdeploy - WireGuard server in one command

Prepares the host (kernel parameters, firewall, Docker) and runs the
linuxserver/wireguard container.

Quick start:
  sudo wgdeploy deploy            # Interactive deployment
  sudo wgdeploy deploy -n 3 -y    # Unattended, three peers
  wgdeploy status                 # Show current deployment
  wgdeploy peer 1                 # Print peer 1's config
""",
    add_completion=False,
)

console = Console()

register_deploy_commands(app, console)
register_host_commands(app, console)


@app.command()
def version():
    """Show wgdeploy version."""
    console.print(f"wgdeploy v{__version__}")


if __name__ == "__main__":
    app()
