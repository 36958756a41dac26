"""Deploy command - provision the host and (re)create the WireGuard container."""
from typing import Optional

import typer
from rich.console import Console

from wgdeploy.cli_support import handle_cli_error, print_error, print_success, print_warning, setup_logging
from wgdeploy.deployment import Deployment

# Module-level console instance (will be set by register function)
console: Console = Console()


def make_deployment() -> Deployment:
    """Build a Deployment wired to the real host."""
    return Deployment(console=console)


def deploy(
    port: Optional[int] = typer.Option(None, "--port", "-p", help="UDP port to listen on (default: 51820)"),
    peers: Optional[int] = typer.Option(None, "--peers", "-n", help="Number of peer configs to generate (default: 1)"),
    server_address: Optional[str] = typer.Option(
        None, "--server-address", "-s", help="Public IP or hostname (auto-detected if omitted)"
    ),
    config_dir: Optional[str] = typer.Option(
        None, "--config-dir", "-d", help="Host directory for server and peer configs"
    ),
    timezone: Optional[str] = typer.Option(None, "--timezone", "-t", help="Container timezone (default: Etc/UTC)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation (unattended mode)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file path"),
):
    """Deploy a WireGuard server container on this host.

    Safe to re-run: the kernel parameter file is rewritten, firewall rules
    are added only where missing, and the container is recreated. The port
    check runs first, so stop the existing container before re-running on
    the same port.

    Examples:
        wgdeploy deploy                         # Interactive, defaults
        wgdeploy deploy -p 51821 -n 3 -y        # Unattended, three peers
        wgdeploy deploy -s vpn.example.com -y
    """
    setup_logging(log_file=log_file, verbose=verbose)

    options = {
        "port": port,
        "peers": peers,
        "server_address": server_address,
        "config_dir": config_dir,
        "timezone": timezone,
        "auto_confirm": yes or None,
    }

    deployment = make_deployment()
    outcome, state = deployment.run(options, config_path=config)

    if not outcome.succeeded:
        print_error(console, f"Deployment aborted at stage '{outcome.failed_stage}'")
        handle_cli_error(outcome.error, console, verbose=False)

    deployment.reporter.render(state.report, console, warnings=outcome.warnings)
    if outcome.warnings:
        print_warning(console, f"Deployed with {len(outcome.warnings)} warning(s)")
    else:
        print_success(console, "WireGuard server deployed")


def register_deploy_commands(app: typer.Typer, shared_console: Console):
    """Register the deploy command with the main Typer app.

    Args:
        app: Main Typer application
        shared_console: Shared Rich console instance
    """
    global console
    console = shared_console

    app.command()(deploy)
