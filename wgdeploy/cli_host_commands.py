"""Read-only host commands - status, doctor, peer."""
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from wgdeploy.cli_support import handle_cli_error, print_error, print_info
from wgdeploy.core.config import ConfigResolver
from wgdeploy.core.errors import WgDeployError
from wgdeploy.core.interaction import Interaction
from wgdeploy.core.runner import CommandRunner
from wgdeploy.core.settings import RuntimeSettings
from wgdeploy.discovery.host import HostDetector
from wgdeploy.services.container import ContainerLifecycleManager
from wgdeploy.services.readiness import peer_image, peer_profile
from wgdeploy.services.report import ReportGenerator
from wgdeploy.services.sysctl import HostNetworkConfigurator

console: Console = Console()


def _runner() -> CommandRunner:
    return CommandRunner(timeout=RuntimeSettings.from_env().command_timeout)


def _load_config(config: Optional[str], config_dir: Optional[str]):
    resolver = ConfigResolver(Interaction())
    try:
        return resolver.resolve({"config_dir": config_dir}, config, probe_address=False)
    except WgDeployError as e:
        handle_cli_error(e, console)


def status(
    config_dir: Optional[str] = typer.Option(None, "--config-dir", "-d", help="Host config directory"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file"),
):
    """Show the current deployment without changing anything."""
    deployment_config = _load_config(config, config_dir)
    runner = _runner()
    settings = RuntimeSettings.from_env()
    containers = ContainerLifecycleManager(runner)
    reporter = ReportGenerator(HostNetworkConfigurator(runner, settings.sysctl_path), containers)
    report = reporter.generate(deployment_config)
    reporter.render(report, console)

    if report.container is None or not report.container.running:
        raise typer.Exit(1)

    interfaces = containers.exec("wg", "show")
    if interfaces.ok and interfaces.output:
        console.print(Panel(interfaces.output, title="wg show", border_style="blue"), highlight=False)


def doctor():
    """Show what this host provides for a deployment."""
    settings = RuntimeSettings.from_env()
    caps = HostDetector(_runner(), settings.os_release_path).detect()

    def mark(flag: bool) -> str:
        return "[green]yes[/green]" if flag else "[red]no[/red]"

    table = Table(title="Host capabilities", show_header=True)
    table.add_column("Check", style="cyan")
    table.add_column("Result")
    table.add_row("OS", f"{caps.os_name} ({caps.os_family})")
    table.add_row("Docker", mark(caps.docker_present))
    table.add_row("ufw active", mark(caps.ufw_active))
    table.add_row("firewalld active", mark(caps.firewalld_active))
    table.add_row("iptables", mark(caps.iptables_present))
    console.print(table)

    if caps.os_family == "unknown" and not caps.docker_present:
        print_error(console, "Unsupported OS and no Docker: deploy will fail")
        raise typer.Exit(2)


def peer(
    index: int = typer.Argument(1, help="Peer number"),
    config_dir: Optional[str] = typer.Option(None, "--config-dir", "-d", help="Host config directory"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file"),
):
    """Print a peer's connection profile."""
    deployment_config = _load_config(config, config_dir)
    profile = peer_profile(deployment_config.config_dir, index)

    if not profile.exists():
        print_error(console, f"No configuration for peer {index} at {profile}")
        raise typer.Exit(1)

    console.print(profile.read_text().strip(), highlight=False)
    print_info(console, f"QR code image: {peer_image(deployment_config.config_dir, index)}")


def register_host_commands(app: typer.Typer, shared_console: Console):
    """Register read-only host commands with the main Typer app."""
    global console
    console = shared_console

    app.command()(status)
    app.command()(doctor)
    app.command()(peer)
