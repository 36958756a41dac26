"""Deployment summary built from observed host and container state."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from wgdeploy.core.config import DeploymentConfig
from wgdeploy.services.container import ContainerHandle, ContainerLifecycleManager
from wgdeploy.services.readiness import peer_image, peer_profile
from wgdeploy.services.sysctl import HostNetworkConfigurator


@dataclass
class DeploymentReport:
    """Read-only snapshot of a deployment."""
    config: DeploymentConfig
    sysctl: Dict[str, str] = field(default_factory=dict)
    container: Optional[ContainerHandle] = None
    peer_profile: Optional[str] = None
    peers_ready: List[int] = field(default_factory=list)


class ReportGenerator:
    """Reads back live state; never mutates anything."""

    def __init__(self, network: HostNetworkConfigurator, containers: ContainerLifecycleManager):
        self.network = network
        self.containers = containers

    def generate(self, config: DeploymentConfig) -> DeploymentReport:
        report = DeploymentReport(config=config)
        report.sysctl = {
            key: self.network.read_live(key) or "unknown"
            for key in self.network.parameters.critical
        }
        report.container = self.containers.inspect()

        report.peers_ready = [
            index for index in range(1, config.peers + 1)
            if peer_profile(config.config_dir, index).exists()
        ]
        first = peer_profile(config.config_dir, 1)
        if first.exists():
            report.peer_profile = first.read_text()
        return report

    def render(self, report: DeploymentReport, console: Console, warnings: List[str] = ()) -> None:
        config = report.config

        table = Table(show_header=False, box=None)
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Endpoint", f"{config.server_address or 'unknown'}:{config.port}/udp")
        table.add_row("Peers", f"{len(report.peers_ready)}/{config.peers} generated")
        table.add_row("Config dir", config.config_dir)
        if report.container is None:
            table.add_row("Container", "[red]not found[/red]")
        else:
            state = "[green]running[/green]" if report.container.running else "[red]stopped[/red]"
            table.add_row("Container", f"{report.container.name} ({state})")
        for key, value in report.sysctl.items():
            table.add_row(key, value)

        console.print(Panel(table, title="WireGuard deployment", border_style="cyan"))

        if report.peer_profile:
            console.print(Panel(
                report.peer_profile.strip(),
                title=f"peer1 ({peer_profile(config.config_dir, 1)})",
                border_style="green",
            ))
            console.print(f"[dim]QR code image: {peer_image(config.config_dir, 1)}[/dim]")
        else:
            console.print("[yellow]⚠[/yellow] Peer configuration not generated yet; "
                          "check again with 'wgdeploy status'")

        for warning in warnings:
            console.print(f"[yellow]⚠[/yellow] {warning}")
