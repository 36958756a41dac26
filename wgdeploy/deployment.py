"""End-to-end deployment: the ordered stage list and its collaborators.

Order: resolve-config, privilege, port, confirm, host, sysctl, firewall,
container-cleanup, container-start, readiness, report. Only the firewall
and readiness stages are best-effort.
"""
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import requests
from rich.console import Console

from wgdeploy.core.config import ConfigResolver
from wgdeploy.core.errors import ContainerError, DeploymentCancelled
from wgdeploy.core.interaction import Interaction
from wgdeploy.core.logger import get_logger
from wgdeploy.core.pipeline import PipelineDriver, PipelineOutcome, PipelineState, Stage, StageResult
from wgdeploy.core.runner import CommandRunner
from wgdeploy.core.settings import RuntimeSettings
from wgdeploy.discovery.host import HostDetector
from wgdeploy.services.container import ContainerLifecycleManager
from wgdeploy.services.firewall import FAILED, FirewallManager
from wgdeploy.services.packages import PackageInstaller
from wgdeploy.services.ports import PortAvailabilityCheck
from wgdeploy.services.privilege import PrivilegeGate
from wgdeploy.services.readiness import ReadinessWaiter
from wgdeploy.services.report import ReportGenerator
from wgdeploy.services.sysctl import HostNetworkConfigurator

logger = get_logger(__name__)


class Deployment:
    """Wires the collaborators together and runs the pipeline."""

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        interaction: Optional[Interaction] = None,
        settings: Optional[RuntimeSettings] = None,
        session: Optional[requests.Session] = None,
        geteuid: Optional[Callable[[], int]] = None,
        connections: Optional[Callable[[], Iterable]] = None,
        sleep: Callable[[float], None] = time.sleep,
        environ: Optional[Dict[str, str]] = None,
        console: Optional[Console] = None,
    ):
        self.settings = settings or RuntimeSettings.from_env()
        self.runner = runner or CommandRunner()
        self.interaction = interaction or Interaction()
        self.console = console or Console()

        self.resolver = ConfigResolver(
            self.interaction,
            session=session,
            timeout=self.settings.address_probe_timeout,
            environ=environ,
        )
        self.privilege = PrivilegeGate(geteuid)
        self.ports = PortAvailabilityCheck(connections)
        self.detector = HostDetector(self.runner, self.settings.os_release_path)
        self.installer = PackageInstaller(self.runner, timeout=self.settings.install_timeout)
        self.network = HostNetworkConfigurator(self.runner, self.settings.sysctl_path)
        self.firewall = FirewallManager(self.runner)
        self.containers = ContainerLifecycleManager(self.runner, timeout=self.settings.command_timeout)
        self.waiter = ReadinessWaiter(
            interval=self.settings.readiness_interval,
            max_attempts=self.settings.readiness_attempts,
            sleep=sleep,
        )
        self.reporter = ReportGenerator(self.network, self.containers)

    def stages(self, options: Dict[str, Any], config_path: Optional[str] = None) -> List[Stage]:
        def resolve_config(state: PipelineState) -> StageResult:
            state.config = self.resolver.resolve(options, config_path)
            return StageResult.ok(f"server address {state.config.server_address}")

        return [
            Stage("resolve-config", resolve_config),
            Stage("privilege", lambda state: self.privilege.check()),
            Stage("port", lambda state: self.ports.check(state.config.port)),
            Stage("confirm", self._confirm),
            Stage("host", self._prepare_host),
            Stage("sysctl", self._configure_network),
            Stage("firewall", self._open_firewall, best_effort=True),
            Stage("container-cleanup", lambda state: self.containers.cleanup()),
            Stage("container-start", self._start_container),
            Stage("readiness", self._wait_ready, best_effort=True),
            Stage("report", self._report),
        ]

    def run(
        self,
        options: Optional[Dict[str, Any]] = None,
        config_path: Optional[str] = None,
    ) -> Tuple[PipelineOutcome, PipelineState]:
        state = PipelineState()
        outcome = PipelineDriver().run(self.stages(options or {}, config_path), state)
        if outcome.succeeded:
            logger.info(f"Deployment complete with {len(outcome.warnings)} warning(s)")
        return outcome, state

    def _confirm(self, state: PipelineState) -> StageResult:
        config = state.config
        if config.auto_confirm:
            return StageResult.ok("auto-confirmed")

        if not self.interaction.is_interactive():
            raise DeploymentCancelled(
                "Confirmation required but no terminal is attached. "
                "Re-run with --yes for unattended deployments."
            )

        self.console.print(
            f"\n[bold]WireGuard deployment plan[/bold]\n"
            f"  Endpoint:   {config.server_address}:{config.port}/udp\n"
            f"  Peers:      {config.peers}\n"
            f"  Config dir: {config.config_dir}\n"
            f"  Timezone:   {config.timezone}\n"
            f"  [yellow]Any existing '{self.containers.name}' container will be replaced "
            f"and {self.network.path} overwritten.[/yellow]\n"
        )
        if not self.interaction.confirm("Proceed with deployment?"):
            raise DeploymentCancelled("Deployment cancelled by operator")
        return StageResult.ok("confirmed")

    def _prepare_host(self, state: PipelineState) -> StageResult:
        caps = self.detector.detect()
        state.capabilities = caps
        if caps.docker_present:
            return StageResult.ok(f"{caps.os_name}, docker present")

        self.installer.install_docker(caps.os_family)
        caps.docker_present = True
        return StageResult.ok(f"{caps.os_name}, docker installed")

    def _configure_network(self, state: PipelineState) -> StageResult:
        warnings = self.network.configure()
        if warnings:
            return StageResult.warning(*[f"kernel parameter not applied: {w}" for w in warnings])
        return StageResult.ok("kernel parameters applied")

    def _open_firewall(self, state: PipelineState) -> StageResult:
        results = self.firewall.allow(state.config.port, state.capabilities)
        failures = [f"{r.backend} rule failed: {r.detail}" for r in results if r.status == FAILED]
        if failures:
            return StageResult.warning(*failures)
        return StageResult.ok(*[f"{r.backend}: {r.status}" for r in results])

    def _start_container(self, state: PipelineState) -> StageResult:
        handle = self.containers.start(state.config)
        state.container = handle
        if not handle.running:
            raise ContainerError(
                f"Container '{handle.name}' exited right after start:\n{self.containers.logs(20)}"
            )
        return StageResult.ok(f"container {handle.name} running")

    def _wait_ready(self, state: PipelineState) -> StageResult:
        state.ready = self.waiter.wait(state.config.config_dir)
        if state.ready:
            return StageResult.ok("peer configuration generated")
        return StageResult.warning(
            f"Peer configuration not generated within {self.waiter.max_attempts} checks; "
            f"the container may still be initializing (see 'docker logs {self.containers.name}')"
        )

    def _report(self, state: PipelineState) -> StageResult:
        state.report = self.reporter.generate(state.config)
        return StageResult.ok()
