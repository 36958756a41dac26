"""Firewall allow-rules for the server's UDP port.

Up to three backends may be active at once; the rule is applied to each of
them. No firewall failure ever aborts a deployment.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from wgdeploy.core.logger import get_logger
from wgdeploy.core.runner import CommandRunner
from wgdeploy.discovery.host import HostCapabilities

logger = get_logger(__name__)

APPLIED = "applied"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class FirewallResult:
    """Per-backend outcome."""
    backend: str
    status: str
    detail: str = ""


class FirewallBackend(ABC):
    """Interface for one firewall backend."""

    name = ""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    @abstractmethod
    def is_active(self, caps: HostCapabilities) -> bool:
        """Return True if this backend should receive the rule."""

    @abstractmethod
    def allow_udp(self, port: int) -> FirewallResult:
        """Allow inbound UDP traffic on ``port``."""

    def _failed(self, result) -> FirewallResult:
        return FirewallResult(self.name, FAILED, result.describe_failure())


class UfwBackend(FirewallBackend):
    name = "ufw"

    def is_active(self, caps: HostCapabilities) -> bool:
        return caps.ufw_active

    def allow_udp(self, port: int) -> FirewallResult:
        result = self.runner.run(["ufw", "allow", f"{port}/udp"])
        if not result.ok:
            return self._failed(result)
        return FirewallResult(self.name, APPLIED, result.output)


class FirewalldBackend(FirewallBackend):
    name = "firewalld"

    def is_active(self, caps: HostCapabilities) -> bool:
        return caps.firewalld_active

    def allow_udp(self, port: int) -> FirewallResult:
        result = self.runner.run(["firewall-cmd", "--permanent", f"--add-port={port}/udp"])
        if not result.ok:
            return self._failed(result)

        reload = self.runner.run(["firewall-cmd", "--reload"])
        if not reload.ok:
            return self._failed(reload)
        return FirewallResult(self.name, APPLIED)


class IptablesBackend(FirewallBackend):
    """Direct INPUT chain rule; inserted only if an identical rule is absent."""

    name = "iptables"

    def is_active(self, caps: HostCapabilities) -> bool:
        return caps.iptables_present

    @staticmethod
    def rule(port: int) -> List[str]:
        return ["INPUT", "-p", "udp", "--dport", str(port), "-j", "ACCEPT"]

    def allow_udp(self, port: int) -> FirewallResult:
        check = self.runner.run(["iptables", "-C"] + self.rule(port))
        if check.ok:
            return FirewallResult(self.name, SKIPPED, "rule already present")

        insert = self.runner.run(["iptables", "-I"] + self.rule(port))
        if not insert.ok:
            return self._failed(insert)
        return FirewallResult(self.name, APPLIED)


class FirewallManager:
    """Applies the allow-rule to every active backend."""

    def __init__(self, runner: CommandRunner, backends: List[FirewallBackend] = None):
        self.backends = backends or [
            UfwBackend(runner),
            FirewalldBackend(runner),
            IptablesBackend(runner),
        ]

    def allow(self, port: int, caps: HostCapabilities) -> List[FirewallResult]:
        results = []
        for backend in self.backends:
            if not backend.is_active(caps):
                logger.debug(f"Firewall backend {backend.name} not active, skipping")
                continue

            result = backend.allow_udp(port)
            if result.status == FAILED:
                logger.warning(f"{backend.name}: could not allow {port}/udp: {result.detail}")
            else:
                logger.info(f"{backend.name}: {port}/udp {result.status}")
            results.append(result)

        if not results:
            logger.info("No active firewall detected")
        return results
