"""Host capability detection.

Probed fresh on every run: OS family, firewall backends, container runtime.
"""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List

from wgdeploy.core.logger import get_logger
from wgdeploy.core.runner import CommandRunner

logger = get_logger(__name__)

DEBIAN_IDS = {"debian", "ubuntu", "raspbian", "linuxmint", "pop"}
RHEL_IDS = {"rhel", "centos", "fedora", "rocky", "almalinux", "ol", "amzn"}


@dataclass
class HostCapabilities:
    """Runtime-probed facts about the host."""
    os_family: str = "unknown"  # debian | rhel | unknown
    os_name: str = "Unknown"
    ufw_present: bool = False
    ufw_active: bool = False
    firewalld_present: bool = False
    firewalld_active: bool = False
    iptables_present: bool = False
    docker_present: bool = False

    @property
    def active_firewalls(self) -> List[str]:
        backends = []
        if self.ufw_active:
            backends.append("ufw")
        if self.firewalld_active:
            backends.append("firewalld")
        if self.iptables_present:
            backends.append("iptables")
        return backends


class HostDetector:
    """Collects the host facts the deployment branches on."""

    def __init__(self, runner: CommandRunner, os_release_path: str = "/etc/os-release"):
        self.runner = runner
        self.os_release_path = Path(os_release_path)

    def detect(self) -> HostCapabilities:
        caps = HostCapabilities()
        caps.os_family, caps.os_name = self.detect_os()

        caps.ufw_present = self.runner.which("ufw")
        if caps.ufw_present:
            status = self.runner.run(["ufw", "status"])
            caps.ufw_active = status.ok and "Status: active" in status.stdout

        caps.firewalld_present = self.runner.which("firewall-cmd")
        if caps.firewalld_present:
            state = self.runner.run(["firewall-cmd", "--state"])
            caps.firewalld_active = state.ok and state.output == "running"

        caps.iptables_present = self.runner.which("iptables")
        caps.docker_present = self.runner.which("docker")

        logger.debug(
            f"Host: {caps.os_name} ({caps.os_family}), docker={caps.docker_present}, "
            f"firewalls={caps.active_firewalls or 'none'}"
        )
        return caps

    def detect_os(self) -> tuple:
        """Return (family, pretty name) from os-release."""
        try:
            data = self.os_release_path.read_text()
        except OSError:
            logger.warning(f"Cannot read {self.os_release_path}; OS family unknown")
            return "unknown", "Unknown"

        fields = dict(re.findall(r'^([A-Z_]+)=(.*)$', data, re.MULTILINE))
        fields = {key: value.strip().strip('"') for key, value in fields.items()}

        ids = {fields.get("ID", "").lower()}
        ids.update(fields.get("ID_LIKE", "").lower().split())
        name = fields.get("PRETTY_NAME") or fields.get("NAME") or "Unknown"

        if ids & DEBIAN_IDS:
            return "debian", name
        if ids & RHEL_IDS:
            return "rhel", name
        return "unknown", name
