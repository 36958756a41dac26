"""Kernel network parameters required for routing peer traffic.

The parameter file is rewritten in full on every run, then loaded into the
live kernel. The critical parameters are read back from the live kernel,
not from the file, so a write that did not take effect is caught.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from jinja2 import BaseLoader, Environment

from wgdeploy.core.errors import CriticalVerificationError, FatalPreconditionError
from wgdeploy.core.logger import get_logger
from wgdeploy.core.runner import CommandRunner

logger = get_logger(__name__)

SYSCTL_TEMPLATE = """\
# Managed by wgdeploy. This file is overwritten on every deployment.
{% for key, value in parameters.items() %}
{{ key }} = {{ value }}
{% endfor %}
"""


@dataclass
class SysctlParameterSet:
    """Ordered kernel parameters split into critical and advisory subsets."""
    critical: Dict[str, str] = field(default_factory=lambda: {
        "net.ipv4.ip_forward": "1",
        "net.ipv4.conf.all.src_valid_mark": "1",
    })
    advisory: Dict[str, str] = field(default_factory=lambda: {
        "net.ipv6.conf.all.forwarding": "1",
        "net.core.default_qdisc": "fq",
        "net.ipv4.tcp_congestion_control": "bbr",
    })

    def all(self) -> Dict[str, str]:
        return {**self.critical, **self.advisory}


class HostNetworkConfigurator:
    """Writes, applies and verifies kernel network parameters."""

    def __init__(
        self,
        runner: CommandRunner,
        path: str = "/etc/sysctl.d/99-wireguard.conf",
        parameters: SysctlParameterSet = None,
    ):
        self.runner = runner
        self.path = Path(path)
        self.parameters = parameters or SysctlParameterSet()
        self.jinja_env = Environment(
            loader=BaseLoader(),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self) -> str:
        template = self.jinja_env.from_string(SYSCTL_TEMPLATE)
        return template.render(parameters=self.parameters.all())

    def configure(self) -> List[str]:
        """Write, apply and verify.

        Returns:
            Warnings from best-effort application

        Raises:
            FatalPreconditionError: The parameter file cannot be written
            CriticalVerificationError: A critical parameter is not live
        """
        self.write()
        warnings = self.apply()
        self.verify()
        return warnings

    def write(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self.render())
        except OSError as e:
            raise FatalPreconditionError(f"Cannot write kernel parameters to {self.path}: {e}") from e
        logger.info(f"Wrote kernel parameters to {self.path}")

    def apply(self) -> List[str]:
        """Load the file into the live kernel; failures are warnings."""
        result = self.runner.run(["sysctl", "-p", str(self.path)])
        if result.ok:
            return []

        lines = [line.strip() for line in result.stderr.splitlines() if line.strip()]
        return lines or [f"sysctl -p {self.path} exited with code {result.returncode}"]

    def read_live(self, key: str) -> str:
        result = self.runner.run(["sysctl", "-n", key])
        return result.output if result.ok else ""

    def verify(self) -> Dict[str, str]:
        """Check critical parameters against the live kernel."""
        live = {key: self.read_live(key) for key in self.parameters.critical}
        mismatches = {
            key: (expected, live[key])
            for key, expected in self.parameters.critical.items()
            if live[key] != expected
        }
        if mismatches:
            raise CriticalVerificationError(mismatches)

        logger.info("Critical kernel parameters verified: "
                    + ", ".join(f"{k}={v}" for k, v in live.items()))
        return live
