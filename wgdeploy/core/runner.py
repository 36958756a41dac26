"""Command execution for everything that touches the host.

All host programs (docker, sysctl, ufw, firewall-cmd, iptables, apt-get,
dnf, systemctl) are invoked through a ``CommandRunner`` so the deployment
pipeline can be driven by a recording double in tests.
"""
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from wgdeploy.core.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Outcome of a single host command."""
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Stripped stdout."""
        return self.stdout.strip()

    def describe_failure(self) -> str:
        detail = self.stderr.strip() or self.stdout.strip() or f"exit code {self.returncode}"
        return f"{shlex.join(self.args)}: {detail}"


class CommandRunner:
    """Runs host programs synchronously and captures their output."""

    def __init__(self, timeout: Optional[int] = None):
        """Initialize runner.

        Args:
            timeout: Default timeout in seconds (None = wait forever)
        """
        self.timeout = timeout

    def run(self, args: List[str], timeout: Optional[int] = None) -> CommandResult:
        """Run a command and return its result.

        A missing executable or a timeout is reported as a failed result
        rather than raised, so callers decide whether the failure is fatal.
        """
        logger.debug(f"Running: {shlex.join(args)}")
        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=timeout if timeout is not None else self.timeout,
            )
        except FileNotFoundError:
            return CommandResult(args, 127, stderr=f"{args[0]}: command not found")
        except subprocess.TimeoutExpired:
            return CommandResult(args, 124, stderr=f"{args[0]}: timed out")

        result = CommandResult(args, completed.returncode, completed.stdout, completed.stderr)
        if not result.ok:
            logger.debug(f"Command failed: {result.describe_failure()}")
        return result

    def which(self, program: str) -> bool:
        """Return True when ``program`` is on PATH."""
        return shutil.which(program) is not None
