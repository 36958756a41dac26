"""Container runtime installation through the OS package manager."""
from typing import List

from rich.console import Console

from wgdeploy.core.errors import PackageInstallError, UnsupportedOSError
from wgdeploy.core.logger import get_logger
from wgdeploy.core.runner import CommandRunner

logger = get_logger(__name__)
console = Console()

INSTALL_COMMANDS = {
    "debian": [
        ["apt-get", "update"],
        ["apt-get", "install", "-y", "docker.io"],
    ],
    "rhel": [
        ["dnf", "install", "-y", "docker"],
    ],
}

ENABLE_DOCKER = ["systemctl", "enable", "--now", "docker"]


class PackageInstaller:
    """Installs Docker with apt-get or dnf depending on the OS family."""

    def __init__(self, runner: CommandRunner, timeout: int = 900):
        self.runner = runner
        self.timeout = timeout

    def commands_for(self, os_family: str) -> List[List[str]]:
        if os_family not in INSTALL_COMMANDS:
            raise UnsupportedOSError(
                f"Unsupported OS family '{os_family}'. "
                "Install Docker manually, then re-run wgdeploy."
            )
        return INSTALL_COMMANDS[os_family] + [ENABLE_DOCKER]

    def install_docker(self, os_family: str) -> None:
        """Install and start Docker.

        Raises:
            UnsupportedOSError: No package manager known for this family
            PackageInstallError: A package manager command failed
        """
        commands = self.commands_for(os_family)
        logger.info(f"Docker not found, installing with {commands[0][0]}")

        for cmd in commands:
            with console.status(f"[cyan]Running {' '.join(cmd)}...[/cyan]", spinner="dots"):
                result = self.runner.run(cmd, timeout=self.timeout)
            if not result.ok:
                raise PackageInstallError(f"Docker installation failed: {result.describe_failure()}")

        if not self.runner.which("docker"):
            raise PackageInstallError("Docker installation finished but 'docker' is still not on PATH")
