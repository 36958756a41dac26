"""Lifecycle of the single managed WireGuard container.

Every deployment removes any existing container with the managed name and
creates a fresh one; containers are never restarted or reused.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from wgdeploy.core.config import DeploymentConfig
from wgdeploy.core.errors import ContainerError
from wgdeploy.core.logger import get_logger
from wgdeploy.core.runner import CommandResult, CommandRunner

logger = get_logger(__name__)
console = Console()

CONTAINER_NAME = "wireguard"
IMAGE = "lscr.io/linuxserver/wireguard:latest"
CAPABILITIES = ["NET_ADMIN", "SYS_MODULE"]
RESTART_POLICY = "unless-stopped"
MODULES_PATH = "/lib/modules"


@dataclass
class ContainerHandle:
    """Observed state of the managed container."""
    name: str
    running: bool


class ContainerLifecycleManager:
    """Drives the docker CLI for the managed container."""

    def __init__(
        self,
        runner: CommandRunner,
        name: str = CONTAINER_NAME,
        image: str = IMAGE,
        timeout: Optional[int] = None,
    ):
        self.runner = runner
        self.name = name
        self.image = image
        self.timeout = timeout

    def _docker(self, *args: str) -> CommandResult:
        return self.runner.run(["docker", *args], timeout=self.timeout)

    def exists(self) -> bool:
        result = self._docker("ps", "-a", "--filter", f"name=^/{self.name}$", "--format", "{{.Names}}")
        return result.ok and self.name in result.stdout.split()

    def inspect(self) -> Optional[ContainerHandle]:
        """Return the handle for the managed container, or None if absent."""
        result = self._docker("inspect", "-f", "{{.State.Running}}", self.name)
        if not result.ok:
            return None
        return ContainerHandle(self.name, result.output == "true")

    def cleanup(self) -> None:
        """Stop and remove any previous instance.

        Errors are ignored: the container usually does not exist.
        """
        existed = self.exists()
        for action in ("stop", "rm"):
            result = self._docker(action, self.name)
            if not result.ok:
                logger.debug(f"docker {action} {self.name} ignored: {result.describe_failure()}")
        if existed:
            logger.info(f"Removed previous '{self.name}' container")

    def run_args(self, config: DeploymentConfig) -> List[str]:
        """docker run arguments for a fresh instance."""
        args = [
            "run", "-d",
            f"--name={self.name}",
            "--network=host",
        ]
        args.extend(f"--cap-add={cap}" for cap in CAPABILITIES)
        for key, value in config.container_env().items():
            args.extend(["-e", f"{key}={value}"])
        args.extend([
            "-v", f"{config.config_dir}:/config",
            "-v", f"{MODULES_PATH}:{MODULES_PATH}:ro",
            f"--restart={RESTART_POLICY}",
            self.image,
        ])
        return args

    def start(self, config: DeploymentConfig) -> ContainerHandle:
        """Create exactly one new container instance.

        Raises:
            ContainerError: Config directory unusable or docker run failed
        """
        try:
            Path(config.config_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ContainerError(f"Cannot create config directory {config.config_dir}: {e}") from e

        with console.status(f"[cyan]Starting {self.name} container...[/cyan]", spinner="dots"):
            result = self._docker(*self.run_args(config))
        if not result.ok:
            raise ContainerError(f"Could not start container '{self.name}': {result.describe_failure()}")

        logger.info(f"Started container {self.name} ({result.output[:12]})")
        return self.inspect() or ContainerHandle(self.name, running=True)

    def logs(self, tail: int = 50) -> str:
        result = self._docker("logs", "--tail", str(tail), self.name)
        return (result.stdout + result.stderr).strip()

    def exec(self, *command: str) -> CommandResult:
        return self._docker("exec", self.name, *command)
