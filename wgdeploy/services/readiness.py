"""Wait for the container to generate the first peer's configuration."""
import time
from pathlib import Path
from typing import Callable

from wgdeploy.core.logger import get_logger

logger = get_logger(__name__)


def peer_dir(config_dir: str, index: int) -> Path:
    return Path(config_dir) / f"peer{index}"


def peer_profile(config_dir: str, index: int) -> Path:
    """Connection profile written by the container for peer ``index``."""
    return peer_dir(config_dir, index) / f"peer{index}.conf"


def peer_image(config_dir: str, index: int) -> Path:
    return peer_dir(config_dir, index) / f"peer{index}.png"


class ReadinessWaiter:
    """Bounded poll for the first peer's profile file."""

    def __init__(
        self,
        interval: float = 1.0,
        max_attempts: int = 30,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.interval = interval
        self.max_attempts = max_attempts
        self.sleep = sleep

    def wait(self, config_dir: str) -> bool:
        """Return True once peer1's profile exists, False on timeout."""
        target = peer_profile(config_dir, 1)
        for attempt in range(1, self.max_attempts + 1):
            if target.exists():
                logger.info(f"Peer configuration ready after {attempt} check(s)")
                return True
            if attempt < self.max_attempts:
                self.sleep(self.interval)

        logger.debug(f"{target} not present after {self.max_attempts} checks")
        return False
