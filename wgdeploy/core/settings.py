"""wgdeploy runtime settings."""
import os
from dataclasses import dataclass


@dataclass
class RuntimeSettings:
    """Runtime tunables for a deployment run.

    Attributes:
        address_probe_timeout: Timeout in seconds for each address-detection request (default: 5)
        readiness_interval: Seconds between readiness polls (default: 1)
        readiness_attempts: Maximum number of readiness polls (default: 30)
        command_timeout: Timeout in seconds for container runtime and firewall commands (default: 120)
        install_timeout: Timeout in seconds for package installs (default: 900)
        sysctl_path: Kernel parameter file that is overwritten on every run
        os_release_path: File used to detect the OS family
    """

    address_probe_timeout: float = 5.0
    readiness_interval: float = 1.0
    readiness_attempts: int = 30
    command_timeout: int = 120
    install_timeout: int = 900  # large package downloads on slow mirrors

    sysctl_path: str = "/etc/sysctl.d/99-wireguard.conf"
    os_release_path: str = "/etc/os-release"

    @classmethod
    def from_env(cls) -> "RuntimeSettings":
        """Create settings from environment variables.

        Environment variables:
            WGDEPLOY_PROBE_TIMEOUT: Address-detection timeout in seconds
            WGDEPLOY_READY_INTERVAL: Readiness poll interval in seconds
            WGDEPLOY_READY_ATTEMPTS: Readiness poll count
            WGDEPLOY_COMMAND_TIMEOUT: Runtime command timeout in seconds
            WGDEPLOY_INSTALL_TIMEOUT: Package install timeout in seconds
            WGDEPLOY_SYSCTL_PATH: Kernel parameter file path
        """
        return cls(
            address_probe_timeout=float(
                os.getenv("WGDEPLOY_PROBE_TIMEOUT", cls.address_probe_timeout)
            ),
            readiness_interval=float(
                os.getenv("WGDEPLOY_READY_INTERVAL", cls.readiness_interval)
            ),
            readiness_attempts=int(
                os.getenv("WGDEPLOY_READY_ATTEMPTS", cls.readiness_attempts)
            ),
            command_timeout=int(
                os.getenv("WGDEPLOY_COMMAND_TIMEOUT", cls.command_timeout)
            ),
            install_timeout=int(
                os.getenv("WGDEPLOY_INSTALL_TIMEOUT", cls.install_timeout)
            ),
            sysctl_path=os.getenv("WGDEPLOY_SYSCTL_PATH", cls.sysctl_path),
            os_release_path=os.getenv("WGDEPLOY_OS_RELEASE", cls.os_release_path),
        )
