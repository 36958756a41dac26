"""Error taxonomy for deployment runs.

Every fatal condition is a ``WgDeployError`` subclass carrying the process
exit code the CLI should use. Best-effort problems are never raised past the
stage that produced them; they come back as warnings on a ``StageResult``.
"""
from typing import Optional


class WgDeployError(Exception):
    """Base class for fatal deployment errors."""

    exit_code = 1

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class FatalPreconditionError(WgDeployError):
    """Host or configuration precondition not met; nothing further is attempted."""

    exit_code = 2


class PrivilegeError(FatalPreconditionError):
    """Process is not running with root privileges."""


class PortConflictError(FatalPreconditionError):
    """Target UDP port is already bound on the host."""

    def __init__(self, port: int, owner: Optional[str] = None, stage: Optional[str] = None):
        message = f"UDP port {port} is already in use"
        if owner:
            message += f" by {owner}"
        message += ". Stop the other service or choose another port with --port."
        super().__init__(message, stage)
        self.port = port
        self.owner = owner


class UnsupportedOSError(FatalPreconditionError):
    """Host OS family has no known package manager dispatch."""


class ConfigFileError(FatalPreconditionError):
    """Configuration file could not be read or parsed."""


class InvalidConfigError(FatalPreconditionError):
    """Merged configuration values failed validation."""


class DeploymentCancelled(FatalPreconditionError):
    """Operator declined, or could not be asked for, confirmation."""


class PackageInstallError(FatalPreconditionError):
    """Required host package could not be installed."""


class CriticalVerificationError(WgDeployError):
    """A critical kernel parameter does not hold its expected live value."""

    exit_code = 3

    def __init__(self, mismatches: dict, stage: Optional[str] = None):
        details = ", ".join(
            f"{key}={actual!r} (expected {expected!r})"
            for key, (expected, actual) in mismatches.items()
        )
        super().__init__(f"Critical kernel parameters not applied: {details}", stage)
        self.mismatches = mismatches


class MissingAddressError(WgDeployError):
    """Public server address could not be detected and nobody could be asked."""

    exit_code = 4


class ContainerError(WgDeployError):
    """Container runtime refused to create the managed container."""

    exit_code = 5
