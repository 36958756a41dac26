"""Root privilege check."""
import os
from typing import Callable, Optional

from wgdeploy.core.errors import PrivilegeError


class PrivilegeGate:
    """Refuses to continue unless running as root."""

    def __init__(self, geteuid: Optional[Callable[[], int]] = None):
        self.geteuid = geteuid or os.geteuid

    def check(self) -> None:
        """Raise PrivilegeError when the effective UID is not 0."""
        euid = self.geteuid()
        if euid != 0:
            raise PrivilegeError(
                f"wgdeploy must run as root (effective UID is {euid}). Re-run with sudo."
            )
