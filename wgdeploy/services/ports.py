"""UDP port availability check against the host socket table."""
from typing import Callable, Iterable, Optional

import psutil

from wgdeploy.core.errors import PortConflictError
from wgdeploy.core.logger import get_logger

logger = get_logger(__name__)


def _udp_sockets():
    return psutil.net_connections(kind="udp")


class PortAvailabilityCheck:
    """Aborts when the target UDP port is already bound.

    The port is never reassigned automatically.
    """

    def __init__(self, connections: Optional[Callable[[], Iterable]] = None):
        """Initialize check.

        Args:
            connections: Callable returning psutil-style connection records
        """
        self.connections = connections or _udp_sockets

    def check(self, port: int) -> None:
        for conn in self.connections():
            if conn.laddr and conn.laddr.port == port:
                raise PortConflictError(port, owner=self._owner(conn))
        logger.debug(f"UDP port {port} is free")

    @staticmethod
    def _owner(conn) -> Optional[str]:
        pid = getattr(conn, "pid", None)
        if not pid:
            return None
        try:
            return f"{psutil.Process(pid).name()} (PID {pid})"
        except psutil.Error:
            return f"PID {pid}"
