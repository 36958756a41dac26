"""Host capability discovery."""
from wgdeploy.discovery.host import HostCapabilities, HostDetector

__all__ = ['HostCapabilities', 'HostDetector']
