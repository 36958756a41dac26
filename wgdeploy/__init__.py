"""wgdeploy - idempotent WireGuard server deployment for a single host."""

__version__ = "1.0.0"
