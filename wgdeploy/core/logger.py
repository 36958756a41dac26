"""Unified logging for wgdeploy with console and file output."""
import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

console = Console()

# Log file configuration
LOG_DIR = Path("/var/log/wgdeploy")
LOG_FILE = LOG_DIR / "wgdeploy.log"

_file_logging_configured = False


def setup_file_logging(log_file: str = None, verbose: bool = False):
    """Set up file logging for deployment runs.

    Args:
        log_file: Path to log file (defaults to /var/log/wgdeploy/wgdeploy.log)
        verbose: Enable debug-level logging

    Note:
        Falls back to /tmp if /var/log/wgdeploy is not writable.
    """
    global _file_logging_configured

    if _file_logging_configured:
        return

    target_log_file = Path(log_file) if log_file else LOG_FILE

    try:
        target_log_file.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        target_log_file = Path("/tmp/wgdeploy.log")
        target_log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger("wgdeploy")
    file_handler = logging.FileHandler(target_log_file)
    file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root_logger.addHandler(file_handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    _file_logging_configured = True
    root_logger.info(f"wgdeploy logging initialized: {target_log_file}")


def set_verbose(verbose: bool) -> None:
    """Raise every wgdeploy logger to DEBUG when verbose output is requested."""
    level = logging.DEBUG if verbose else logging.INFO
    for name, logger in logging.root.manager.loggerDict.items():
        if name.startswith("wgdeploy") and isinstance(logger, logging.Logger):
            logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance with console output.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger with Rich console handler
    """
    logger = logging.getLogger(name)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger
