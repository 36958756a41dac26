"""Tests for file logging setup."""
import logging
from pathlib import Path

import pytest

from wgdeploy.core import logger as wg_logger


@pytest.fixture
def fresh_logging(monkeypatch):
    """Allow setup_file_logging to run again and drop the handlers it adds."""
    monkeypatch.setattr(wg_logger, "_file_logging_configured", False)
    root = logging.getLogger("wgdeploy")
    before = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def _file_handlers(root):
    return [h for h in root.handlers if isinstance(h, logging.FileHandler)]


def test_writes_to_requested_file(fresh_logging, tmp_path):
    log_file = tmp_path / "logs" / "deploy.log"

    wg_logger.setup_file_logging(str(log_file), verbose=True)

    assert log_file.parent.is_dir()
    assert any(h.baseFilename == str(log_file) for h in _file_handlers(fresh_logging))
    assert fresh_logging.level == logging.DEBUG


def test_falls_back_to_tmp_when_log_dir_denied(fresh_logging, monkeypatch, tmp_path):
    denied = tmp_path / "denied"
    real_mkdir = Path.mkdir

    def mkdir(self, *args, **kwargs):
        if self == denied:
            raise PermissionError(13, "Permission denied", str(self))
        return real_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", mkdir)

    wg_logger.setup_file_logging(str(denied / "wgdeploy.log"))

    assert any(h.baseFilename == "/tmp/wgdeploy.log" for h in _file_handlers(fresh_logging))
