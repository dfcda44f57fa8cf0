"""Tests for logging setup."""

import logging

from lvlinker.utils.logger import get_logger, setup_logging


def test_setup_logging_writes_log_file(isolated_home, monkeypatch):
    """Test that a run log is created and secrets are redacted."""
    monkeypatch.setenv("STEAM_API_KEY", "hunter2")
    monkeypatch.setenv("WINEPREFIX", "/tmp/prefix")

    log_path = setup_logging(verbose=False)
    get_logger("lvlinker.test").info("hello from the test")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_path is not None
    assert log_path.parent == isolated_home / ".local" / "state" / "lvlinker" / "logs"
    text = log_path.read_text()
    assert "hello from the test" in text
    assert "STEAM_API_KEY=<REDACTED>" in text
    assert "hunter2" not in text
    assert "WINEPREFIX=/tmp/prefix" in text


def test_setup_logging_without_file():
    """Test console-only logging."""
    assert setup_logging(log_to_file=False) is None
    assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)


def test_module_logger_propagates_after_setup():
    """Test that module loggers defer to the root handlers once configured."""
    setup_logging(log_to_file=False)

    logger = get_logger("lvlinker.something")

    assert logger.propagate
    assert not logger.handlers
