"""Tests for logging setup."""

import logging
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import structlog

from conduit.logging_config import NOISY_LOGGERS, configure_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_explicit_level(self):
        configure_logging("debug")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

    def test_level_from_settings(self):
        with patch(
            "conduit.logging_config.get_settings",
            return_value=SimpleNamespace(log_level="WARNING"),
        ):
            configure_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_noisy_loggers_quieted(self):
        configure_logging("DEBUG")

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_structlog_routed_through_stdlib(self, caplog):
        configure_logging("INFO")
        logging.getLogger().addHandler(caplog.handler)

        with caplog.at_level(logging.INFO):
            structlog.get_logger("conduit.test").info("request", path="/health")

        assert any("event='request'" in r.getMessage() and "path='/health'" in r.getMessage() for r in caplog.records)
