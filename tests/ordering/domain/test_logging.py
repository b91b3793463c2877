"""Tests for log level selection and handler setup."""

import logging
import logging.handlers
from pathlib import Path

from ordering.utils.logging import get_log_level, setup_stdlib_logging


class TestLogLevel:
    def test_environment_picks_the_level(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.setenv("PROTEAN_ENV", "production")
        assert get_log_level() == "INFO"

        monkeypatch.setenv("PROTEAN_ENV", "test")
        assert get_log_level() == "WARNING"

    def test_environment_variable_wins_over_protean_env(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("PROTEAN_ENV", "test")
        monkeypatch.setenv("ENVIRONMENT", "development")
        assert get_log_level() == "DEBUG"

    def test_explicit_level_overrides_environment(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert get_log_level() == "ERROR"


class TestHandlers:
    def test_alerts_get_their_own_error_file(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LOG_DIR", str(tmp_path))
        monkeypatch.setenv("LOG_LEVEL", "INFO")
        root = logging.getLogger()
        previous = (root.level, root.handlers)
        try:
            setup_stdlib_logging()

            files = {
                Path(h.baseFilename).name: h.level
                for h in root.handlers
                if isinstance(h, logging.handlers.RotatingFileHandler)
            }
            assert files == {"storefront.log": logging.INFO, "storefront_error.log": logging.ERROR}
            assert logging.getLogger("stripe").level == logging.WARNING
        finally:
            for handler in root.handlers:
                handler.close()
            root.setLevel(previous[0])
            root.handlers = previous[1]
