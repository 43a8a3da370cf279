# tests/core/test_logging.py
"""Tests for structured logging configuration."""

import json
import logging

import pytest

from blobauth.core.logging import configure_logging, get_logger


class TestLoggingConfig:
    """Tests for logging configuration."""

    def test_get_logger_returns_logger(self) -> None:
        """get_logger returns a bound logger."""
        logger = get_logger("test")

        assert hasattr(logger, "debug")
        assert hasattr(logger, "bind")

    def test_logger_outputs_structured(self, capsys: pytest.CaptureFixture[str]) -> None:
        """JSON mode writes one JSON object per event to stderr."""
        configure_logging(json_output=True)

        get_logger("test").info("resolved blob config", account="acct", credential="account_key")

        captured = capsys.readouterr()
        data = json.loads(captured.err.strip().split("\n")[-1])
        assert data["event"] == "resolved blob config"
        assert data["account"] == "acct"
        assert data["level"] == "info"
        assert "_record" not in data
        assert "_from_structlog" not in data

    def test_stdout_is_left_alone(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Diagnostics never go to stdout, which belongs to the calling program."""
        configure_logging(json_output=True)

        get_logger("test").warning("something")

        assert capsys.readouterr().out == ""

    def test_logger_console_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Console mode is human-readable, not JSON."""
        configure_logging(json_output=False)

        get_logger("test").info("test message", key="value")

        captured = capsys.readouterr()
        assert "test message" in captured.err
        assert not captured.err.strip().startswith("{")

    def test_level_filters_debug(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(json_output=True, level="INFO")

        get_logger("test").debug("looking for access token")

        assert "looking for access token" not in capsys.readouterr().err

    def test_noisy_third_party_loggers_silenced(self) -> None:
        """Azure SDK, MSAL and HTTP transport loggers stay at WARNING even in DEBUG mode."""
        configure_logging(level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG
        for name in ("azure", "azure.identity", "azure.core.pipeline.policies.http_logging_policy", "msal", "urllib3", "httpx"):
            assert logging.getLogger(name).getEffectiveLevel() >= logging.WARNING, name

    def test_stdlib_loggers_emit_json_when_json_output_enabled(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Azure SDK records (stdlib logging) share the JSON format."""
        configure_logging(json_output=True)

        logging.getLogger("azure.mgmt.storage").warning("throttled")

        data = json.loads(capsys.readouterr().err.strip().split("\n")[-1])
        assert data["event"] == "throttled"
        assert data["level"] == "warning"
