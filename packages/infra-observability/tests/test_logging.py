"""Unit tests for reviewdesk.infra.observability.logging."""

from __future__ import annotations

import json
import logging
from unittest.mock import patch

import pytest
import structlog

from reviewdesk.infra.observability import (
    REDACTED_VALUE,
    LoggingSettings,
    SensitiveDataProcessor,
    configure_logging,
    get_logger,
    get_logging_settings,
)


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
    get_logging_settings.cache_clear()


def _json_lines(out: str) -> list[dict[str, object]]:
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


@pytest.mark.unit
class TestLoggingSettings:
    def test_defaults_without_environment(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = LoggingSettings()
        assert settings.log_level == "INFO"
        assert settings.log_level_int == logging.INFO
        assert settings.environment == "development"
        assert settings.use_json_logs is False

    def test_json_follows_production_environment(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            assert LoggingSettings(environment="production").use_json_logs is True
            assert LoggingSettings(environment="staging").use_json_logs is False

    def test_explicit_json_flag_overrides_environment(self) -> None:
        with patch.dict("os.environ", {"LOG_JSON": "true", "ENVIRONMENT": "test"}, clear=True):
            assert LoggingSettings().use_json_logs is True
        assert LoggingSettings(environment="production", json_logs=False).use_json_logs is False

    @pytest.mark.parametrize(("raw", "level"), [("debug", logging.DEBUG), (" Error ", logging.ERROR)])
    def test_level_is_normalized(self, raw: str, level: int) -> None:
        assert LoggingSettings(log_level=raw).log_level_int == level

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValueError, match="log_level must be one of"):
            LoggingSettings(log_level="VERBOSE")

    def test_read_from_environment(self) -> None:
        with patch.dict("os.environ", {"LOG_LEVEL": "warning", "ENVIRONMENT": "production"}, clear=True):
            settings = LoggingSettings()
        assert settings.log_level == "WARNING"
        assert settings.use_json_logs is True


@pytest.mark.unit
class TestSensitiveDataProcessor:
    def test_session_tokens_and_anon_key_redacted(self) -> None:
        result = SensitiveDataProcessor()(
            None,
            "info",
            {"event": "session_refreshed", "access_token": "eyJ", "refresh_token": "r-1", "ANON_KEY": "k"},
        )
        assert result["access_token"] == REDACTED_VALUE
        assert result["refresh_token"] == REDACTED_VALUE
        assert result["ANON_KEY"] == REDACTED_VALUE
        assert result["event"] == "session_refreshed"

    def test_compound_password_key_redacted(self) -> None:
        result = SensitiveDataProcessor()(None, "info", {"new_password": "hunter2"})
        assert result["new_password"] == REDACTED_VALUE

    def test_nested_mappings_walked(self) -> None:
        result = SensitiveDataProcessor()(
            None,
            "info",
            {"request": {"url": "/auth/v1/user", "headers": {"Authorization": "Bearer x"}}},
        )
        assert result["request"] == {"url": "/auth/v1/user", "headers": {"Authorization": REDACTED_VALUE}}

    def test_identifiers_kept(self) -> None:
        result = SensitiveDataProcessor()(None, "info", {"tenant_id": "t1", "user_id": "u1"})
        assert result == {"tenant_id": "t1", "user_id": "u1"}

    def test_custom_field_set(self) -> None:
        processor = SensitiveDataProcessor(fields=frozenset({"email"}), fragments=())
        result = processor(None, "info", {"email": "ada@example.com", "password": "pw"})
        assert result["email"] == REDACTED_VALUE
        assert result["password"] == "pw"


@pytest.mark.unit
class TestConfigureLogging:
    def test_settings_loaded_from_environment_by_default(self) -> None:
        with patch.dict("os.environ", {"LOG_LEVEL": "ERROR"}, clear=True):
            get_logging_settings.cache_clear()
            configure_logging()
        assert logging.getLogger().level == logging.ERROR

    def test_reconfiguring_replaces_handler(self) -> None:
        before = len(logging.getLogger().handlers)
        configure_logging(LoggingSettings(log_level="INFO"))
        configure_logging(LoggingSettings(log_level="DEBUG"))
        root = logging.getLogger()
        assert len(root.handlers) == before + 1
        assert root.level == logging.DEBUG

    def test_stdlib_record_rendered_as_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(log_level="INFO", environment="production"))

        logging.getLogger("reviewdesk.test").warning(
            "tenant_refresh_failed",
            extra={"tenant_id": "t1", "access_token": "secret"},
        )

        [record] = _json_lines(capsys.readouterr().out)
        assert record["event"] == "tenant_refresh_failed"
        assert record["level"] == "warning"
        assert record["logger"] == "reviewdesk.test"
        assert record["tenant_id"] == "t1"
        assert record["access_token"] == REDACTED_VALUE
        assert "timestamp" in record

    def test_records_below_level_dropped(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(log_level="ERROR", environment="production"))

        logging.getLogger("reviewdesk.test").info("ignored")

        assert _json_lines(capsys.readouterr().out) == []

    def test_bound_context_variables_merged(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(log_level="INFO", environment="production"))

        with structlog.contextvars.bound_contextvars(tenant_id="t2"):
            get_logger("reviewdesk.test").info("metrics_loaded")

        [record] = _json_lines(capsys.readouterr().out)
        assert record["tenant_id"] == "t2"


@pytest.mark.unit
class TestGetLogger:
    def test_named_logger_shares_root_handler(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(log_level="DEBUG", environment="production"))

        get_logger("reviewdesk.test").info("sign_in", password="pw", user_id="u1")

        [record] = _json_lines(capsys.readouterr().out)
        assert record["event"] == "sign_in"
        assert record["logger"] == "reviewdesk.test"
        assert record["password"] == REDACTED_VALUE
        assert record["user_id"] == "u1"

    def test_unnamed_logger(self) -> None:
        configure_logging(LoggingSettings(log_level="DEBUG"))
        assert get_logger() is not None
