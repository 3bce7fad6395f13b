"""Structured logging for the review desk client.

Every module logs through the standard library
(``logging.getLogger(__name__)`` with ``extra={...}`` fields). A single
root handler installed by :func:`configure_logging` renders those records
with structlog, together with anything logged through :func:`get_logger`:

- JSON lines when ``ENVIRONMENT=production`` (or ``LOG_JSON=true``)
- Coloured console output everywhere else
- Context variables bound with ``structlog.contextvars`` are merged in
- Credentials (passwords, session tokens, the anon key) are redacted,
  including inside nested mappings

Usage:
    from reviewdesk.infra.observability import configure_logging, get_logger

    configure_logging()
    get_logger(__name__).info("tenant_switched", tenant_id="t1")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import MutableMapping

Processor = structlog.types.Processor

#: Keys whose values never reach the log output (compared lower-cased).
SENSITIVE_FIELDS: frozenset[str] = frozenset(
    {
        "authorization",
        "apikey",
        "api_key",
        "anon_key",
        "bearer",
        "credential",
        "secret",
    }
)

#: Any key containing one of these is treated as sensitive too.
SENSITIVE_FRAGMENTS: tuple[str, ...] = ("password", "token")

REDACTED_VALUE: str = "***REDACTED***"

_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_HANDLER_NAME = "reviewdesk-structlog"


class LoggingSettings(BaseSettings):
    """Log level and output format, read from ``LOG_LEVEL``, ``ENVIRONMENT``
    and ``LOG_JSON``.

    Example:
        >>> LoggingSettings(environment="production").use_json_logs
        True
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    json_logs: bool | None = Field(
        default=None,
        alias="LOG_JSON",
        description="Force JSON (true) or console (false) output; unset follows ENVIRONMENT",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _known_level(cls, v: Any) -> str:
        level = str(v).strip().upper()
        if level not in _LEVELS:
            msg = f"log_level must be one of {sorted(_LEVELS)}"
            raise ValueError(msg)
        return level

    @property
    def use_json_logs(self) -> bool:
        if self.json_logs is not None:
            return self.json_logs
        return self.environment == "production"

    @property
    def log_level_int(self) -> int:
        return _LEVELS[self.log_level]


class SensitiveDataProcessor:
    """Structlog processor replacing credential values with a marker.

    A key is sensitive when it is listed in ``fields`` or contains one of
    ``fragments`` (both case-insensitive). Nested mappings are walked so
    ``extra={"headers": {"Authorization": ...}}`` is covered as well.

    Example:
        >>> processor = SensitiveDataProcessor()
        >>> processor(None, "info", {"event": "sign_in", "password": "x"})["password"]
        '***REDACTED***'
    """

    def __init__(
        self,
        fields: frozenset[str] = SENSITIVE_FIELDS,
        fragments: tuple[str, ...] = SENSITIVE_FRAGMENTS,
    ) -> None:
        self._fields = fields
        self._fragments = fragments

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        for key, value in list(event_dict.items()):
            event_dict[key] = self._scrub(key, value)
        return event_dict

    def is_sensitive(self, key: str) -> bool:
        lowered = key.lower()
        return lowered in self._fields or any(f in lowered for f in self._fragments)

    def _scrub(self, key: str, value: Any) -> Any:
        if self.is_sensitive(key):
            return REDACTED_VALUE
        if isinstance(value, Mapping):
            return {k: self._scrub(str(k), v) for k, v in value.items()}
        return value


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Process-wide LoggingSettings; ``cache_clear()`` it in tests."""
    return LoggingSettings()


def _common_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _build_handler(settings: LoggingSettings) -> logging.Handler:
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if settings.use_json_logs
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    # foreign_pre_chain only runs for plain stdlib records; structlog
    # events arrive already processed by the chain in configure_logging.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            *_common_chain(),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.ExtraAdder(),
            SensitiveDataProcessor(),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)
    return handler


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Install the structlog-backed root handler.

    Safe to call more than once: the handler from an earlier call is
    swapped out rather than duplicated, and the root level is updated.

    Args:
        settings: Explicit settings; defaults to :func:`get_logging_settings`.
    """
    settings = settings or get_logging_settings()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_common_chain(),
            SensitiveDataProcessor(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    for handler in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(handler)
    root.addHandler(_build_handler(settings))
    root.setLevel(settings.log_level_int)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger; a ``name`` is also bound as ``logger``."""
    logger = structlog.get_logger(name)
    return logger.bind(logger=name) if name is not None else logger
