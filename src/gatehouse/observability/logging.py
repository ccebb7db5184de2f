"""Logging setup with JSON-lines or text output and secret redaction."""

from __future__ import annotations

import json
import logging
import math
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import IO, Final, Literal

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
LogFormat = Literal["json", "text"]

_REDACTED_VALUE: Final[str] = "***REDACTED***"
DEFAULT_LOGGER_NAME: Final[str] = "gatehouse"

# Level names accepted on the command line, mapped to stdlib levels.
LEVEL_NAMES: Final[Mapping[str, int]] = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

_SENSITIVE_KEY_TERMS: Final[tuple[str, ...]] = (
    "secret",
    "password",
    "passphrase",
    "api_key",
    "apikey",
    "authorization",
    "credential",
    "private_key",
)
_SENSITIVE_EXACT_KEYS: Final[frozenset[str]] = frozenset({"key", "session_key"})

_TEXT_FORMAT: Final[str] = "%(asctime)s %(levelname)-8s %(name)s %(message)s"

_STANDARD_LOG_RECORD_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }
)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """How the ``gatehouse`` logger tree should emit records."""

    level: int | str = "info"
    log_format: LogFormat = "json"
    logger_name: str = DEFAULT_LOGGER_NAME
    stream: IO[str] | None = field(default=None, compare=False)


class _JsonLineFormatter(logging.Formatter):
    """Formatter that emits canonical JSON objects per log line."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _iso8601z_from_epoch(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = _extract_extra_fields(record)
        if extras:
            event["fields"] = redact_log_value(extras)

        if record.exc_info is not None:
            event["exception"] = self.formatException(record.exc_info)

        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure the ``gatehouse`` logger and return it.

    Calling it again replaces the handler installed by the previous call.
    """

    cfg = config or LoggingConfig()
    level = parse_log_level(cfg.level)

    formatter: logging.Formatter
    if cfg.log_format == "json":
        formatter = _JsonLineFormatter()
    elif cfg.log_format == "text":
        formatter = logging.Formatter(_TEXT_FORMAT)
    else:
        raise ValueError(f"unsupported log format {cfg.log_format!r}")

    handler = logging.StreamHandler(cfg.stream if cfg.stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)

    logger = logging.getLogger(cfg.logger_name)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def reset_logging(logger_name: str = DEFAULT_LOGGER_NAME) -> None:
    """Remove handlers installed by ``setup_logging`` and restore propagation."""

    logger = logging.getLogger(logger_name)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def set_log_level(level: int | str, logger_name: str = DEFAULT_LOGGER_NAME) -> None:
    """Change the level of an already configured logger and its handlers."""

    parsed = parse_log_level(level)
    logger = logging.getLogger(logger_name)
    logger.setLevel(parsed)
    for handler in logger.handlers:
        handler.setLevel(parsed)


def use_development_logger(
    stream: IO[str] | None = None,
    logger_name: str = DEFAULT_LOGGER_NAME,
) -> logging.Logger:
    """Human-readable DEBUG output, used when the config enables ``testing``."""

    return setup_logging(
        LoggingConfig(level="debug", log_format="text", logger_name=logger_name, stream=stream)
    )


def emit_log_test(logger: logging.Logger) -> None:
    """Log one message at every level, for checking a logging setup by eye."""

    logger.debug("logtest: debug message")
    logger.info("logtest: info message")
    logger.warning("logtest: warn message")
    logger.error("logtest: error message")
    logger.critical("logtest: panic message")


def parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value

    if not isinstance(value, str):
        raise ValueError(f"level must be int or str, got {type(value).__name__}")

    normalized = value.strip().lower()
    if normalized in LEVEL_NAMES:
        return LEVEL_NAMES[normalized]

    raise ValueError(f"unsupported logging level {value!r}")


def redact_log_value(value: JSONValue) -> JSONValue:
    """Deep key-based redaction of secrets in structured log fields."""

    return _redact_value(_normalize_json_value(value), key_context=None)


def _iso8601z_from_epoch(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    fields: dict[str, JSONValue] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOG_RECORD_FIELDS:
            continue
        if key.startswith("_"):
            continue
        fields[key] = _normalize_json_value(value)
    return fields


def _normalize_json_value(value: object) -> JSONValue:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value):
            return value
        return _REDACTED_VALUE
    if isinstance(value, str):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        output: dict[str, JSONValue] = {}
        for key, item in value.items():
            output[str(key)] = _normalize_json_value(item)
        return output
    if isinstance(value, (list, tuple)):
        return [_normalize_json_value(item) for item in value]
    return repr(value)


def _redact_value(value: JSONValue, *, key_context: str | None) -> JSONValue:
    if key_context is not None and _requires_redaction_for_key(key_context):
        return _REDACTED_VALUE

    if isinstance(value, list):
        return [_redact_value(item, key_context=None) for item in value]

    if isinstance(value, dict):
        output: dict[str, JSONValue] = {}
        for key, item in value.items():
            output[key] = _redact_value(item, key_context=key)
        return output

    return value


def _requires_redaction_for_key(key: str) -> bool:
    key_lower = key.lower()
    if key_lower in _SENSITIVE_EXACT_KEYS:
        return True
    return any(term in key_lower for term in _SENSITIVE_KEY_TERMS)


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "JSONScalar",
    "JSONValue",
    "LEVEL_NAMES",
    "LogFormat",
    "LoggingConfig",
    "emit_log_test",
    "parse_log_level",
    "redact_log_value",
    "reset_logging",
    "set_log_level",
    "setup_logging",
    "use_development_logger",
]
