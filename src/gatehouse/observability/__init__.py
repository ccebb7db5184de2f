"""Public observability primitives: logging setup and redaction."""

from gatehouse.observability.logging import (
    LoggingConfig,
    emit_log_test,
    parse_log_level,
    redact_log_value,
    reset_logging,
    set_log_level,
    setup_logging,
    use_development_logger,
)

__all__ = [
    "LoggingConfig",
    "emit_log_test",
    "parse_log_level",
    "redact_log_value",
    "reset_logging",
    "set_log_level",
    "setup_logging",
    "use_development_logger",
]
