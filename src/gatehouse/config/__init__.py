"""
gatehouse config package public API.

File: src/gatehouse/config/__init__.py

Purpose
- Export config resolution/validation entrypoints and public error types.

Functional requirements
- Support loading from ``config/config.yml`` + ``config/.defaults.yml``,
  ``GATEHOUSE_`` env vars, and ``--config``/``--port`` flags.
- Fail fast with clear structured load/validation errors.

Non-functional requirements
- Keep import-time surface small and free of side effects.
"""

from gatehouse.config.claims import (
    canonical_header_key,
    claim_to_header,
    clean_claim_headers,
    sanitize_claim_body,
)
from gatehouse.config.errors import ConfigLoadError
from gatehouse.config.loader import (
    Resolution,
    ResolvedConfig,
    apply_port_override,
    dump_effective_config,
    effective_config,
    load_config,
    load_test_config,
    read_document,
    report_resolution,
    resolve_config,
)
from gatehouse.config.locator import ConfigSource, locate_config, resolve_root_dir
from gatehouse.config.migration import MigrationOutcome, migrate, migration_guidance
from gatehouse.config.schema import (
    Configuration,
    ConfigWarning,
    CookieSettings,
    DecodedFields,
    HeaderSettings,
    JWTSettings,
    SessionSettings,
    check_document,
    decode_section,
    overlay_defaults,
)
from gatehouse.config.validation import (
    ConfigValidationError,
    ConfigValidationIssue,
    ValidationReport,
    assert_valid_configuration,
    validate_configuration,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSource",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigWarning",
    "Configuration",
    "CookieSettings",
    "DecodedFields",
    "HeaderSettings",
    "JWTSettings",
    "MigrationOutcome",
    "Resolution",
    "ResolvedConfig",
    "SessionSettings",
    "ValidationReport",
    "apply_port_override",
    "assert_valid_configuration",
    "canonical_header_key",
    "check_document",
    "claim_to_header",
    "clean_claim_headers",
    "decode_section",
    "dump_effective_config",
    "effective_config",
    "load_config",
    "load_test_config",
    "locate_config",
    "migrate",
    "migration_guidance",
    "overlay_defaults",
    "read_document",
    "report_resolution",
    "resolve_config",
    "resolve_root_dir",
    "sanitize_claim_body",
    "validate_configuration",
]
