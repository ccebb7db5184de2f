"""
gatehouse - fail-fast validation of the resolved configuration.

File: src/gatehouse/config/validation.py

Purpose
- Enforce structural and cross-field rules before anything is served.

Functional requirements
- Return the first fatal violation only; rules run in a fixed order.
- Short secrets are reported as warnings and never fail validation.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from gatehouse.config.schema import MISSING, Configuration, ConfigWarning, lookup_key
from gatehouse.constants import BRANDING, MIN_BASE64_LENGTH, REQUIRED_OPTIONS


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """First fatal issue (if any) plus the warnings gathered before it."""

    issue: ConfigValidationIssue | None
    warnings: tuple[ConfigWarning, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.issue is None


class ConfigValidationError(ValueError):
    """Raised when the resolved configuration breaks a hard rule."""

    def __init__(self, issue: ConfigValidationIssue) -> None:
        self.issue = issue
        super().__init__(f"configuration error: {issue.path}: {issue.message}")


def validate_configuration(
    config: Configuration,
    document: Mapping[str, object],
    *,
    required_options: Sequence[str] = REQUIRED_OPTIONS,
) -> ValidationReport:
    """Check ``config`` (resolved from raw ``document``) in order, stopping at the first failure."""

    for option in required_options:
        if not is_set(document, option):
            return ValidationReport(
                ConfigValidationIssue(option, "required configuration option is not set")
            )

    if not config.domains and not config.allow_all_users:
        return ValidationReport(
            ConfigValidationIssue(
                f"{BRANDING.lc_name}.domains",
                f"either one of {BRANDING.lc_name}.domains or "
                f"{BRANDING.lc_name}.allowAllUsers needs to be set",
            )
        )

    warnings = secret_length_warnings(config)

    if config.cookie.max_age < 0:
        return ValidationReport(
            ConfigValidationIssue(
                f"{BRANDING.lc_name}.cookie.maxAge",
                f"cookie maxAge cannot be lower than 0 (currently: {config.cookie.max_age})",
            ),
            warnings,
        )
    if config.jwt.max_age <= 0:
        return ValidationReport(
            ConfigValidationIssue(
                f"{BRANDING.lc_name}.jwt.maxAge",
                f"JWT maxAge cannot be zero or lower (currently: {config.jwt.max_age})",
            ),
            warnings,
        )
    if config.cookie.max_age > config.jwt.max_age:
        return ValidationReport(
            ConfigValidationIssue(
                f"{BRANDING.lc_name}.cookie.maxAge",
                f"cookie maxAge ({config.cookie.max_age}) cannot be larger than "
                f"the JWT maxAge ({config.jwt.max_age})",
            ),
            warnings,
        )
    return ValidationReport(None, warnings)


def assert_valid_configuration(
    config: Configuration,
    document: Mapping[str, object],
    *,
    required_options: Sequence[str] = REQUIRED_OPTIONS,
) -> tuple[ConfigWarning, ...]:
    """Validate and raise ``ConfigValidationError`` on the first failure."""

    report = validate_configuration(config, document, required_options=required_options)
    if report.issue is not None:
        raise ConfigValidationError(report.issue)
    return report.warnings


def secret_length_warnings(config: Configuration) -> tuple[ConfigWarning, ...]:
    warnings: list[ConfigWarning] = []
    checks = (
        ("secret", f"{BRANDING.lc_name}.jwt.secret", config.jwt.secret),
        ("session key", f"{BRANDING.lc_name}.session.key", config.session.key),
    )
    for label, path, value in checks:
        if len(value) < MIN_BASE64_LENGTH:
            warnings.append(
                ConfigWarning(
                    "secret",
                    path,
                    f"your {label} is too short! ({len(value)} characters long). "
                    f"Please consider deleting {path} to automatically generate "
                    f"a secret of {MIN_BASE64_LENGTH} characters",
                )
            )
    return tuple(warnings)


def is_set(document: Mapping[str, object], dotted_key: str) -> bool:
    """Whether ``dotted_key`` names a present, non-null value in ``document``.

    Keys are compared case-insensitively.
    """

    value = lookup_key(document, dotted_key.split("."))
    return value is not MISSING and value is not None


__all__ = [
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ValidationReport",
    "assert_valid_configuration",
    "is_set",
    "secret_length_warnings",
    "validate_configuration",
]
