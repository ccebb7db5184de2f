"""
gatehouse - configuration resolution pipeline.

File: src/gatehouse/config/loader.py

Purpose
- Turn the primary YAML document, the defaults document, environment
  variables, and command-line flags into one validated ``Configuration``.

What should be included in this file
- YAML reading via ``yaml.safe_load`` with fatal load errors.
- Stage order: strict check (warn) -> primary decode -> legacy migration ->
  defaults overlay -> secret file -> ``--port`` override -> validation (fatal)
  -> claim header derivation.
- A pure ``resolve_config`` over already-read documents, plus ``load_config``
  which does the reading and logs the returned warnings.
- Deterministic redacted dump of the effective config.

Functional requirements
- Precedence: ``--port`` > primary document > defaults document > zero value.
- Every call builds a fresh result; nothing is cached at module level.

Non-functional requirements
- Single-threaded; must not run concurrently with itself.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, cast

import yaml

from gatehouse.config.errors import ConfigLoadError
from gatehouse.config.locator import (
    ConfigSource,
    locate_config,
    locate_defaults,
    locate_test_config,
    resolve_root_dir,
    secret_file_path,
)
from gatehouse.config.migration import MigrationKind, migrate
from gatehouse.config.schema import (
    MISSING,
    Configuration,
    ConfigWarning,
    DecodedFields,
    build_configuration,
    check_document,
    config_as_dict,
    decode_section,
    lookup_key,
    overlay_defaults,
    replace_fields,
    with_claim_headers,
)
from gatehouse.config.validation import assert_valid_configuration
from gatehouse.constants import BRANDING, OAUTH_KEY, PORT_UNSET

logger = logging.getLogger(__name__)

_GUIDANCE = (
    f"config file should have only these top level elements: "
    f"`{BRANDING.lc_name}` and `{OAUTH_KEY}`; continuing anyway"
)


@dataclass(frozen=True, slots=True)
class Resolution:
    """Output of the pure pipeline: configuration plus the soft problems found."""

    config: Configuration
    warnings: tuple[ConfigWarning, ...]
    migration: MigrationKind


@dataclass(frozen=True, slots=True)
class ResolvedConfig:
    """A resolved configuration together with where it came from."""

    config: Configuration
    warnings: tuple[ConfigWarning, ...]
    source: ConfigSource
    migration: MigrationKind
    document: Mapping[str, object]

    def get(self, key: str) -> object | None:
        """Raw value at dotted ``key`` in the primary document (case-insensitive)."""

        value = lookup_key(self.document, key.split("."))
        return None if value is MISSING else value


def read_document(path: str | Path) -> dict[str, Any]:
    """Read one YAML document; an empty file reads as an empty mapping."""

    resolved = Path(path)
    try:
        with resolved.open("r", encoding="utf-8") as handle:
            loaded = cast("object", yaml.safe_load(handle))
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"{resolved}: invalid YAML ({exc})") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {resolved}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigLoadError(
            f"{resolved}: expected top-level YAML mapping, got {type(loaded).__name__}"
        )
    return loaded


def resolve_config(
    document: Mapping[str, object],
    *,
    defaults_document: Mapping[str, object] | None = None,
    port: int = PORT_UNSET,
    secret: str | None = None,
    validate: bool = True,
) -> Resolution:
    """Run every resolution stage over already-read documents.

    Raises ``ConfigValidationError`` for the first hard rule broken when
    ``validate`` is true. Soft problems come back in ``Resolution.warnings``.
    """

    warnings: list[ConfigWarning] = list(check_document(document))

    primary = decode_section(document, BRANDING.lc_name)
    legacy = None
    if not primary.domains:
        legacy = decode_section(document, BRANDING.old_lc_name)
    outcome = migrate(primary, legacy)
    fields = outcome.fields
    reported = {item.path for item in warnings}
    warnings.extend(item for item in fields.issues if item.path not in reported)
    if outcome.warning is not None:
        warnings.append(outcome.warning)

    if defaults_document is not None:
        fields = overlay_defaults(fields, decode_section(defaults_document, BRANDING.lc_name))

    fields = _apply_secret_file(fields, secret)
    fields = apply_port_override(fields, port)

    config = build_configuration(fields)
    if validate:
        warnings.extend(assert_valid_configuration(config, document))

    return Resolution(
        config=with_claim_headers(config),
        warnings=tuple(warnings),
        migration=outcome.kind,
    )


def apply_port_override(fields: DecodedFields, port: int) -> DecodedFields:
    """Command-line ``--port`` wins over every document when it was given."""

    if port == PORT_UNSET:
        return fields
    return replace_fields(fields, port=port)


def load_config(
    *,
    config_flag: str | None = None,
    port: int = PORT_UNSET,
    environ: Mapping[str, str] | None = None,
    executable: str | Path | None = None,
    validate: bool = True,
    report: bool = True,
) -> ResolvedConfig:
    """Locate, read, and resolve the configuration for this process.

    With ``report=False`` the warnings are only returned; the caller logs them
    with ``report_resolution`` once its own logging is in place.
    """

    root_dir = resolve_root_dir(environ, executable=executable)
    source = locate_config(root_dir, config_flag=config_flag, environ=environ)
    return _load_from_source(source, port=port, validate=validate, report=report)


def load_test_config(
    *,
    environ: Mapping[str, str] | None = None,
    executable: str | Path | None = None,
    validate: bool = False,
) -> ResolvedConfig:
    """Build a fresh configuration for an isolated test setup.

    Each call discards nothing and shares nothing with earlier results; it
    must not run concurrently with another resolution.
    """

    root_dir = resolve_root_dir(environ, executable=executable)
    source = locate_test_config(root_dir, environ=environ)
    return _load_from_source(source, port=PORT_UNSET, validate=validate, report=True)


def effective_config(config: Configuration) -> dict[str, Any]:
    """Return a redacted effective config representation suitable for logging."""

    return config_as_dict(config, redact=True)


def dump_effective_config(config: Configuration) -> str:
    """Return deterministic JSON dump of redacted effective config."""

    return json.dumps(
        effective_config(config), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


def log_warnings(warnings: tuple[ConfigWarning, ...]) -> None:
    """Report soft problems with enough detail for an operator to act."""

    schema_issues = [item for item in warnings if item.kind == "schema"]
    if schema_issues:
        logger.error("configuration error: %s", _GUIDANCE)
        for item in schema_issues:
            logger.error("configuration error: %s", item)

    for item in warnings:
        if item.kind in {"migration", "secret"}:
            logger.error("%s", item.message)
        elif item.kind != "schema":
            logger.warning("%s", item)


def report_resolution(resolved: ResolvedConfig) -> None:
    """Log what an operator needs to see about ``resolved``."""

    log_warnings(resolved.warnings)
    for claim, header in resolved.config.headers.claims_cleaned.items():
        if header == claim:
            continue
        logger.info(
            "%s.headers.claims %s will be forwarded downstream in the header %s",
            BRANDING.lc_name,
            claim,
            header,
        )
        logger.debug(
            "nginx will populate the variable $auth_resp_%s",
            header.lower().replace("-", "_"),
        )
    logger.debug(
        "resolved configuration from %s",
        resolved.source.path,
        extra={"effective_config": effective_config(resolved.config)},
    )


def _load_from_source(
    source: ConfigSource, *, port: int, validate: bool, report: bool
) -> ResolvedConfig:
    document = read_document(source.path)

    defaults_document: dict[str, Any] | None = None
    defaults_path = locate_defaults(source.root_dir)
    extra: list[ConfigWarning] = []
    if defaults_path is None:
        extra.append(
            ConfigWarning(
                "defaults",
                str(source.config_dir),
                "no defaults document found; unset fields keep their zero value",
            )
        )
    else:
        defaults_document = read_document(defaults_path)

    resolution = resolve_config(
        document,
        defaults_document=defaults_document,
        port=port,
        secret=_read_secret_file(source.root_dir),
        validate=validate,
    )
    resolved = ResolvedConfig(
        config=resolution.config,
        warnings=tuple(extra) + resolution.warnings,
        source=source,
        migration=resolution.migration,
        document=MappingProxyType(document),
    )
    if report:
        report_resolution(resolved)
    return resolved


def _apply_secret_file(fields: DecodedFields, secret: str | None) -> DecodedFields:
    if secret and not fields.get("jwt.secret"):
        return replace_fields(fields, jwt__secret=secret)
    return fields


def _read_secret_file(root_dir: Path) -> str | None:
    path = secret_file_path(root_dir)
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigLoadError(f"unable to read secret file {path}: {exc}") from exc


__all__ = [
    "ConfigLoadError",
    "Resolution",
    "ResolvedConfig",
    "apply_port_override",
    "dump_effective_config",
    "effective_config",
    "load_config",
    "load_test_config",
    "log_warnings",
    "read_document",
    "report_resolution",
    "resolve_config",
]
