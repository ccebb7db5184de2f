"""
gatehouse - configuration model, decoding, and strict schema checks.

File: src/gatehouse/config/schema.py

Purpose
- Define the typed, immutable ``Configuration`` and the table that maps YAML
  keys onto its fields.

What should be included in this file
- Schema-as-data field table (YAML path -> attribute path -> value kind).
- Weakly typed decoding of one top-level section into flat field values.
- Strict whole-document check that reports unknown keys without aborting.
- Zero-value defaults overlay and redaction for effective-config dumps.

Functional requirements
- Keys are matched case-insensitively.
- Values that cannot be coerced are dropped and reported, never raised.
- The strict check and the decoder share one coercion path so that both
  report the same type mismatches.

Non-functional requirements
- Deterministic ordering of fields and issues.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final, Literal

from gatehouse.config.claims import clean_claim_headers
from gatehouse.constants import BRANDING, OAUTH_KEY

FieldKind = Literal["str", "int", "bool", "list"]
WarningKind = Literal["schema", "decode", "migration", "defaults", "secret"]

_BOOL_TRUE: Final[frozenset[str]] = frozenset({"1", "t", "true"})
_BOOL_FALSE: Final[frozenset[str]] = frozenset({"", "0", "f", "false"})

REDACTED: Final[str] = "<redacted>"

# Returned by ``lookup_key`` for keys absent from a document.
MISSING: Final[object] = object()


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One configuration field: where it lives in YAML and in the model."""

    key: tuple[str, ...]
    attr: str
    kind: FieldKind


FIELDS: Final[tuple[FieldSpec, ...]] = (
    FieldSpec(("loglevel",), "log_level", "str"),
    FieldSpec(("listen",), "listen", "str"),
    FieldSpec(("port",), "port", "int"),
    FieldSpec(("domains",), "domains", "list"),
    FieldSpec(("whitelist",), "whitelist", "list"),
    FieldSpec(("teamwhitelist",), "team_whitelist", "list"),
    FieldSpec(("allowallusers",), "allow_all_users", "bool"),
    FieldSpec(("publicaccess",), "public_access", "bool"),
    FieldSpec(("jwt", "maxage"), "jwt.max_age", "int"),
    FieldSpec(("jwt", "issuer"), "jwt.issuer", "str"),
    FieldSpec(("jwt", "secret"), "jwt.secret", "str"),
    FieldSpec(("jwt", "compress"), "jwt.compress", "bool"),
    FieldSpec(("cookie", "name"), "cookie.name", "str"),
    FieldSpec(("cookie", "domain"), "cookie.domain", "str"),
    FieldSpec(("cookie", "secure"), "cookie.secure", "bool"),
    FieldSpec(("cookie", "httponly"), "cookie.http_only", "bool"),
    FieldSpec(("cookie", "maxage"), "cookie.max_age", "int"),
    FieldSpec(("cookie", "samesite"), "cookie.same_site", "str"),
    FieldSpec(("headers", "jwt"), "headers.jwt", "str"),
    FieldSpec(("headers", "user"), "headers.user", "str"),
    FieldSpec(("headers", "querystring"), "headers.query_string", "str"),
    FieldSpec(("headers", "redirect"), "headers.redirect", "str"),
    FieldSpec(("headers", "success"), "headers.success", "str"),
    FieldSpec(("headers", "claimheader"), "headers.claim_header", "str"),
    FieldSpec(("headers", "claims"), "headers.claims", "list"),
    FieldSpec(("headers", "accesstoken"), "headers.access_token", "str"),
    FieldSpec(("headers", "idtoken"), "headers.id_token", "str"),
    FieldSpec(("session", "name"), "session.name", "str"),
    FieldSpec(("session", "key"), "session.key", "str"),
    FieldSpec(("test_url",), "test_url", "str"),
    FieldSpec(("test_urls",), "test_urls", "list"),
    FieldSpec(("testing",), "testing", "bool"),
    FieldSpec(("post_logout_redirect_uris",), "logout_redirect_urls", "list"),
)

FIELDS_BY_ATTR: Final[Mapping[str, FieldSpec]] = MappingProxyType(
    {spec.attr: spec for spec in FIELDS}
)

ZERO_VALUES: Final[Mapping[FieldKind, object]] = MappingProxyType(
    {"str": "", "int": 0, "bool": False, "list": ()}
)

SENSITIVE_ATTRS: Final[frozenset[str]] = frozenset({"jwt.secret", "session.key"})

# Top-level document sections the strict check accepts. ``oauth`` is opaque here.
DOCUMENT_SECTIONS: Final[tuple[str, ...]] = (BRANDING.lc_name, BRANDING.old_lc_name, OAUTH_KEY)

_GROUP_KEYS: Final[frozenset[str]] = frozenset(spec.key[0] for spec in FIELDS if len(spec.key) > 1)


@dataclass(frozen=True, slots=True)
class ConfigWarning:
    """Soft problem found during resolution; reported, never fatal."""

    kind: WarningKind
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass(frozen=True, slots=True)
class JWTSettings:
    max_age: int = 0
    issuer: str = ""
    secret: str = field(default="", repr=False)
    compress: bool = False


@dataclass(frozen=True, slots=True)
class CookieSettings:
    name: str = ""
    domain: str = ""
    secure: bool = False
    http_only: bool = False
    max_age: int = 0
    same_site: str = ""


@dataclass(frozen=True, slots=True)
class HeaderSettings:
    jwt: str = ""
    user: str = ""
    query_string: str = ""
    redirect: str = ""
    success: str = ""
    claim_header: str = ""
    claims: tuple[str, ...] = ()
    access_token: str = ""
    id_token: str = ""
    claims_cleaned: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )


@dataclass(frozen=True, slots=True)
class SessionSettings:
    name: str = ""
    key: str = field(default="", repr=False)


@dataclass(frozen=True, slots=True)
class Configuration:
    """Resolved proxy configuration. Built once, then only read."""

    log_level: str = ""
    listen: str = ""
    port: int = 0
    domains: tuple[str, ...] = ()
    whitelist: tuple[str, ...] = ()
    team_whitelist: tuple[str, ...] = ()
    allow_all_users: bool = False
    public_access: bool = False
    jwt: JWTSettings = field(default_factory=JWTSettings)
    cookie: CookieSettings = field(default_factory=CookieSettings)
    headers: HeaderSettings = field(default_factory=HeaderSettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    test_url: str = ""
    test_urls: tuple[str, ...] = ()
    testing: bool = False
    logout_redirect_urls: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DecodedFields:
    """Flat field values decoded from one document section.

    ``defined`` holds the attributes the section spelled out, whatever their
    value; attributes it left out carry their kind's zero value.
    """

    values: Mapping[str, object]
    defined: frozenset[str] = frozenset()
    issues: tuple[ConfigWarning, ...] = ()

    def get(self, attr: str) -> object:
        return self.values[attr]

    @property
    def domains(self) -> tuple[str, ...]:
        value = self.values["domains"]
        return value if isinstance(value, tuple) else ()


class CoercionError(ValueError):
    """Raised internally when a YAML value does not fit its field kind."""


def empty_fields() -> DecodedFields:
    """Return field values with every attribute at its zero value."""

    return DecodedFields(values=MappingProxyType(_zero_values()))


def is_zero(kind: FieldKind, value: object) -> bool:
    if kind == "list":
        return len(value) == 0  # type: ignore[arg-type]
    return value == ZERO_VALUES[kind]


def coerce_value(value: object, kind: FieldKind) -> object:
    """Weakly coerce a YAML value to ``kind`` or raise ``CoercionError``."""

    if value is None:
        return ZERO_VALUES[kind]
    if kind == "str":
        return _coerce_str(value)
    if kind == "int":
        return _coerce_int(value)
    if kind == "bool":
        return _coerce_bool(value)
    return _coerce_list(value)


def decode_section(document: Mapping[str, object], section: str) -> DecodedFields:
    """Decode top-level ``section`` of ``document`` into flat field values."""

    values = _zero_values()
    defined: set[str] = set()
    issues: list[ConfigWarning] = []

    raw_section = lookup_key(document, (section,))
    if raw_section is MISSING or raw_section is None:
        return DecodedFields(values=MappingProxyType(values))
    if not isinstance(raw_section, Mapping):
        issues.append(
            ConfigWarning(
                "decode",
                section,
                f"expected a mapping, got {type(raw_section).__name__}",
            )
        )
        return DecodedFields(values=MappingProxyType(values), issues=tuple(issues))

    for spec in FIELDS:
        raw = lookup_key(raw_section, spec.key)
        if raw is MISSING:
            continue
        path = _join(section, ".".join(spec.key))
        try:
            values[spec.attr] = coerce_value(raw, spec.kind)
        except CoercionError as exc:
            issues.append(ConfigWarning("decode", path, str(exc)))
            continue
        defined.add(spec.attr)

    return DecodedFields(
        values=MappingProxyType(values),
        defined=frozenset(defined),
        issues=tuple(issues),
    )


def check_document(document: Mapping[str, object]) -> tuple[ConfigWarning, ...]:
    """Strictly check ``document`` and report every unknown or mistyped key.

    The result is advisory; callers log it and keep going.
    """

    issues: list[ConfigWarning] = []
    for key in sorted(document, key=str):
        if _normalize_key(key) not in DOCUMENT_SECTIONS:
            issues.append(ConfigWarning("schema", str(key), "unknown field"))

    for section in (BRANDING.lc_name, BRANDING.old_lc_name):
        raw_section = lookup_key(document, (section,))
        if raw_section is MISSING or raw_section is None:
            continue
        if not isinstance(raw_section, Mapping):
            issues.append(
                ConfigWarning(
                    "schema",
                    section,
                    f"expected a mapping, got {type(raw_section).__name__}",
                )
            )
            continue
        issues.extend(_unknown_keys(raw_section, section))
        for issue in decode_section(document, section).issues:
            issues.append(dataclasses.replace(issue, kind="schema"))

    return tuple(issues)


def overlay_defaults(primary: DecodedFields, defaults: DecodedFields) -> DecodedFields:
    """Fill fields the primary stage left at their zero value from ``defaults``.

    A field is only taken from ``defaults`` when that document defines it;
    a non-zero primary value always wins.
    """

    merged = dict(primary.values)
    for spec in FIELDS:
        if spec.attr not in defaults.defined:
            continue
        if is_zero(spec.kind, merged[spec.attr]):
            merged[spec.attr] = defaults.values[spec.attr]
    return DecodedFields(
        values=MappingProxyType(merged),
        defined=primary.defined | defaults.defined,
        issues=primary.issues,
    )


def replace_fields(decoded: DecodedFields, **changes: object) -> DecodedFields:
    """Return a copy of ``decoded`` with attributes (``jwt__secret`` style) replaced."""

    merged = dict(decoded.values)
    for name, value in changes.items():
        attr = name.replace("__", ".")
        if attr not in FIELDS_BY_ATTR:
            raise KeyError(attr)
        merged[attr] = value
    return dataclasses.replace(decoded, values=MappingProxyType(merged))


def build_configuration(decoded: DecodedFields) -> Configuration:
    """Materialize the immutable ``Configuration`` from flat field values.

    The derived claim header mapping is left empty; see ``with_claim_headers``.
    """

    v = decoded.values
    return Configuration(
        log_level=_as(v, "log_level", str),
        listen=_as(v, "listen", str),
        port=_as(v, "port", int),
        domains=_as(v, "domains", tuple),
        whitelist=_as(v, "whitelist", tuple),
        team_whitelist=_as(v, "team_whitelist", tuple),
        allow_all_users=_as(v, "allow_all_users", bool),
        public_access=_as(v, "public_access", bool),
        jwt=JWTSettings(
            max_age=_as(v, "jwt.max_age", int),
            issuer=_as(v, "jwt.issuer", str),
            secret=_as(v, "jwt.secret", str),
            compress=_as(v, "jwt.compress", bool),
        ),
        cookie=CookieSettings(
            name=_as(v, "cookie.name", str),
            domain=_as(v, "cookie.domain", str),
            secure=_as(v, "cookie.secure", bool),
            http_only=_as(v, "cookie.http_only", bool),
            max_age=_as(v, "cookie.max_age", int),
            same_site=_as(v, "cookie.same_site", str),
        ),
        headers=HeaderSettings(
            jwt=_as(v, "headers.jwt", str),
            user=_as(v, "headers.user", str),
            query_string=_as(v, "headers.query_string", str),
            redirect=_as(v, "headers.redirect", str),
            success=_as(v, "headers.success", str),
            claim_header=_as(v, "headers.claim_header", str),
            claims=_as(v, "headers.claims", tuple),
            access_token=_as(v, "headers.access_token", str),
            id_token=_as(v, "headers.id_token", str),
        ),
        session=SessionSettings(
            name=_as(v, "session.name", str),
            key=_as(v, "session.key", str),
        ),
        test_url=_as(v, "test_url", str),
        test_urls=_as(v, "test_urls", tuple),
        testing=_as(v, "testing", bool),
        logout_redirect_urls=_as(v, "logout_redirect_urls", tuple),
    )


def with_claim_headers(config: Configuration) -> Configuration:
    """Return a new ``Configuration`` carrying the derived claim headers."""

    headers = dataclasses.replace(
        config.headers,
        claims_cleaned=clean_claim_headers(config.headers.claims, config.headers.claim_header),
    )
    return dataclasses.replace(config, headers=headers)


def config_as_dict(config: Configuration, *, redact: bool = True) -> dict[str, Any]:
    """Nested plain-dict view of ``config`` keyed by attribute names."""

    out: dict[str, Any] = {}
    for spec in FIELDS:
        value = _attr_value(config, spec.attr)
        if isinstance(value, tuple):
            value = list(value)
        if redact and spec.attr in SENSITIVE_ATTRS and value:
            value = REDACTED
        _set_nested(out, tuple(spec.attr.split(".")), value)
    out["headers"]["claims_cleaned"] = dict(sorted(config.headers.claims_cleaned.items()))
    return out


def _attr_value(config: Configuration, attr: str) -> object:
    cursor: object = config
    for part in attr.split("."):
        cursor = getattr(cursor, part)
    return cursor


def _unknown_keys(section: Mapping[str, object], path: str) -> list[ConfigWarning]:
    known_top = {spec.key[0] for spec in FIELDS}
    issues: list[ConfigWarning] = []
    for key in sorted(section, key=str):
        normalized = _normalize_key(key)
        key_path = _join(path, str(key))
        if normalized not in known_top:
            issues.append(ConfigWarning("schema", key_path, "unknown field"))
            continue
        if normalized not in _GROUP_KEYS:
            continue
        group = section[key]
        if group is None:
            continue
        if not isinstance(group, Mapping):
            issues.append(
                ConfigWarning("schema", key_path, f"expected a mapping, got {type(group).__name__}")
            )
            continue
        known_nested = {spec.key[1] for spec in FIELDS if spec.key[0] == normalized}
        for nested in sorted(group, key=str):
            if _normalize_key(nested) not in known_nested:
                issues.append(ConfigWarning("schema", _join(key_path, str(nested)), "unknown field"))
    return issues


def lookup_key(payload: Mapping[Any, object], key: Sequence[str]) -> object:
    """Value at ``key`` (one part per nesting level), or ``MISSING``.

    Parts match case-insensitively; on duplicate spellings the last one wins.
    """

    cursor: object = payload
    for raw_part in key:
        part = raw_part.lower()
        if not isinstance(cursor, Mapping):
            return MISSING
        matched = MISSING
        for candidate, value in cursor.items():
            if _normalize_key(candidate) == part:
                matched = value
        if matched is MISSING:
            return MISSING
        cursor = matched
    return cursor


def _normalize_key(key: object) -> str:
    return str(key).lower()


def _zero_values() -> dict[str, object]:
    return {spec.attr: ZERO_VALUES[spec.kind] for spec in FIELDS}


def _coerce_str(value: object) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    raise CoercionError(f"expected string, got {type(value).__name__}")


def _coerce_int(value: object) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return 0
        try:
            return int(text)
        except ValueError:
            pass
    raise CoercionError(f"expected integer, got {type(value).__name__} {value!r}")


def _coerce_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _BOOL_TRUE:
            return True
        if lowered in _BOOL_FALSE:
            return False
    raise CoercionError(f"expected boolean, got {type(value).__name__} {value!r}")


def _coerce_list(value: object) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        items: list[str] = []
        for index, item in enumerate(value):
            try:
                items.append(_coerce_str(item))
            except CoercionError as exc:
                raise CoercionError(f"item {index}: {exc}") from exc
        return tuple(items)
    if isinstance(value, Mapping):
        raise CoercionError("expected list of strings, got mapping")
    return (_coerce_str(value),)


def _as(values: Mapping[str, object], attr: str, expected: type[Any]) -> Any:
    value = values[attr]
    if not isinstance(value, expected):
        raise TypeError(f"{attr}: expected {expected.__name__}, got {type(value).__name__}")
    return value


def _set_nested(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    cursor = target
    for part in path[:-1]:
        next_node = cursor.get(part)
        if not isinstance(next_node, dict):
            next_node = {}
            cursor[part] = next_node
        cursor = next_node
    cursor[path[-1]] = value


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


__all__ = [
    "Configuration",
    "ConfigWarning",
    "CookieSettings",
    "DOCUMENT_SECTIONS",
    "DecodedFields",
    "FIELDS",
    "FIELDS_BY_ATTR",
    "FieldSpec",
    "HeaderSettings",
    "JWTSettings",
    "MISSING",
    "REDACTED",
    "SENSITIVE_ATTRS",
    "SessionSettings",
    "build_configuration",
    "check_document",
    "coerce_value",
    "config_as_dict",
    "decode_section",
    "empty_fields",
    "is_zero",
    "lookup_key",
    "overlay_defaults",
    "replace_fields",
    "with_claim_headers",
]
