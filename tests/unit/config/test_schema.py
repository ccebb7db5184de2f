"""
gatehouse - unit tests for config decoding and the strict schema check

File: tests/unit/config/test_schema.py

Purpose
- Validate the schema-as-data decoder, the unknown-key check, and the defaults overlay.

What this test file should cover
- Case-insensitive keys and weak typing.
- Unknown and mistyped keys reported, never raised.
- The strict check and the decoder agree on type mismatches.
- Zero-value overlay precedence.
"""

from __future__ import annotations

import dataclasses

import pytest

from gatehouse.config.schema import (
    FIELDS,
    MISSING,
    REDACTED,
    Configuration,
    JWTSettings,
    build_configuration,
    check_document,
    coerce_value,
    config_as_dict,
    decode_section,
    empty_fields,
    lookup_key,
    overlay_defaults,
    replace_fields,
    with_claim_headers,
)


@pytest.mark.unit
def test_decode_matches_keys_case_insensitively() -> None:
    document = {
        "Gatehouse": {
            "ALLOWALLUSERS": True,
            "teamWhitelist": ["org/team"],
            "Cookie": {"HttpOnly": True, "maxage": 30},
            "jwt": {"maxAge": 60},
        }
    }

    decoded = decode_section(document, "gatehouse")

    assert decoded.issues == ()
    assert decoded.values["allow_all_users"] is True
    assert decoded.values["team_whitelist"] == ("org/team",)
    assert decoded.values["cookie.http_only"] is True
    assert decoded.values["cookie.max_age"] == 30
    assert decoded.values["jwt.max_age"] == 60
    assert decoded.defined == {
        "allow_all_users",
        "team_whitelist",
        "cookie.http_only",
        "cookie.max_age",
        "jwt.max_age",
    }


@pytest.mark.unit
def test_missing_section_decodes_to_zero_values() -> None:
    decoded = decode_section({"oauth": {}}, "gatehouse")

    assert decoded.values == empty_fields().values
    assert decoded.defined == frozenset()
    assert decoded.domains == ()


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "kind", "expected"),
    [
        ("8080", "int", 8080),
        (" 42 ", "int", 42),
        (3.0, "int", 3),
        (True, "int", 1),
        ("true", "bool", True),
        ("F", "bool", False),
        (1, "bool", True),
        (9090, "str", "9090"),
        ("example.com", "list", ("example.com",)),
        (["a", 1], "list", ("a", "1")),
        (None, "list", ()),
        (None, "int", 0),
    ],
)
def test_weak_typing(value: object, kind: str, expected: object) -> None:
    assert coerce_value(value, kind) == expected  # type: ignore[arg-type]


@pytest.mark.unit
def test_uncoercible_value_is_dropped_and_reported() -> None:
    document = {"gatehouse": {"port": "eighty", "domains": ["example.com"]}}

    decoded = decode_section(document, "gatehouse")

    assert decoded.values["port"] == 0
    assert "port" not in decoded.defined
    assert decoded.values["domains"] == ("example.com",)
    assert [issue.path for issue in decoded.issues] == ["gatehouse.port"]
    assert decoded.issues[0].kind == "decode"


@pytest.mark.unit
def test_non_mapping_section_is_reported() -> None:
    decoded = decode_section({"gatehouse": ["not", "a", "mapping"]}, "gatehouse")

    assert decoded.values == empty_fields().values
    assert decoded.issues[0].path == "gatehouse"


@pytest.mark.unit
def test_check_document_reports_unknown_keys_at_every_level() -> None:
    document = {
        "gatehouse": {
            "domains": ["example.com"],
            "domain": "typo.example.com",
            "jwt": {"maxAge": 240, "max_age": 240},
        },
        "porter": {"listen": "0.0.0.0", "lisen": "oops"},
        "oauth": {"provider": "google", "anything": "goes"},
        "extra": {},
    }

    issues = check_document(document)

    assert all(issue.kind == "schema" for issue in issues)
    assert {issue.path for issue in issues} == {
        "extra",
        "gatehouse.domain",
        "gatehouse.jwt.max_age",
        "porter.lisen",
    }


@pytest.mark.unit
def test_check_document_is_quiet_for_a_well_formed_document() -> None:
    document = {
        "gatehouse": {
            "domains": ["example.com"],
            "cookie": {"name": "c", "sameSite": "lax"},
            "headers": {"claims": ["groups"], "claimheader": "X-Claim-"},
            "session": None,
        },
        "oauth": {"provider": "google", "client_id": "abc"},
    }

    assert check_document(document) == ()


@pytest.mark.unit
def test_strict_check_and_decoder_agree_on_type_mismatches() -> None:
    document = {
        "gatehouse": {
            "port": "eighty",
            "testing": "maybe",
            "jwt": {"maxAge": ["240"]},
            "headers": {"claims": {"nested": "mapping"}},
        }
    }

    decoded_paths = {issue.path for issue in decode_section(document, "gatehouse").issues}
    strict_paths = {issue.path for issue in check_document(document)}

    assert decoded_paths == {
        "gatehouse.port",
        "gatehouse.testing",
        "gatehouse.jwt.maxage",
        "gatehouse.headers.claims",
    }
    assert decoded_paths <= strict_paths


@pytest.mark.unit
def test_overlay_fills_only_zero_valued_fields() -> None:
    primary = decode_section({"gatehouse": {"cookie": {"name": "PrimaryCookie"}}}, "gatehouse")
    defaults = decode_section(
        {"gatehouse": {"cookie": {"name": "DefaultCookie", "maxAge": 240}}}, "gatehouse"
    )

    merged = overlay_defaults(primary, defaults)

    assert merged.values["cookie.name"] == "PrimaryCookie"
    assert merged.values["cookie.max_age"] == 240


@pytest.mark.unit
def test_overlay_ignores_fields_the_defaults_do_not_define() -> None:
    primary = decode_section({"gatehouse": {"port": 0}}, "gatehouse")
    defaults = decode_section({"gatehouse": {"listen": "0.0.0.0"}}, "gatehouse")

    merged = overlay_defaults(primary, defaults)

    assert merged.values["port"] == 0
    assert merged.values["listen"] == "0.0.0.0"


@pytest.mark.unit
def test_overlay_replaces_explicit_zero_values() -> None:
    primary = decode_section({"gatehouse": {"cookie": {"secure": False}}}, "gatehouse")
    defaults = decode_section({"gatehouse": {"cookie": {"secure": True}}}, "gatehouse")

    assert overlay_defaults(primary, defaults).values["cookie.secure"] is True


@pytest.mark.unit
def test_replace_fields_rejects_unknown_attributes() -> None:
    with pytest.raises(KeyError):
        replace_fields(empty_fields(), not_a_field=1)


@pytest.mark.unit
def test_build_configuration_produces_frozen_model() -> None:
    decoded = decode_section(
        {"gatehouse": {"domains": ["example.com"], "jwt": {"maxAge": 240, "secret": "s"}}},
        "gatehouse",
    )

    config = build_configuration(decoded)

    assert config.domains == ("example.com",)
    assert config.jwt == JWTSettings(max_age=240, secret="s")
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.port = 1  # type: ignore[misc]


@pytest.mark.unit
def test_secrets_are_hidden_from_repr() -> None:
    config = build_configuration(
        replace_fields(empty_fields(), jwt__secret="hunter2", session__key="hunter3")
    )

    assert "hunter2" not in repr(config)
    assert "hunter3" not in repr(config)


@pytest.mark.unit
def test_config_as_dict_covers_every_field_and_redacts_secrets() -> None:
    config = with_claim_headers(
        build_configuration(
            replace_fields(
                empty_fields(),
                jwt__secret="hunter2",
                headers__claims=("groups",),
                headers__claim_header="X-Claim-",
            )
        )
    )

    dumped = config_as_dict(config)

    assert dumped["jwt"]["secret"] == REDACTED
    assert dumped["session"]["key"] == ""
    assert dumped["headers"]["claims_cleaned"] == {"groups": "X-Claim-Groups"}
    assert config_as_dict(config, redact=False)["jwt"]["secret"] == "hunter2"
    assert len(FIELDS) == 33
    assert dumped["logout_redirect_urls"] == []


@pytest.mark.unit
def test_with_claim_headers_returns_a_new_object() -> None:
    base = Configuration()
    derived = with_claim_headers(base)

    assert derived is not base
    assert dict(derived.headers.claims_cleaned) == {}


@pytest.mark.unit
def test_lookup_key_is_case_insensitive_and_last_spelling_wins() -> None:
    document = {"OAuth": {"Provider": "github", "provider": "google"}, "gatehouse": None}

    assert lookup_key(document, ("oauth", "PROVIDER")) == "google"
    assert lookup_key(document, ["gatehouse"]) is None
    assert lookup_key(document, ("gatehouse", "port")) is MISSING
    assert lookup_key(document, ("oauth", "provider", "name")) is MISSING
    assert lookup_key(document, ("porter",)) is MISSING
