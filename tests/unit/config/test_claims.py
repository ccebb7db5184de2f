"""
gatehouse - unit tests for claim header translation

File: tests/unit/config/test_claims.py

Purpose
- Validate the claim -> HTTP header mapping forwarded downstream.

What this test file should cover
- Scheme stripping, disallowed and non-printable replacement, prefix, canonical form.
- Idempotence of the body transform; single application of the prefix.
- Per-claim mapping entries even when headers collide.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gatehouse.config.claims import (
    DISALLOWED_HEADER_CHARS,
    canonical_header_key,
    claim_to_header,
    clean_claim_headers,
    sanitize_claim_body,
    strip_claim_scheme,
)

PREFIX = "X-Gatehouse-IdP-Claims-"

# Printable punctuation that is valid in a header token and kept as-is.
_TOKEN_PUNCTUATION = "!#$%&'*+^`|~"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("claim", "expected"),
    [
        ("groups", "X-Gatehouse-IdP-Claims-Groups"),
        ("given_name", "X-Gatehouse-IdP-Claims-Given-Name"),
        ("https://example.com/roles", "X-Gatehouse-IdP-Claims-Example-Com-Roles"),
        ("http://example.com/roles", "X-Gatehouse-IdP-Claims-Example-Com-Roles"),
        ("family name", "X-Gatehouse-IdP-Claims-Family-Name"),
        ("grüße", "X-Gatehouse-IdP-Claims-Gr--E"),
        ("a:b;c", "X-Gatehouse-IdP-Claims-A-B-C"),
    ],
)
def test_claim_to_header_known_values(claim: str, expected: str) -> None:
    assert claim_to_header(claim, PREFIX) == expected


@pytest.mark.unit
def test_claim_to_header_without_prefix() -> None:
    assert claim_to_header("email_verified") == "Email-Verified"
    assert claim_to_header("") == ""


@pytest.mark.unit
def test_only_one_leading_scheme_is_stripped() -> None:
    assert strip_claim_scheme("https://idp/roles") == "idp/roles"
    assert strip_claim_scheme("roles/https://x") == "roles/https://x"
    assert strip_claim_scheme("ftp://idp/roles") == "ftp://idp/roles"


@pytest.mark.unit
def test_every_disallowed_character_becomes_a_hyphen() -> None:
    assert sanitize_claim_body(DISALLOWED_HEADER_CHARS) == "-" * len(DISALLOWED_HEADER_CHARS)


@pytest.mark.unit
def test_control_and_non_ascii_characters_become_hyphens() -> None:
    assert sanitize_claim_body("a\tb\x7fcéd\U0001f600") == "a-b-c-d-"


@pytest.mark.unit
def test_canonical_header_key_matches_mime_form() -> None:
    assert canonical_header_key("x-claim-roles") == "X-Claim-Roles"
    assert canonical_header_key("X-CLAIM-ROLES") == "X-Claim-Roles"
    assert canonical_header_key("x--y") == "X--Y"
    assert canonical_header_key("1st-claim") == "1st-Claim"


@pytest.mark.unit
def test_canonical_header_key_leaves_invalid_names_untouched() -> None:
    assert canonical_header_key("x claim roles") == "x claim roles"


@pytest.mark.unit
def test_prefix_is_kept_verbatim() -> None:
    assert claim_to_header("groups", "X-Auth-IdP-Claims-") == "X-Auth-IdP-Claims-Groups"
    assert claim_to_header("given_name", "My Prefix ") == "My Prefix Given-Name"
    assert claim_to_header("roles", "x-lower-") == "x-lower-Roles"


@pytest.mark.unit
def test_prefix_is_applied_once_per_call() -> None:
    once = claim_to_header("roles", "X-Claim-")
    twice = claim_to_header(once, "X-Claim-")

    assert once == "X-Claim-Roles"
    assert twice == "X-Claim-X-Claim-Roles"


@pytest.mark.unit
def test_claims_that_share_a_suffix_keep_separate_entries() -> None:
    cleaned = clean_claim_headers(["https://example.com/roles", "roles"], "X-Claim-")

    assert dict(cleaned) == {
        "https://example.com/roles": "X-Claim-Example-Com-Roles",
        "roles": "X-Claim-Roles",
    }


@pytest.mark.unit
def test_colliding_headers_are_not_an_error() -> None:
    cleaned = clean_claim_headers(["given_name", "given.name", "given name"], "")

    assert len(cleaned) == 3
    assert set(cleaned.values()) == {"Given-Name"}


@pytest.mark.unit
def test_repeated_raw_claim_keeps_one_entry() -> None:
    cleaned = clean_claim_headers(["groups", "groups"], "X-Claim-")

    assert dict(cleaned) == {"groups": "X-Claim-Groups"}


@pytest.mark.unit
def test_cleaned_mapping_is_read_only() -> None:
    cleaned = clean_claim_headers(["groups"], "X-Claim-")

    with pytest.raises(TypeError):
        cleaned["groups"] = "X-Other"  # type: ignore[index]


@pytest.mark.unit
@settings(max_examples=200)
@given(st.text())
def test_sanitized_body_is_printable_and_free_of_separators(claim: str) -> None:
    body = sanitize_claim_body(strip_claim_scheme(claim))

    assert len(body) == len(strip_claim_scheme(claim))
    for char in body:
        assert 33 <= ord(char) <= 126
        assert char not in DISALLOWED_HEADER_CHARS


@pytest.mark.unit
@settings(max_examples=200)
@given(st.text().map(lambda s: "".join(c for c in s if c not in _TOKEN_PUNCTUATION)))
def test_header_after_prefix_holds_only_letters_digits_and_hyphens(claim: str) -> None:
    header = claim_to_header(claim, PREFIX)

    assert header.startswith(PREFIX)
    body = header[len(PREFIX) :]
    assert all(char.isascii() and (char.isalnum() or char == "-") for char in body)


@pytest.mark.unit
@settings(max_examples=200)
@given(st.text())
def test_body_transform_is_idempotent(claim: str) -> None:
    once = sanitize_claim_body(claim)

    assert sanitize_claim_body(once) == once
    assert canonical_header_key(canonical_header_key(once)) == canonical_header_key(once)


@pytest.mark.unit
@settings(max_examples=100)
@given(st.lists(st.text(), max_size=8))
def test_mapping_has_one_entry_per_distinct_claim(claims: list[str]) -> None:
    cleaned = clean_claim_headers(claims, PREFIX)

    assert set(cleaned) == set(claims)
    for claim in claims:
        assert cleaned[claim] == claim_to_header(claim, PREFIX)
