"""
gatehouse - claim name to HTTP header translation.

File: src/gatehouse/config/claims.py

Purpose
- Turn identity-provider claim names into header names that are safe to
  forward downstream (and that nginx will accept).

Functional requirements
- Never fail: every input character maps to something.
- Deterministic; the body transform is idempotent, the prefix is not.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Final

_SCHEMES: Final[tuple[str, ...]] = ("http://", "https://")

# RFC 7230 separators, plus ``_`` and ``.`` which nginx drops by default.
DISALLOWED_HEADER_CHARS: Final[str] = '"(),/\\:;<=>?@[]{}_.'

_PRINTABLE_MIN: Final[int] = 33
_PRINTABLE_MAX: Final[int] = 126

_TOKEN_PUNCTUATION: Final[frozenset[str]] = frozenset("!#$%&'*+-.^_`|~")


def strip_claim_scheme(claim: str) -> str:
    """Drop a leading ``http://`` or ``https://`` used to namespace claims."""

    for scheme in _SCHEMES:
        if claim.startswith(scheme):
            return claim[len(scheme) :]
    return claim


def sanitize_claim_body(value: str) -> str:
    """Replace disallowed and non-printable characters with ``-``."""

    chars: list[str] = []
    for char in value:
        if char in DISALLOWED_HEADER_CHARS:
            chars.append("-")
        elif ord(char) < _PRINTABLE_MIN or ord(char) > _PRINTABLE_MAX:
            chars.append("-")
        else:
            chars.append(char)
    return "".join(chars)


def canonical_header_key(value: str) -> str:
    """Canonical MIME header form: ``x-claim-roles`` -> ``X-Claim-Roles``.

    Strings holding a byte that is not valid in a header field name are
    returned unchanged.
    """

    if not all(_is_token_char(char) for char in value):
        return value

    out: list[str] = []
    upper = True
    for char in value:
        if upper and "a" <= char <= "z":
            out.append(char.upper())
        elif not upper and "A" <= char <= "Z":
            out.append(char.lower())
        else:
            out.append(char)
        upper = char == "-"
    return "".join(out)


def claim_to_header(claim: str, prefix: str = "") -> str:
    """Map one raw claim to the header it is forwarded in.

    Only the claim part is canonicalized; ``prefix`` is used as configured.
    """

    body = sanitize_claim_body(strip_claim_scheme(claim))
    return prefix + canonical_header_key(body)


def clean_claim_headers(claims: Iterable[str], prefix: str = "") -> Mapping[str, str]:
    """Build the read-only raw claim -> header mapping.

    Each claim is translated on its own; two claims may land on the same
    header name and a repeated raw claim keeps its last translation.
    """

    cleaned: dict[str, str] = {}
    for claim in claims:
        cleaned[claim] = claim_to_header(claim, prefix)
    return MappingProxyType(cleaned)


def _is_token_char(char: str) -> bool:
    if char.isascii() and char.isalnum():
        return True
    return char in _TOKEN_PUNCTUATION


__all__ = [
    "DISALLOWED_HEADER_CHARS",
    "canonical_header_key",
    "claim_to_header",
    "clean_claim_headers",
    "sanitize_claim_body",
    "strip_claim_scheme",
]
