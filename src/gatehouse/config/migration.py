"""Adoption of configs still written under the deprecated top-level key."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from gatehouse.config.schema import ConfigWarning, DecodedFields
from gatehouse.constants import BRANDING

MigrationKind = Literal["primary_kept", "legacy_adopted"]


@dataclass(frozen=True, slots=True)
class MigrationOutcome:
    """Which section the resolved config came from."""

    kind: MigrationKind
    fields: DecodedFields
    warning: ConfigWarning | None = None

    @property
    def legacy_adopted(self) -> bool:
        return self.kind == "legacy_adopted"


def migration_guidance(old_key: str = BRANDING.old_lc_name, new_key: str = BRANDING.lc_name) -> str:
    """Return the operator-facing message for a legacy-keyed config."""

    return (
        f"IMPORTANT! please update your config file to change '{old_key}:' "
        f"to '{new_key}:' as per {BRANDING.url}"
    )


def migrate(primary: DecodedFields, legacy: DecodedFields | None) -> MigrationOutcome:
    """Choose between the primary and the legacy-sourced fields.

    The legacy candidate replaces the primary one wholesale, and only when the
    primary section has no domains while the legacy section has some. Fields
    are never mixed between the two.
    """

    if primary.domains or legacy is None or not legacy.domains:
        return MigrationOutcome(kind="primary_kept", fields=primary)

    return MigrationOutcome(
        kind="legacy_adopted",
        fields=legacy,
        warning=ConfigWarning("migration", BRANDING.old_lc_name, migration_guidance()),
    )


__all__ = ["MigrationKind", "MigrationOutcome", "migrate", "migration_guidance"]
