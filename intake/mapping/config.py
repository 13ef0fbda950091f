"""
ImportConfig: the injectable configuration table for one import run.

Alias tables, classifier keyword tables, defaults for unmatched text and the
named policies for the two behaviours that differ between import paths all
live here, so defaulting policy is visible in one place and can be swapped in
tests or through a YAML profile.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Tuple

from intake.mapping import tables
from intake.models import (
    CashBackAddon,
    FuneralPackage,
    MedicalPackage,
    PaymentMethod,
    PolicyStatus,
    Relationship,
)


# ---------------------------------------------------------------------------
# Named policies
# ---------------------------------------------------------------------------

class GrandparentSuffix(str, Enum):
    """Which suffix class Grandparent participants are numbered in."""

    DEPENDENT = "dependent"  # 301+, shared with Parent / Other Dependent
    SEPARATE = "separate"  # 401+


class LinkFailurePolicy(str, Enum):
    """Whether an unresolved dependent/receipt reference is recorded as an issue."""

    SILENT = "silent"
    RECORD = "record"


class SheetKind(str, Enum):
    POLICIES = "policies"
    DEPENDENTS = "dependents"
    RECEIPTS = "receipts"


# ---------------------------------------------------------------------------
# ImportConfig
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImportConfig:
    """Immutable configuration table consumed by every stage of an import."""

    # Column mapping
    policy_aliases: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: dict(tables.POLICY_ALIASES))
    dependent_aliases: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: dict(tables.DEPENDENT_ALIASES))
    receipt_aliases: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: dict(tables.RECEIPT_ALIASES))
    # Containment matching only applies when the shorter string has this many characters
    min_containment_length: int = 3

    # Legacy fixed layout
    legacy_sheet_count: int = 3
    legacy_policy_positions: Dict[str, int] = field(default_factory=lambda: dict(tables.LEGACY_POLICY_POSITIONS))
    legacy_dependent_positions: Dict[str, int] = field(default_factory=lambda: dict(tables.LEGACY_DEPENDENT_POSITIONS))
    legacy_receipt_positions: Dict[str, int] = field(default_factory=lambda: dict(tables.LEGACY_RECEIPT_POSITIONS))

    # Classifier tables and their defaults
    relationship_keywords: Tuple = tables.RELATIONSHIP_KEYWORDS
    status_keywords: Tuple = tables.STATUS_KEYWORDS
    package_keywords: Tuple = tables.PACKAGE_KEYWORDS
    medical_keywords: Tuple = tables.MEDICAL_KEYWORDS
    cashback_keywords: Tuple = tables.CASHBACK_KEYWORDS
    payment_method_keywords: Tuple = tables.PAYMENT_METHOD_KEYWORDS

    default_relationship: Relationship = Relationship.OTHER_DEPENDENT
    default_status: PolicyStatus = PolicyStatus.ACTIVE
    default_package: FuneralPackage = FuneralPackage.LITE
    default_medical: MedicalPackage = MedicalPackage.NONE
    default_cashback: CashBackAddon = CashBackAddon.NONE
    default_payment_method: PaymentMethod = PaymentMethod.CASH

    # Phone numbers
    country_code: str = "263"
    trunk_prefix: str = "0"

    # Named policies
    grandparent_suffix: GrandparentSuffix = GrandparentSuffix.DEPENDENT
    legacy_link_policy: LinkFailurePolicy = LinkFailurePolicy.SILENT
    adhoc_link_policy: LinkFailurePolicy = LinkFailurePolicy.RECORD

    # Premiums
    recompute_legacy_premiums: bool = True
    premium_tolerance: float = 0.01

    # Dependent validation
    senior_age_threshold: int = 65
    child_age_limit: int = 18
    student_age_limit: int = 23
    adult_min_age: int = 18

    # Dates
    cover_offset_months: int = 3

    def aliases_for(self, kind: SheetKind) -> Dict[str, Tuple[str, ...]]:
        if kind == SheetKind.DEPENDENTS:
            return self.dependent_aliases
        if kind == SheetKind.RECEIPTS:
            return self.receipt_aliases
        return self.policy_aliases

    def with_overrides(self, **overrides: Any) -> "ImportConfig":
        """Return a copy with the given fields replaced; unknown names are ignored."""
        known = {k: v for k, v in overrides.items() if k in self.__dataclass_fields__}
        return replace(self, **known)


# Singleton default config
DEFAULT_CONFIG = ImportConfig()


def extend_aliases(
    base: Dict[str, Tuple[str, ...]],
    extra: Dict[str, Any],
) -> Dict[str, Tuple[str, ...]]:
    """
    Merge profile-supplied aliases into an alias table.

    Extra aliases for an existing field are tried before the built-in ones;
    new fields are appended at the end of the table.
    """
    merged: Dict[str, Tuple[str, ...]] = dict(base)
    for field_name, aliases in extra.items():
        if not isinstance(field_name, str) or not isinstance(aliases, (list, tuple)):
            continue
        cleaned = tuple(a for a in aliases if isinstance(a, str) and a.strip())
        if not cleaned:
            continue
        merged[field_name] = cleaned + tuple(a for a in merged.get(field_name, ()) if a not in cleaned)
    return merged
