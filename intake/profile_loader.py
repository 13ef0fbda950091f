"""
Import profile loader.

A YAML profile extends the alias tables, overrides classifier defaults and
selects the named policies for a deployment. Malformed entries are ignored;
only a missing file is an error.

Example::

    aliases:
      policies:
        policy_number: ["membership no"]
    defaults:
      status: Inactive
    policies:
      grandparent_suffix: separate
      legacy_link_policy: record
    phone:
      country_code: "263"
"""

from pathlib import Path
from typing import Any, Dict, List

import yaml

from intake.logger import get_logger
from intake.mapping.config import (
    DEFAULT_CONFIG,
    GrandparentSuffix,
    ImportConfig,
    LinkFailurePolicy,
    SheetKind,
    extend_aliases,
)
from intake.models import (
    CashBackAddon,
    FuneralPackage,
    MedicalPackage,
    PaymentMethod,
    PolicyStatus,
    Relationship,
)
from intake.normalizers.classifiers import KeywordClassifier

logger = get_logger(__name__)

# intake/profile_loader.py → parents[1] is the repository root
REPO_ROOT = Path(__file__).resolve().parents[1]

_ALIAS_FIELDS = {
    SheetKind.POLICIES.value: "policy_aliases",
    SheetKind.DEPENDENTS.value: "dependent_aliases",
    SheetKind.RECEIPTS.value: "receipt_aliases",
}

# default key → (config field, enum, keyword table field)
_DEFAULT_FIELDS = {
    "relationship": ("default_relationship", Relationship, "relationship_keywords"),
    "status": ("default_status", PolicyStatus, "status_keywords"),
    "package": ("default_package", FuneralPackage, "package_keywords"),
    "medical": ("default_medical", MedicalPackage, "medical_keywords"),
    "cashback": ("default_cashback", CashBackAddon, "cashback_keywords"),
    "payment_method": ("default_payment_method", PaymentMethod, "payment_method_keywords"),
}

_INT_FIELDS = (
    "senior_age_threshold", "child_age_limit", "student_age_limit",
    "adult_min_age", "cover_offset_months",
)


def _ensure_dict(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {}


def _ensure_str_list(value: Any) -> List[str]:
    """Keep non-blank strings only."""
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _resolve_enum(enum_cls, table, raw: Any):
    """Accept an exact enum value or anything the keyword table recognises."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    for member in enum_cls:
        if member.value.lower() == raw.strip().lower():
            return member
    return KeywordClassifier(table, None).match(raw)


def load_profile(profile_path: str) -> Dict[str, Any]:
    """
    Read a YAML profile into a plain dict.

    Raises:
        FileNotFoundError: the profile file does not exist
    """
    if not profile_path:
        return {}
    path = Path(profile_path).expanduser()
    if not path.is_absolute():
        path = (REPO_ROOT / path).resolve()
    if not path.exists():
        raise FileNotFoundError(f"profile not found: {path}")
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return _ensure_dict(raw)


def apply_profile(data: Dict[str, Any], base: ImportConfig = DEFAULT_CONFIG) -> ImportConfig:
    """Overlay a loaded profile on ``base`` and return the new config."""
    overrides: Dict[str, Any] = {}

    aliases = _ensure_dict(data.get("aliases"))
    for sheet, config_field in _ALIAS_FIELDS.items():
        extra_raw = _ensure_dict(aliases.get(sheet))
        extra = {k: _ensure_str_list(v) for k, v in extra_raw.items() if isinstance(k, str)}
        if extra:
            overrides[config_field] = extend_aliases(getattr(base, config_field), extra)

    defaults = _ensure_dict(data.get("defaults"))
    for key, (config_field, enum_cls, table_field) in _DEFAULT_FIELDS.items():
        member = _resolve_enum(enum_cls, getattr(base, table_field), defaults.get(key))
        if member is not None:
            overrides[config_field] = member
        elif key in defaults:
            logger.debug("Ignoring unknown default %s=%r", key, defaults.get(key))

    policies = _ensure_dict(data.get("policies"))
    grandparent = policies.get("grandparent_suffix")
    if isinstance(grandparent, str) and grandparent.strip().lower() in {g.value for g in GrandparentSuffix}:
        overrides["grandparent_suffix"] = GrandparentSuffix(grandparent.strip().lower())
    for key in ("legacy_link_policy", "adhoc_link_policy"):
        value = policies.get(key)
        if isinstance(value, str) and value.strip().lower() in {p.value for p in LinkFailurePolicy}:
            overrides[key] = LinkFailurePolicy(value.strip().lower())
    if isinstance(policies.get("recompute_legacy_premiums"), bool):
        overrides["recompute_legacy_premiums"] = policies["recompute_legacy_premiums"]

    phone = _ensure_dict(data.get("phone"))
    for key in ("country_code", "trunk_prefix"):
        value = phone.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str) and value.strip().isdigit():
            overrides[key] = value.strip()

    rules = _ensure_dict(data.get("rules"))
    for key in _INT_FIELDS:
        value = rules.get(key)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            overrides[key] = value
    tolerance = rules.get("premium_tolerance")
    if isinstance(tolerance, (int, float)) and not isinstance(tolerance, bool) and tolerance >= 0:
        overrides["premium_tolerance"] = float(tolerance)

    if overrides:
        logger.info("Profile overrides: %s", sorted(overrides))
    return base.with_overrides(**overrides)


def load_import_config(profile_path: str, base: ImportConfig = DEFAULT_CONFIG) -> ImportConfig:
    return apply_profile(load_profile(profile_path), base)
