"""
Premium Rules Engine.

``compute_premium(package, participants)`` is a pure function: it reads the
package tier and each participant's relationship and add-on selections and
returns the policy, add-on and total premium. It never persists anything.
"""

from __future__ import annotations

from typing import Iterable

from intake.models import FuneralPackage, Participant, PremiumBreakdown
from intake.rules.rates import (
    BIOLOGICAL_EQUIVALENTS,
    CASHBACK_RATES,
    FAMILY_RELATIONSHIPS,
    MAX_FAMILY_CHILDREN,
    MEDICAL_PRICES,
    PACKAGE_RATES,
)


def _money(value: float) -> float:
    return round(value, 2)


def addon_price(participant: Participant) -> float:
    return MEDICAL_PRICES[participant.medical_package] + CASHBACK_RATES[participant.cashback_addon].price


def extra_dependent_units(participants: Iterable[Participant]) -> int:
    """Children beyond the family allowance plus everyone outside the family."""
    participants = list(participants)
    children = sum(1 for p in participants if p.relationship in BIOLOGICAL_EQUIVALENTS)
    outsiders = sum(1 for p in participants if p.relationship not in FAMILY_RELATIONSHIPS)
    return max(0, children - MAX_FAMILY_CHILDREN) + outsiders


def compute_premium(package: FuneralPackage, participants: Iterable[Participant]) -> PremiumBreakdown:
    participants = list(participants)
    rate = PACKAGE_RATES[package]
    policy_premium = rate.family_rate + extra_dependent_units(participants) * rate.extra_dependent_rate
    addon_premium = sum(addon_price(p) for p in participants)
    return PremiumBreakdown(
        policy_premium=_money(policy_premium),
        addon_premium=_money(addon_premium),
        total_premium=_money(policy_premium + addon_premium),
    )


def premium_mismatch(reported_total: float, computed: PremiumBreakdown, tolerance: float) -> bool:
    return abs(reported_total - computed.total_premium) > tolerance
