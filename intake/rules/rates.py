"""Fixed rate tables for packages and add-ons (USD per month)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from intake.models import CashBackAddon, FuneralPackage, MedicalPackage, Relationship


@dataclass(frozen=True)
class PackageRate:
    family_rate: float
    extra_dependent_rate: float


@dataclass(frozen=True)
class CashBackRate:
    price: float
    payout: float


PACKAGE_RATES: Dict[FuneralPackage, PackageRate] = {
    FuneralPackage.LITE: PackageRate(family_rate=5.00, extra_dependent_rate=2.50),
    FuneralPackage.STANDARD: PackageRate(family_rate=8.00, extra_dependent_rate=4.00),
    FuneralPackage.PREMIUM: PackageRate(family_rate=15.00, extra_dependent_rate=7.50),
}

MEDICAL_PRICES: Dict[MedicalPackage, float] = {
    MedicalPackage.NONE: 0.0,
    MedicalPackage.ZIMHEALTH: 1.00,
    MedicalPackage.FAMILY_LIFE: 7.00,
    MedicalPackage.ALKAANE: 18.00,
}

CASHBACK_RATES: Dict[CashBackAddon, CashBackRate] = {
    CashBackAddon.NONE: CashBackRate(price=0.0, payout=0.0),
    CashBackAddon.CB1: CashBackRate(price=1.00, payout=250.0),
    CashBackAddon.CB2: CashBackRate(price=2.00, payout=500.0),
    CashBackAddon.CB3: CashBackRate(price=3.00, payout=750.0),
    CashBackAddon.CB4: CashBackRate(price=4.00, payout=1000.0),
}

# Children covered by the family rate, up to MAX_FAMILY_CHILDREN of them
BIOLOGICAL_EQUIVALENTS = frozenset({
    Relationship.CHILD, Relationship.STEPCHILD, Relationship.GRANDCHILD,
})
FAMILY_RELATIONSHIPS = frozenset({Relationship.SELF, Relationship.SPOUSE}) | BIOLOGICAL_EQUIVALENTS
MAX_FAMILY_CHILDREN = 4
