"""
Dependent validation against the holder's selections and the rate tables.

Findings are plain messages; the importers record them as warnings.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from intake.mapping.config import DEFAULT_CONFIG, ImportConfig
from intake.models import CashBackAddon, FuneralPackage, MedicalPackage, Participant, Relationship
from intake.normalizers.date_parser import DateParser
from intake.rules.rates import BIOLOGICAL_EQUIVALENTS, CASHBACK_RATES, MEDICAL_PRICES


def check_cashback(dependent: CashBackAddon, holder: CashBackAddon) -> Optional[str]:
    if CASHBACK_RATES[dependent].payout > CASHBACK_RATES[holder].payout:
        return (
            f"Dependent's cash back ({dependent.value}) cannot exceed "
            f"policy holder's cash back ({holder.value})."
        )
    return None


def check_medical(dependent: MedicalPackage, holder: MedicalPackage) -> Optional[str]:
    if dependent == MedicalPackage.NONE or holder == MedicalPackage.NONE:
        return None
    if MEDICAL_PRICES[dependent] > MEDICAL_PRICES[holder]:
        return (
            f"Dependent's medical aid ({dependent.value}) cannot exceed "
            f"policy holder's medical aid ({holder.value})."
        )
    return None


def check_age(
    participant: Participant,
    package: FuneralPackage,
    on: date,
    cfg: ImportConfig = DEFAULT_CONFIG,
) -> List[str]:
    age = DateParser.age_on(participant.date_of_birth, on)
    if age is None or participant.relationship == Relationship.SELF:
        return []
    findings: List[str] = []
    if age > cfg.senior_age_threshold and package != FuneralPackage.PREMIUM:
        findings.append(
            f"Dependents over {cfg.senior_age_threshold} years old are only allowed "
            f"on Premium package policies."
        )
    if participant.relationship in BIOLOGICAL_EQUIVALENTS:
        if age > cfg.student_age_limit:
            findings.append(f"Children cannot be older than {cfg.student_age_limit} years")
        elif age > cfg.child_age_limit and not participant.is_student:
            findings.append(
                f"Children aged {cfg.child_age_limit + 1}-{cfg.student_age_limit} "
                f"must be students with valid school ID"
            )
    elif participant.relationship != Relationship.SPOUSE and age < cfg.adult_min_age:
        findings.append(f"Other dependents must be at least {cfg.adult_min_age} years old")
    return findings


def validate_dependent(
    dependent: Participant,
    holder: Participant,
    package: FuneralPackage,
    on: date,
    cfg: ImportConfig = DEFAULT_CONFIG,
) -> List[str]:
    findings = check_age(dependent, package, on, cfg)
    for message in (
        check_cashback(dependent.cashback_addon, holder.cashback_addon),
        check_medical(dependent.medical_package, holder.medical_package),
    ):
        if message:
            findings.append(message)
    return findings
