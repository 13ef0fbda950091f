"""
Unit tests for the premium rules engine.
"""
import pytest

from intake.models import (
    CashBackAddon,
    FuneralPackage,
    MedicalPackage,
    Participant,
    PremiumBreakdown,
    Relationship,
)
from intake.rules import compute_premium, premium_mismatch
from intake.rules.premium import addon_price, extra_dependent_units


def _people(*relationships, **addons):
    return [Participant(relationship=r, **addons) for r in relationships]


class TestComputePremium:

    def test_standard_with_five_children(self):
        participants = _people(Relationship.SELF, Relationship.SPOUSE, *[Relationship.CHILD] * 5)
        result = compute_premium(FuneralPackage.STANDARD, participants)
        assert result.policy_premium == 12.00
        assert result.addon_premium == 0.0
        assert result.total_premium == 12.00

    @pytest.mark.parametrize("package, expected", [
        (FuneralPackage.LITE, 5.00),
        (FuneralPackage.STANDARD, 8.00),
        (FuneralPackage.PREMIUM, 15.00),
    ])
    def test_family_rate_only(self, package, expected):
        participants = _people(Relationship.SELF, Relationship.SPOUSE, *[Relationship.CHILD] * 4)
        assert compute_premium(package, participants).policy_premium == expected

    def test_step_and_grandchildren_count_as_children(self):
        participants = _people(
            Relationship.SELF, Relationship.CHILD, Relationship.STEPCHILD,
            Relationship.GRANDCHILD, Relationship.CHILD, Relationship.GRANDCHILD,
        )
        assert extra_dependent_units(participants) == 1
        assert compute_premium(FuneralPackage.LITE, participants).policy_premium == 7.50

    def test_outsiders_always_surcharged(self):
        participants = _people(
            Relationship.SELF, Relationship.PARENT, Relationship.OTHER_DEPENDENT,
            Relationship.SIBLING, Relationship.GRANDPARENT,
        )
        assert extra_dependent_units(participants) == 4
        assert compute_premium(FuneralPackage.PREMIUM, participants).policy_premium == 45.00

    def test_addons_summed_per_participant(self):
        holder = Participant(
            relationship=Relationship.SELF,
            medical_package=MedicalPackage.ALKAANE,
            cashback_addon=CashBackAddon.CB4,
        )
        spouse = Participant(relationship=Relationship.SPOUSE, medical_package=MedicalPackage.ZIMHEALTH)
        assert addon_price(holder) == 22.0
        result = compute_premium(FuneralPackage.LITE, [holder, spouse])
        assert result.addon_premium == 23.0
        assert result.total_premium == 28.0

    def test_no_participants(self):
        assert compute_premium(FuneralPackage.LITE, []).total_premium == 5.00

    def test_is_pure(self):
        participants = _people(Relationship.SELF, *[Relationship.CHILD] * 6, medical_package=MedicalPackage.FAMILY_LIFE)
        before = [p.model_dump() for p in participants]
        first = compute_premium(FuneralPackage.STANDARD, participants)
        second = compute_premium(FuneralPackage.STANDARD, participants)
        assert first == second
        assert [p.model_dump() for p in participants] == before
        assert first.policy_premium == 16.00
        assert first.addon_premium == 49.00


class TestPremiumMismatch:

    def test_within_tolerance(self):
        computed = PremiumBreakdown(policy_premium=12.0, addon_premium=0.0, total_premium=12.0)
        assert premium_mismatch(12.0, computed, 0.01) is False
        assert premium_mismatch(12.005, computed, 0.01) is False

    def test_outside_tolerance(self):
        computed = PremiumBreakdown(policy_premium=12.0, addon_premium=0.0, total_premium=12.0)
        assert premium_mismatch(12.5, computed, 0.01) is True
