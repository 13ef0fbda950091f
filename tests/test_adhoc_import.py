"""
Tests for the single-sheet upload templates: policies, dependents, receipts.
"""
import pytest

from intake.mapping import DEFAULT_CONFIG, LinkFailurePolicy
from intake.models import (
    CashBackAddon,
    FuneralPackage,
    IssueKind,
    MedicalPackage,
    Payment,
    PaymentMethod,
    ReconcileAction,
    Relationship,
)
from intake.pipeline import run_import
from intake.store import PAYMENTS
from intake.workbook import Workbook

POLICY_HEADER = [
    "Policy Number", "Relationship", "First Name", "Surname", "National ID",
    "Date of Birth", "Package", "Medical Package", "Cash Back", "Is Student",
]


def _policies(*rows):
    return Workbook.from_rows({"Policies": [POLICY_HEADER, *rows]}, filename="policies.xlsx")


def _run(workbook, store, now, fmt, cfg=DEFAULT_CONFIG):
    return run_import(workbook, store, source_format=fmt, config=cfg, now=now)


@pytest.fixture
def mixed_policies():
    children = [
        ["OLD-1", "Son", f"Kid{i}", "Banda", "", f"2015-01-0{i}", "", "", "", ""]
        for i in range(1, 6)
    ]
    return _policies(
        ["OLD-1", "Self", "Anesu", "Banda", "12-345678-A-90", "1985-04-01", "Standard", "ZimHealth", "CB2", ""],
        ["OLD-1", "Wife", "Ruva", "Banda", "", "1987-09-09", "", "", "", ""],
        *children,
        ["", "Self", "Kuda", "Sibanda", "44-555555-F-44", "", "Premium", "", "", ""],
        ["", "Child", "Lost", "Kid", "", "", "", "", "", ""],
        ["PN-9", "Self", "No", "Id", "", "", "", "", "", ""],
        ["44555555F44", "Spouse", "Nomsa", "", "", "", "", "", "", ""],
    )


class TestAdHocPolicies:

    def test_groups_become_policies(self, mixed_policies, empty_store, now):
        result = _run(mixed_policies, empty_store, now, "adhoc_policies")
        assert [h.policy_number for h in result.policyholders] == ["12345678A90", "44555555F44"]
        assert all(d.action == ReconcileAction.INSERT for d in result.decisions)

    def test_policy_number_derived_from_national_id(self, mixed_policies, empty_store, now):
        result = _run(mixed_policies, empty_store, now, "adhoc_policies")
        mismatch = [w for w in result.warnings if "OLD1" in w.message]
        assert len(mismatch) == 1
        assert mismatch[0].row == 2
        assert len(result.warnings) == 1

    def test_participants_suffixes_and_premium(self, mixed_policies, empty_store, now):
        result = _run(mixed_policies, empty_store, now, "adhoc_policies")
        holder = result.policyholders[0]
        assert holder.package == FuneralPackage.STANDARD
        assert [p.suffix for p in holder.participants] == ["000", "101", "201", "202", "203", "204", "205"]
        assert holder.holder.medical_package == MedicalPackage.ZIMHEALTH
        assert holder.holder.cashback_addon == CashBackAddon.CB2
        assert holder.policy_premium == 12.00
        assert holder.addon_premium == 3.00
        assert holder.total_premium == 15.00
        assert holder.inception_date == "2024-06-01"
        assert holder.cover_date == "2024-09-01"

    def test_row_errors_do_not_stop_the_batch(self, mixed_policies, empty_store, now):
        result = _run(mixed_policies, empty_store, now, "adhoc_policies")
        errors = {(e.row, e.message.split(";")[0]) for e in result.blocking_errors}
        assert errors == {
            (10, "Missing policy number"),
            (11, "Missing national id on the policyholder row of policy PN9"),
            (12, "Missing surname"),
        }
        second = result.policyholders[1]
        assert [p.first_name for p in second.participants] == ["Kuda"]
        assert second.total_premium == 15.00

    def test_sheet_without_relationship_column(self, empty_store, now):
        workbook = Workbook.from_rows({"Sheet1": [
            ["Full Name", "ID Number", "Package", "Address"],
            ["Chipo Ncube", "08-111111-C-08", "Lite", "12 Main Rd, Harare"],
            ["Farai Dube", "08-222222-D-08", "Standard", ""],
        ]})
        result = _run(workbook, empty_store, now, "adhoc_policies")
        assert [h.policy_number for h in result.policyholders] == ["08111111C08", "08222222D08"]
        assert result.policyholders[0].town == "Harare"
        assert result.errors == []

    def test_two_groups_with_same_derived_number(self, empty_store, now):
        workbook = _policies(
            ["A-1", "Self", "Anesu", "Banda", "12-345678-A-90", "", "", "", "", ""],
            ["B-2", "Self", "Anesu", "Banda", "12345678A90", "", "", "", "", ""],
        )
        result = _run(workbook, empty_store, now, "adhoc_policies")
        assert len(result.policyholders) == 1
        assert [e.row for e in result.blocking_errors] == [3]

    def test_second_self_in_group(self, empty_store, now):
        workbook = _policies(
            ["X", "Self", "Anesu", "Banda", "12-345678-A-90", "", "", "", "", ""],
            ["X", "Self", "Other", "Banda", "99-999999-Z-99", "", "", "", "", ""],
        )
        result = _run(workbook, empty_store, now, "adhoc_policies")
        assert len(result.policyholders) == 1
        assert len(result.policyholders[0].participants) == 1
        assert result.blocking_errors[0].row == 3

    def test_validator_findings_are_warnings(self, empty_store, now):
        workbook = _policies(
            ["", "Self", "Anesu", "Banda", "12-345678-A-90", "1960-01-01", "Lite", "", "CB1", ""],
            ["12345678A90", "Mother", "Gogo", "Banda", "", "1940-01-01", "", "", "CB4", ""],
        )
        result = _run(workbook, empty_store, now, "adhoc_policies")
        assert result.blocking_errors == []
        messages = [w.message for w in result.warnings]
        assert len(messages) == 2
        assert all(m.startswith("Gogo Banda:") for m in messages)
        assert len(result.policyholders[0].participants) == 2

    def test_reimport_updates_existing_policy(self, store_with_holder, stored_holder, now):
        workbook = _policies(
            ["63123456A12", "Self", "Tendai", "Moyo", "63-123456-A-12", "", "Standard", "", "", ""],
            ["63123456A12", "Spouse", "Rudo", "Moyo", "63-654321-B-12", "", "", "", "", ""],
            ["63123456A12", "Child", "Tatenda", "Moyo", "", "", "", "", "", ""],
        )
        result = _run(workbook, store_with_holder, now, "adhoc_policies")
        assert [d.action for d in result.decisions] == [ReconcileAction.UPDATE]
        assert result.inserted() == []
        holder = result.policyholders[0]
        assert holder.id == stored_holder.id
        assert holder.link_id == stored_holder.link_id
        assert holder.created_at == stored_holder.created_at
        assert [p.id for p in holder.participants] == [20, 21, 22]
        assert [p.suffix for p in holder.participants] == ["000", "101", "201"]
        assert holder.updated_at == "2024-06-01T09:30:00"


class TestAdHocDependents:

    HEADER = ["Policy Number", "Relationship", "First Name", "Surname", "Date of Birth"]

    def _workbook(self, *rows):
        return Workbook.from_rows({"Dependents": [self.HEADER, *rows]})

    def test_unknown_policy_number_is_one_link_error(self, store_with_holder, now):
        workbook = self._workbook(["99-999999-Z-99", "Son", "Ghost", "Moyo", "2015-01-01"])
        result = _run(workbook, store_with_holder, now, "adhoc_dependents")
        assert len(result.errors) == 1
        assert result.errors[0].kind == IssueKind.LINK_RESOLUTION
        assert result.errors[0].row == 2
        assert all(p.first_name != "Ghost" for p in result.participants)
        assert result.policyholders == []

    def test_silent_policy_drops_quietly(self, store_with_holder, now):
        cfg = DEFAULT_CONFIG.with_overrides(adhoc_link_policy=LinkFailurePolicy.SILENT)
        workbook = self._workbook(["99-999999-Z-99", "Son", "Ghost", "Moyo", "2015-01-01"])
        result = _run(workbook, store_with_holder, now, "adhoc_dependents", cfg)
        assert result.errors == []
        assert result.participants == []

    def test_dependents_extend_stored_policy(self, store_with_holder, stored_holder, now):
        workbook = self._workbook(
            ["63-123456-A-12", "Daughter", "Chido", "Moyo", "2018-03-03"],
            ["63123456A12", "Father", "Sekuru", "Moyo", "1950-05-05"],
        )
        result = _run(workbook, store_with_holder, now, "adhoc_dependents")
        assert [d.action for d in result.decisions] == [ReconcileAction.UPDATE]
        holder = result.policyholders[0]
        assert holder.id == stored_holder.id
        added = {p.first_name: p for p in holder.participants[3:]}
        assert added["Chido"].relationship == Relationship.CHILD
        assert added["Chido"].suffix == "202"
        assert added["Sekuru"].relationship == Relationship.PARENT
        assert added["Sekuru"].suffix == "301"
        assert [p.id for p in holder.participants[:3]] == [20, 21, 22]
        # a 74-year-old dependent on a Standard policy
        assert any("Sekuru Moyo" in w.message for w in result.warnings)
        assert holder.policy_premium == 12.00

    def test_self_rows_are_rejected(self, store_with_holder, now):
        workbook = self._workbook(["63123456A12", "Self", "Tendai", "Moyo", ""])
        result = _run(workbook, store_with_holder, now, "adhoc_dependents")
        assert result.policyholders == []
        assert result.errors[0].kind == IssueKind.ROW_VALIDATION

    def test_resolves_by_holder_national_id(self, store_with_holder, now):
        workbook = Workbook.from_rows({"Dependents": [
            ["Policyholder National ID", "Relationship", "First Name", "Surname"],
            ["63 123456 A 12", "Brother", "Tafadzwa", "Moyo"],
        ]})
        result = _run(workbook, store_with_holder, now, "adhoc_dependents")
        assert result.errors == []
        sibling = result.policyholders[0].participants[-1]
        assert sibling.relationship == Relationship.SIBLING
        assert sibling.suffix == "202"


class TestAdHocReceipts:

    HEADER = ["Policy Number", "Payment Date", "Amount", "Payment Method", "Receipt URL"]

    def test_receipts(self, store_with_holder, now):
        workbook = Workbook.from_rows({"Receipts": [
            self.HEADER,
            ["63123456A12", "15-Jan-2024", "10", "EcoCash", "https://receipts.example/1"],
            ["63123456A12", "2024-02-10", "0", "Cash", ""],
            ["63123456A12", "not a date", "5", "", ""],
            ["UNKNOWN", "2024-02-10", "5", "", ""],
        ]})
        result = _run(workbook, store_with_holder, now, "adhoc_receipts")
        assert len(result.payments) == 1
        payment = result.payments[0]
        assert payment.policyholder_id == 7
        assert payment.payment_date == "2024-01-15"
        assert payment.period == "2024-01"
        assert payment.amount == 10.0
        assert payment.method == PaymentMethod.ECOCASH
        assert payment.receipt_reference == "https://receipts.example/1"
        assert payment.is_legacy is False
        kinds = [(e.row, e.kind) for e in result.errors]
        assert kinds == [
            (3, IssueKind.ROW_VALIDATION),
            (4, IssueKind.ROW_VALIDATION),
            (5, IssueKind.LINK_RESOLUTION),
        ]

    def test_keyed_rows(self, store_with_holder, now):
        workbook = Workbook.from_rows({"Receipts": [
            {"Policy No": "63123456A12", "Date": "2024-03-01", "Amount Paid": 8, "Period": "2024-02"},
        ]})
        result = _run(workbook, store_with_holder, now, "adhoc_receipts")
        assert result.errors == []
        assert result.payments[0].period == "2024-02"
        assert result.payments[0].method == PaymentMethod.CASH

    def test_receipts_already_on_file_are_skipped(self, store_with_holder, now):
        store_with_holder.upsert(PAYMENTS, Payment(
            id=1, policyholder_id=7, policy_number="63123456A12",
            amount=10.0, payment_date="2024-01-15", period="2024-01",
        ))
        workbook = Workbook.from_rows({"Receipts": [
            self.HEADER,
            ["63-123456-A-12", "15-Jan-2024", "10.00", "EcoCash", ""],
            ["63123456A12", "15-Jan-2024", "12", "EcoCash", ""],
            ["63123456A12", "15-Jan-2024", "12", "EcoCash", ""],
        ]})
        result = _run(workbook, store_with_holder, now, "adhoc_receipts")
        assert [p.amount for p in result.payments] == [12.0]
        assert result.payments[0].id == 2
        assert result.blocking_errors == []
        assert [w.row for w in result.warnings] == [2, 4]
