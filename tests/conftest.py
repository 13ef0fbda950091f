"""
Pytest configuration and shared fixtures.
"""
import os
import sys
from datetime import datetime

import pytest

# Add project root to path for imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from intake.mapping import DEFAULT_CONFIG
from intake.models import Participant, Policyholder, Relationship
from intake.store import InMemoryRecordStore
from intake.workbook import Workbook


LEGACY_POLICY_HEADER = [
    "Policy Number", "Full Name", "Status", "Gender", "ID Number", "Date of Birth",
    "Phone", "Email", "Address", "Package", "Policy Premium", "Addon Premium",
    "Total Premium", "UUID",
]
LEGACY_DEPENDENT_HEADER = [
    "Relationship", "First Name", "Surname", "Gender", "ID Number", "Date of Birth",
    "Subscriber UUID",
]
LEGACY_RECEIPT_HEADER = [
    "System Receipt Number", "Physical Receipt Number", "Subscriber", "Date",
    "Amount", "Account", "Subscriber UUID", "Subscriber National ID",
]


@pytest.fixture
def now():
    """Fixed run timestamp."""
    return datetime(2024, 6, 1, 9, 30, 0)


@pytest.fixture
def cfg():
    return DEFAULT_CONFIG


@pytest.fixture
def empty_store():
    return InMemoryRecordStore()


@pytest.fixture
def stored_holder():
    """A stored Standard policy with a spouse and one child."""
    return Policyholder(
        id=7,
        link_id="holder-7",
        policy_number="63123456A12",
        first_name="Tendai",
        surname="Moyo",
        national_id="63-123456-A-12",
        package="Chitomborwizi Standard",
        created_at="2023-01-10T08:00:00",
        updated_at="2023-01-10T08:00:00",
        participants=[
            Participant(id=20, link_id="p-20", first_name="Tendai", surname="Moyo",
                        relationship=Relationship.SELF, national_id="63-123456-A-12", suffix="000"),
            Participant(id=21, link_id="p-21", first_name="Rudo", surname="Moyo",
                        relationship=Relationship.SPOUSE, national_id="63-654321-B-12", suffix="101"),
            Participant(id=22, link_id="p-22", first_name="Tatenda", surname="Moyo",
                        relationship=Relationship.CHILD, suffix="201"),
        ],
    )


@pytest.fixture
def store_with_holder(stored_holder):
    return InMemoryRecordStore([stored_holder])


@pytest.fixture
def legacy_workbook():
    """Three-sheet legacy export: two policies, three dependents, three receipts."""
    return Workbook.from_rows({
        "Policyholders": [
            LEGACY_POLICY_HEADER,
            ["PN-001", "Chipo Ncube", "Active", "F", "08-111111-C-08", "15-Jan-1980",
             "0771234567", "chipo@example.com", "12 Main Rd, Harare", "Chitomborwizi Standard",
             8, 0, 8, "u-1"],
            ["PN-002", "Farai Dube", "Lapsed", "M", "08-222222-D-08", "1975-03-02",
             "0772000000", "", "5 Second St, Bulawayo", "Lite", 5, 0, 9.5, "u-2"],
        ],
        "Dependents": [
            LEGACY_DEPENDENT_HEADER,
            ["Husband", "Tawanda", "Ncube", "M", "08-333333-E-08", "1979-05-05", "u-1"],
            ["Daughter", "Nyasha", "Ncube", "F", "", "2010-07-07", "u-1"],
            ["Son", "Orphan", "Row", "M", "", "2012-01-01", "u-missing"],
        ],
        "Receipts": [
            LEGACY_RECEIPT_HEADER,
            ["SYS-1", "PH-1", "Chipo Ncube", "15/02/2024", "8.00", "EcoCash", "u-1", ""],
            ["SYS-2", "PH-2", "Farai Dube", "2024-02-20", 9.5, "Cash", "", "08222222D08"],
            ["SYS-3", "PH-3", "Nobody", "2024-02-21", 5, "Cash", "u-404", ""],
        ],
    }, filename="legacy.xlsx")
