"""
Policy data intake engine.

Turns decoded spreadsheets (legacy three-sheet exports and single-sheet
upload templates) into policyholders, participants and payments, with a list
of row-level issues for the caller to act on.
"""

from intake.errors import FormatError, IntakeError, PersistenceError, RowValidationError
from intake.models import ImportIssue, ImportResult, Participant, Payment, Policyholder
from intake.pipeline import build_config, run_import
from intake.store import InMemoryRecordStore, RecordStore
from intake.workbook import Sheet, Workbook

__all__ = [
    "FormatError",
    "ImportIssue",
    "ImportResult",
    "InMemoryRecordStore",
    "IntakeError",
    "Participant",
    "Payment",
    "PersistenceError",
    "Policyholder",
    "RecordStore",
    "RowValidationError",
    "Sheet",
    "Workbook",
    "build_config",
    "run_import",
]
