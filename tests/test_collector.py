import pytest

from intake.collector import ErrorCollector
from intake.errors import FormatError, LinkResolutionFailure, RowValidationError
from intake.models import IssueKind


def test_row_errors_are_recorded_and_batch_continues():
    collector = ErrorCollector()
    processed = []
    for row in (2, 3, 4):
        with collector.row_guard("Sheet1", row):
            if row == 3:
                raise RowValidationError("bad row")
            processed.append(row)
    assert processed == [2, 4]
    assert [(i.row, i.sheet, i.message) for i in collector.issues] == [(3, "Sheet1", "bad row")]
    assert collector.has_blocking()


def test_link_failures_get_their_own_kind():
    collector = ErrorCollector()
    with collector.row_guard("Dependents", 5):
        raise LinkResolutionFailure("PN404")
    issue = collector.issues[0]
    assert issue.kind == IssueKind.LINK_RESOLUTION
    assert issue.row == 5
    assert "PN404" in issue.message


def test_unexpected_exceptions_become_row_errors():
    collector = ErrorCollector()
    with collector.row_guard("Sheet1", 7):
        raise KeyError("boom")
    assert collector.issues[0].kind == IssueKind.ROW_VALIDATION
    assert collector.issues[0].row == 7


def test_format_errors_propagate():
    collector = ErrorCollector()
    with pytest.raises(FormatError):
        with collector.row_guard("Sheet1", 2):
            raise FormatError("bad workbook")
    assert len(collector) == 0


def test_warnings_do_not_block():
    collector = ErrorCollector()
    collector.warn("premium differs", "Policyholders", 2)
    assert collector.issues[0].is_warning
    assert not collector.has_blocking()


def test_error_payload():
    exc = RowValidationError("Missing policy number", row=4, sheet="Policies")
    assert exc.to_dict() == {
        "error": "Missing policy number",
        "error_type": "RowValidationError",
        "context": {"row": 4, "sheet": "Policies"},
    }
