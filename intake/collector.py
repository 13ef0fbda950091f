"""
Error Collector: accumulates per-row / per-sheet issues without halting a run.

Row handlers run inside :meth:`ErrorCollector.row_guard`. Known row errors
become issues of their own kind; anything unexpected is logged with a
traceback and recorded as a row error. :class:`FormatError` is never caught
here.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional

from intake.errors import FormatError, LinkResolutionFailure, RowValidationError
from intake.logger import get_logger
from intake.models import ImportIssue, IssueKind

logger = get_logger(__name__)


class ErrorCollector:
    def __init__(self) -> None:
        self._issues: List[ImportIssue] = []

    @property
    def issues(self) -> List[ImportIssue]:
        return list(self._issues)

    def __len__(self) -> int:
        return len(self._issues)

    def add(
        self,
        message: str,
        sheet: str,
        row: Optional[int] = None,
        kind: IssueKind = IssueKind.ROW_VALIDATION,
    ) -> ImportIssue:
        issue = ImportIssue(row=row, sheet=sheet, message=message, kind=kind)
        self._issues.append(issue)
        return issue

    def warn(self, message: str, sheet: str, row: Optional[int] = None) -> ImportIssue:
        logger.info("Warning on %s row %s: %s", sheet, row, message)
        return self.add(message, sheet, row, kind=IssueKind.WARNING)

    def record(self, exc: RowValidationError, sheet: str, row: Optional[int] = None) -> ImportIssue:
        kind = IssueKind.LINK_RESOLUTION if isinstance(exc, LinkResolutionFailure) else IssueKind.ROW_VALIDATION
        return self.add(exc.message, exc.sheet or sheet, exc.row if exc.row is not None else row, kind=kind)

    @contextmanager
    def row_guard(self, sheet: str, row: Optional[int] = None) -> Iterator[None]:
        """Run one row handler; record its failure and let the batch continue."""
        try:
            yield
        except FormatError:
            raise
        except RowValidationError as exc:
            logger.warning("Row error on %s row %s: %s", sheet, row, exc.message)
            self.record(exc, sheet, row)
        except Exception as exc:
            logger.warning("Unexpected error on %s row %s: %s", sheet, row, exc, exc_info=True)
            self.add(str(exc) or type(exc).__name__, sheet, row)

    def has_blocking(self) -> bool:
        return any(not issue.is_warning for issue in self._issues)
