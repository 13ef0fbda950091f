"""
Exception taxonomy for the import engine.

Only :class:`FormatError` is allowed to escape an import run. Row-level
exceptions are raised inside row handlers and turned into
:class:`~intake.models.ImportIssue` records by the error collector.
"""

from typing import Any, Dict, Optional


class IntakeError(Exception):
    """Base exception for import operations."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a structured error payload."""
        error_dict: Dict[str, Any] = {"error": self.message, "error_type": type(self).__name__}
        if self.context:
            error_dict["context"] = self.context
        return error_dict


class FormatError(IntakeError):
    """Structurally invalid workbook. Aborts the whole run."""


class RowValidationError(IntakeError):
    """A row is missing a required field or carries an unusable critical value."""

    def __init__(self, message: str, row: Optional[int] = None, sheet: Optional[str] = None):
        self.row = row
        self.sheet = sheet
        super().__init__(message, context={"row": row, "sheet": sheet})


class LinkResolutionFailure(RowValidationError):
    """A dependent or receipt references a policyholder that cannot be found."""

    def __init__(self, reference: str, row: Optional[int] = None, sheet: Optional[str] = None):
        self.reference = reference
        super().__init__(f"Policyholder not found for reference '{reference}'", row=row, sheet=sheet)


class SuffixOverflowError(RowValidationError):
    """A relationship class ran out of suffix codes inside its range."""

    def __init__(self, policy_number: str, relationship_class: str, count: int):
        self.policy_number = policy_number
        self.relationship_class = relationship_class
        self.count = count
        super().__init__(
            f"Policy {policy_number}: {count} participants in class '{relationship_class}' "
            f"exceed the 99 available suffix codes"
        )


class PersistenceError(IntakeError):
    """Raised by record store implementations when a write or read fails."""

    def __init__(self, entity: str, key: Any, reason: str):
        super().__init__(
            f"Persistence failed for {entity} '{key}': {reason}",
            context={"entity": entity, "key": key, "reason": reason},
        )
