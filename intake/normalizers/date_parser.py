"""
Date parsing for spreadsheet cells.

Handles, in priority order:
- ``DD-MMM-YYYY`` (``15-Jan-2024``, ``15 January 2024``)
- ``DD/MM/YYYY``
- ``YYYY-MM-DD``
- native date / datetime cells and Excel serial numbers

``normalize`` is total: anything it cannot read comes back unchanged.
``parse`` is the strict variant used where a date is required.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

from intake.normalizers.data_cleaner import DataCleaner

MONTH_MAP = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

DMY_NAMED_RE = re.compile(r"\b(\d{1,2})[-\s/.]([A-Za-z]{3,9})\.?[-\s/.,]+(\d{4})\b")
DMY_SLASH_RE = re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b")
ISO_DATE_RE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")

# Excel serials up to 9999-12-31
MAX_EXCEL_SERIAL = 2958465
EXCEL_EPOCH = pd.Timestamp("1899-12-30")


class DateParser:
    """Stateless helper that turns date-like cells into ISO ``YYYY-MM-DD``."""

    # ------------------------------------------------------------------
    # Pattern matching
    # ------------------------------------------------------------------

    @staticmethod
    def _build(year: int, month: int, day: int) -> Optional[date]:
        try:
            return date(year, month, day)
        except ValueError:
            return None

    @staticmethod
    def _match_text(text: str) -> Optional[date]:
        match = DMY_NAMED_RE.search(text)
        if match:
            month = MONTH_MAP.get(match.group(2)[:3].lower())
            if month:
                parsed = DateParser._build(int(match.group(3)), month, int(match.group(1)))
                if parsed:
                    return parsed

        match = DMY_SLASH_RE.search(text)
        if match:
            parsed = DateParser._build(int(match.group(3)), int(match.group(2)), int(match.group(1)))
            if parsed:
                return parsed

        match = ISO_DATE_RE.search(text)
        if match:
            parsed = DateParser._build(int(match.group(1)), int(match.group(2)), int(match.group(3)))
            if parsed:
                return parsed

        return None

    @staticmethod
    def _from_serial(value: float) -> Optional[date]:
        if not 1 <= value <= MAX_EXCEL_SERIAL:
            return None
        try:
            dt = EXCEL_EPOCH + pd.to_timedelta(value, unit="D")
        except (ValueError, OverflowError):
            return None
        return dt.date()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @staticmethod
    def parse(value: Any) -> Optional[date]:
        """Strict parse: a ``date`` or ``None``."""
        if value is None or value is pd.NaT:
            return None
        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime().date()
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            if isinstance(value, float) and pd.isna(value):
                return None
            return DateParser._from_serial(float(value))
        text = DataCleaner.cell_to_str(value)
        if not text:
            return None
        parsed = DateParser._match_text(text)
        if parsed:
            return parsed
        # Serial numbers that arrived as text from CSV exports
        if text.isdigit():
            return DateParser._from_serial(float(text))
        return None

    @staticmethod
    def normalize(value: Any) -> str:
        """
        Total normalisation to ``YYYY-MM-DD``.

        Empty cells become ``""``; unparseable text passes through unchanged.
        """
        parsed = DateParser.parse(value)
        if parsed:
            return parsed.isoformat()
        return DataCleaner.cell_to_str(value)

    @staticmethod
    def period_of(value: Any) -> str:
        """``YYYY-MM`` label for a date-like value, or ``""``."""
        parsed = DateParser.parse(value)
        return parsed.strftime("%Y-%m") if parsed else ""

    @staticmethod
    def age_on(date_of_birth: Any, on: date) -> Optional[int]:
        born = DateParser.parse(date_of_birth)
        if born is None:
            return None
        return on.year - born.year - ((on.month, on.day) < (born.month, born.day))

    @staticmethod
    def add_months(value: Any, months: int) -> str:
        parsed = DateParser.parse(value)
        if parsed is None:
            return ""
        shifted = pd.Timestamp(parsed) + pd.DateOffset(months=months)
        return shifted.date().isoformat()
