"""
DataCleaner: cell-level utilities shared by every extractor.

Responsibilities:
- Cell-level string conversion (``cell_to_str``)
- Empty-cell detection
- Compact text form used for header and keyword matching
- Numeric / boolean coercion of loosely typed cells
- Policy-number derivation and name / address splitting
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional, Tuple

import pandas as pd

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_NON_ALNUM_CI_RE = re.compile(r"[^A-Za-z0-9]")
_AMOUNT_NOISE_RE = re.compile(r"[^0-9.\-]")

_TRUE_WORDS = {"true", "yes", "y", "1", "x"}


class DataCleaner:
    """Stateless helper that normalises raw cell values and header text."""

    # ----- cell → string ---------------------------------------------------

    @staticmethod
    def is_empty(value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, float) and pd.isna(value):
            return True
        return DataCleaner.cell_to_str(value) == ""

    @staticmethod
    def cell_to_str(value: Any) -> str:
        """Convert an arbitrary cell value to a clean string."""
        if value is None or value is pd.NaT:
            return ""
        if isinstance(value, str):
            return value.strip()
        if isinstance(value, (datetime, date, pd.Timestamp)):
            if isinstance(value, datetime):
                return value.date().isoformat()
            return value.isoformat()
        if isinstance(value, float):
            if pd.isna(value):
                return ""
            # 771234567.0 read back from a numeric cell
            if value.is_integer():
                return str(int(value))
        # Rich-text objects from openpyxl may expose .plain or .text
        plain_attr = getattr(value, "plain", None)
        if isinstance(plain_attr, str):
            return plain_attr.strip()
        text = str(value).strip()
        if text.lower() in {"nan", "none", "nat", "null"}:
            return ""
        return text

    # ----- compact text ----------------------------------------------------

    @staticmethod
    def compact(value: Any) -> str:
        """
        Lower-case and strip every non-alphanumeric character.

        Idempotent: ``compact(compact(x)) == compact(x)``.
        """
        return _NON_ALNUM_RE.sub("", DataCleaner.cell_to_str(value).lower())

    # ----- numbers / flags -------------------------------------------------

    @staticmethod
    def to_float(value: Any) -> Optional[float]:
        """Parse a money-like cell (``"$ 1,234.50"``) into a float, or ``None``."""
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            if isinstance(value, float) and pd.isna(value):
                return None
            return float(value)
        text = _AMOUNT_NOISE_RE.sub("", DataCleaner.cell_to_str(value))
        if text in {"", "-", ".", "-."}:
            return None
        try:
            return float(text)
        except ValueError:
            return None

    @staticmethod
    def to_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        return DataCleaner.cell_to_str(value).lower() in _TRUE_WORDS

    # ----- identity helpers ------------------------------------------------

    @staticmethod
    def derive_policy_number(national_id: Any) -> str:
        """
        Derive the policy number from a national id.

        Keeps only the alphanumeric characters, upper-cased:
        ``"12-345678-A90"`` → ``"12345678A90"``.
        """
        return _NON_ALNUM_CI_RE.sub("", DataCleaner.cell_to_str(national_id)).upper()

    # Lookup keys share the same normal form as derived policy numbers.
    normalize_key = derive_policy_number

    @staticmethod
    def split_full_name(full_name: Any) -> Tuple[str, str]:
        """First token is the first name; the rest is the surname."""
        parts = DataCleaner.cell_to_str(full_name).split()
        if not parts:
            return "", ""
        return parts[0], " ".join(parts[1:])

    @staticmethod
    def split_address(address: Any) -> Tuple[str, str]:
        """``"12 Main Rd, Harare"`` → ``("12 Main Rd", "Harare")``."""
        text = DataCleaner.cell_to_str(address)
        if "," not in text:
            return text, ""
        street, town = text.split(",", 1)
        return street.strip(), town.strip()
