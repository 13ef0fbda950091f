"""Phone normalisation to the international digits-only form (``2637...``)."""

from __future__ import annotations

import re
from typing import Any

from intake.normalizers.data_cleaner import DataCleaner

_NON_DIGIT_RE = re.compile(r"\D")


def normalize_phone(value: Any, country_code: str = "263", trunk_prefix: str = "0") -> str:
    """
    Strip non-digits, swap a leading trunk prefix for the country code and
    prepend the country code when it is missing. Empty input stays empty.

    >>> normalize_phone("077 123 4567")
    '263771234567'
    """
    digits = _NON_DIGIT_RE.sub("", DataCleaner.cell_to_str(value))
    if not digits:
        return ""
    if digits.startswith(country_code):
        return digits
    if trunk_prefix and digits.startswith(trunk_prefix):
        return country_code + digits[len(trunk_prefix):]
    return country_code + digits
