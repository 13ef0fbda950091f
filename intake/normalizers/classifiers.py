"""
Free-text classification into closed enumerations.

One generic :class:`KeywordClassifier` consumes an ordered ``(value,
keywords)`` table; adding a new spelling is a data change in
:mod:`intake.mapping.tables`, not a new branch here.
"""

from __future__ import annotations

from typing import Any, Generic, Iterable, Optional, Sequence, Tuple, TypeVar

from intake.mapping.config import DEFAULT_CONFIG, ImportConfig
from intake.models import (
    CashBackAddon,
    FuneralPackage,
    MedicalPackage,
    PaymentMethod,
    PolicyStatus,
    Relationship,
)
from intake.normalizers.data_cleaner import DataCleaner

T = TypeVar("T")


class KeywordClassifier(Generic[T]):
    """
    Case-insensitive keyword containment against an ordered table.

    The first row whose keyword occurs in the compacted text wins; an exact
    enum value (``"Chitomborwizi Premium"``) always matches itself first.
    """

    def __init__(self, table: Sequence[Tuple[T, Iterable[str]]], default: T):
        self._table = [
            (value, tuple(DataCleaner.compact(k) for k in keywords))
            for value, keywords in table
        ]
        self._default = default

    @property
    def default(self) -> T:
        return self._default

    def match(self, value: Any) -> Optional[T]:
        text = DataCleaner.compact(value)
        if not text:
            return None
        for candidate, _ in self._table:
            if DataCleaner.compact(getattr(candidate, "value", candidate)) == text:
                return candidate
        for candidate, keywords in self._table:
            if any(k and k in text for k in keywords):
                return candidate
        return None

    def classify(self, value: Any) -> T:
        found = self.match(value)
        return self._default if found is None else found


class Classifiers:
    """The classifier set for one :class:`ImportConfig`."""

    def __init__(self, cfg: ImportConfig = DEFAULT_CONFIG):
        self.relationship: KeywordClassifier[Relationship] = KeywordClassifier(
            cfg.relationship_keywords, cfg.default_relationship
        )
        self.status: KeywordClassifier[PolicyStatus] = KeywordClassifier(
            cfg.status_keywords, cfg.default_status
        )
        self.package: KeywordClassifier[FuneralPackage] = KeywordClassifier(
            cfg.package_keywords, cfg.default_package
        )
        self.medical: KeywordClassifier[MedicalPackage] = KeywordClassifier(
            cfg.medical_keywords, cfg.default_medical
        )
        self.cashback: KeywordClassifier[CashBackAddon] = KeywordClassifier(
            cfg.cashback_keywords, cfg.default_cashback
        )
        self.payment_method: KeywordClassifier[PaymentMethod] = KeywordClassifier(
            cfg.payment_method_keywords, cfg.default_payment_method
        )


def classify_gender(value: Any) -> Optional[str]:
    text = DataCleaner.compact(value)
    if not text:
        return None
    if text.startswith("f") or text == "woman":
        return "Female"
    if text.startswith("m") or text == "man":
        return "Male"
    return None
