"""
Extractors for the supported source formats.

Provides:
- BaseExtractor: common interface and row-level helpers
- LegacyExtractor: fixed three-sheet legacy export
- AdHocPolicyExtractor / AdHocDependentExtractor / AdHocReceiptExtractor:
  single-sheet upload templates
- ExtractorRegistry / detect_format: format dispatch
"""

from intake.extractors.base import BaseExtractor, ExtractOutput, RunContext
from intake.extractors.legacy import LegacyExtractor
from intake.extractors.adhoc import AdHocPolicyExtractor
from intake.extractors.adhoc_dependents import AdHocDependentExtractor
from intake.extractors.adhoc_receipts import AdHocReceiptExtractor
from intake.extractors.registry import AUTO, ExtractorRegistry, detect_format

__all__ = [
    "AUTO",
    "AdHocDependentExtractor",
    "AdHocPolicyExtractor",
    "AdHocReceiptExtractor",
    "BaseExtractor",
    "ExtractOutput",
    "ExtractorRegistry",
    "LegacyExtractor",
    "RunContext",
    "detect_format",
]
