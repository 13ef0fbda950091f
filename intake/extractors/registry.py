"""
Extractor registry.

Maps a source format name to the extractor class that reads it, and detects
the format of a workbook when the caller does not name one.
"""

from __future__ import annotations

from typing import Dict, Optional, Type

from intake.errors import FormatError
from intake.extractors.adhoc import AdHocPolicyExtractor
from intake.extractors.adhoc_dependents import AdHocDependentExtractor
from intake.extractors.adhoc_receipts import AdHocReceiptExtractor
from intake.extractors.base import BaseExtractor, ExtractOutput, RunContext
from intake.extractors.legacy import LegacyExtractor
from intake.logger import get_logger
from intake.mapping import ColumnMapper, ImportConfig, SheetKind
from intake.workbook import Workbook

logger = get_logger(__name__)

AUTO = "auto"

# Fields that mark a single sheet as one of the upload templates
_RECEIPT_MARKERS = {"amount"}
_POLICY_MARKERS = {"package", "status", "inception_date", "cover_date", "agent"}
_DEPENDENT_MARKERS = {"relationship"}


def detect_format(workbook: Workbook, cfg: ImportConfig) -> str:
    """
    Three sheets ⇒ legacy. A single data sheet is classified by which
    semantic fields its headers map to.

    Raises:
        FormatError: the workbook matches no known layout
    """
    if len(workbook.sheets) == cfg.legacy_sheet_count:
        return LegacyExtractor.source_format
    sheets = [s for s in workbook.sheets if not s.is_empty()]
    if len(sheets) != 1:
        raise FormatError(
            f"Cannot detect import format: expected {cfg.legacy_sheet_count} sheets or one data sheet, "
            f"found {len(workbook.sheets)} sheets ({len(sheets)} with data)",
            context={"sheets": [s.name for s in workbook.sheets]},
        )
    sheet = sheets[0]
    mapper = ColumnMapper(cfg)

    def _mapped(kind: SheetKind) -> set:
        if sheet.keyed:
            return set(mapper.map_keys(sheet.headers, kind))
        return set(mapper.map_headers(sheet.headers, kind))

    if _mapped(SheetKind.RECEIPTS) & _RECEIPT_MARKERS:
        return AdHocReceiptExtractor.source_format
    if _mapped(SheetKind.POLICIES) & _POLICY_MARKERS:
        return AdHocPolicyExtractor.source_format
    if _mapped(SheetKind.DEPENDENTS) & _DEPENDENT_MARKERS:
        return AdHocDependentExtractor.source_format
    raise FormatError(
        f"Cannot detect import format of sheet {sheet.name!r}",
        context={"headers": [str(h) for h in sheet.headers]},
    )


class ExtractorRegistry:
    """
    Source format → extractor class.

    Built-in formats are registered on construction; callers may override or
    add formats with :meth:`register`.
    """

    def __init__(self) -> None:
        self._extractors: Dict[str, Type[BaseExtractor]] = {}
        self._register_defaults()

    # -- public API ----------------------------------------------------------

    def register(self, source_format: str, extractor: Type[BaseExtractor]) -> None:
        self._extractors[source_format] = extractor

    def formats(self) -> list:
        return sorted(self._extractors)

    def resolve(self, workbook: Workbook, cfg: ImportConfig, source_format: Optional[str] = None) -> str:
        if not source_format or source_format == AUTO:
            detected = detect_format(workbook, cfg)
            logger.info("Detected import format: %s", detected)
            return detected
        if source_format not in self._extractors:
            raise FormatError(f"Unknown import format {source_format!r}", context={"known": self.formats()})
        return source_format

    def extract(self, source_format: str, workbook: Workbook, ctx: RunContext) -> ExtractOutput:
        extractor_cls = self._extractors.get(source_format)
        if extractor_cls is None:
            raise FormatError(f"Unknown import format {source_format!r}", context={"known": self.formats()})
        return extractor_cls(ctx).extract(workbook)

    # -- built-ins -----------------------------------------------------------

    def _register_defaults(self) -> None:
        for extractor in (LegacyExtractor, AdHocPolicyExtractor, AdHocDependentExtractor, AdHocReceiptExtractor):
            self.register(extractor.source_format, extractor)
