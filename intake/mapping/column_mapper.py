"""
ColumnMapper: resolve arbitrary header text to semantic fields.

Matching runs in two passes over the header row:
1. Exact: the compacted header equals a compacted alias.
2. Containment: header contains alias, or alias contains header.

Within a pass fields are tried in alias-table order, so the table decides
precedence. A field keeps the first column that claimed it; unmatched headers
are ignored. Missing fields are not mapper failures.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from intake.logger import get_logger
from intake.mapping.config import DEFAULT_CONFIG, ImportConfig, SheetKind
from intake.normalizers.data_cleaner import DataCleaner

logger = get_logger(__name__)

Column = Union[int, str]
Row = Union[Sequence[Any], Mapping[str, Any]]


class ColumnMapper:
    """
    Map a header row (or record keys) to ``field → column``.

    Typical call sequence inside an extractor::

        mapper = ColumnMapper(cfg)
        mapping = mapper.map_headers(header_row, SheetKind.POLICIES)
        mapping = mapper.with_positional_fallback(mapping, cfg.legacy_policy_positions, width)
        value = ColumnMapper.get(row, mapping, "policy_number")
    """

    def __init__(self, cfg: ImportConfig = DEFAULT_CONFIG):
        self._cfg = cfg

    # ------------------------------------------------------------------
    # Normalisation
    # ------------------------------------------------------------------

    @staticmethod
    def normalize_header(header: Any) -> str:
        return DataCleaner.compact(header)

    def _compiled(self, aliases: Mapping[str, Sequence[str]]) -> List[Tuple[str, Tuple[str, ...]]]:
        out: List[Tuple[str, Tuple[str, ...]]] = []
        for field_name, field_aliases in aliases.items():
            compact = tuple(a for a in (self.normalize_header(x) for x in field_aliases) if a)
            out.append((field_name, compact))
        return out

    def _contains(self, header: str, alias: str) -> bool:
        if len(min(header, alias, key=len)) < self._cfg.min_containment_length:
            return False
        return alias in header or header in alias

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def match_header(
        self,
        header: Any,
        aliases: Mapping[str, Sequence[str]],
    ) -> Optional[str]:
        """Field for a single header, or ``None``."""
        norm = self.normalize_header(header)
        if not norm:
            return None
        compiled = self._compiled(aliases)
        for field_name, field_aliases in compiled:
            if norm in field_aliases:
                return field_name
        for field_name, field_aliases in compiled:
            if any(self._contains(norm, alias) for alias in field_aliases):
                return field_name
        return None

    def map_columns(
        self,
        headers: Sequence[Tuple[Column, Any]],
        aliases: Mapping[str, Sequence[str]],
    ) -> Dict[str, Column]:
        compiled = self._compiled(aliases)
        normalized = [(col, self.normalize_header(text)) for col, text in headers]
        normalized = [(col, norm) for col, norm in normalized if norm]

        mapping: Dict[str, Column] = {}
        claimed: set = set()

        def _assign(field_name: str, col: Column) -> None:
            if field_name in mapping or col in claimed:
                return
            mapping[field_name] = col
            claimed.add(col)

        for col, norm in normalized:
            for field_name, field_aliases in compiled:
                if field_name not in mapping and norm in field_aliases:
                    _assign(field_name, col)
                    break

        for col, norm in normalized:
            if col in claimed:
                continue
            for field_name, field_aliases in compiled:
                if field_name in mapping:
                    continue
                if any(self._contains(norm, alias) for alias in field_aliases):
                    _assign(field_name, col)
                    break

        unmatched = [text for col, text in headers if col not in claimed and self.normalize_header(text)]
        if unmatched:
            logger.debug("Unmapped headers: %s", unmatched)
        return mapping

    def map_headers(self, header_row: Sequence[Any], kind: SheetKind) -> Dict[str, int]:
        """Map a positional header row; values are column indexes."""
        headers = [(idx, text) for idx, text in enumerate(header_row)]
        return self.map_columns(headers, self._cfg.aliases_for(kind))  # type: ignore[return-value]

    def map_keys(self, keys: Sequence[str], kind: SheetKind) -> Dict[str, str]:
        """Map record keys; values are the original keys."""
        return self.map_columns([(k, k) for k in keys], self._cfg.aliases_for(kind))  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Legacy positional fallback
    # ------------------------------------------------------------------

    @staticmethod
    def with_positional_fallback(
        mapping: Dict[str, Column],
        positions: Mapping[str, int],
        width: int,
    ) -> Dict[str, Column]:
        """
        Fill unmapped fields from a fixed column layout.

        A position is used only when it exists in the row and no mapped field
        already reads from it.
        """
        merged = dict(mapping)
        taken = set(merged.values())
        for field_name, position in positions.items():
            if field_name in merged or position in taken or position >= width:
                continue
            merged[field_name] = position
            taken.add(position)
            logger.debug("Field %s falls back to legacy column %d", field_name, position)
        return merged

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    @staticmethod
    def get(row: Row, mapping: Mapping[str, Column], field_name: str, default: Any = None) -> Any:
        col = mapping.get(field_name)
        if col is None:
            return default
        if isinstance(row, Mapping):
            return row.get(col, default)
        if isinstance(col, int) and 0 <= col < len(row):
            return row[col]
        return default
