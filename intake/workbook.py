"""
Decoded workbook handed to the engine.

A sheet's rows are either positional (first row is the header) or
header-keyed records. Row numbers reported in issues are spreadsheet rows:
the header is row 1, the first data row is row 2.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Sequence, Tuple, Union

from intake.normalizers.data_cleaner import DataCleaner

Row = Union[Sequence[Any], Mapping[str, Any]]


@dataclass
class Sheet:
    name: str
    rows: List[Row] = field(default_factory=list)

    @property
    def keyed(self) -> bool:
        return bool(self.rows) and isinstance(self.rows[0], Mapping)

    @property
    def headers(self) -> List[Any]:
        """Header texts (positional sheets) or record keys in first-seen order."""
        if not self.rows:
            return []
        if not self.keyed:
            return list(self.rows[0])
        keys: Dict[str, None] = {}
        for record in self.rows:
            for key in record:
                keys.setdefault(key, None)
        return list(keys)

    @property
    def width(self) -> int:
        if self.keyed:
            return len(self.headers)
        return max((len(r) for r in self.rows), default=0)

    def data_rows(self) -> Iterator[Tuple[int, Row]]:
        """Yield ``(spreadsheet_row_number, row)`` for non-blank data rows."""
        body = self.rows if self.keyed else self.rows[1:]
        for offset, row in enumerate(body):
            values = row.values() if isinstance(row, Mapping) else row
            if all(DataCleaner.is_empty(v) for v in values):
                continue
            yield offset + 2, row

    def is_empty(self) -> bool:
        return next(self.data_rows(), None) is None


@dataclass
class Workbook:
    sheets: List[Sheet] = field(default_factory=list)
    filename: str = ""

    @classmethod
    def from_rows(cls, sheets: Mapping[str, List[Row]], filename: str = "") -> "Workbook":
        return cls([Sheet(name, list(rows)) for name, rows in sheets.items()], filename)

    def __len__(self) -> int:
        return len(self.sheets)
