"""
WorkbookReader: file decoding for the import engine.

Encapsulates engine selection:
- ``.xlsx`` / ``.xlsm`` through openpyxl (cached values, dates as datetimes)
- ``.xls`` through pandas + xlrd
- ``.csv`` through pandas (one sheet named after the file)

The engine itself never touches files; it receives the :class:`Workbook`
built here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List

import pandas as pd
from openpyxl import load_workbook

from intake.errors import FormatError
from intake.logger import get_logger
from intake.normalizers import DataCleaner
from intake.workbook import Sheet, Workbook

logger = get_logger(__name__)

SUPPORTED_SUFFIXES = {".xlsx", ".xlsm", ".xls", ".csv"}


def _trim(rows: List[List[Any]]) -> List[List[Any]]:
    """Drop trailing blank rows and trailing blank columns."""
    while rows and all(DataCleaner.is_empty(v) for v in rows[-1]):
        rows.pop()
    width = 0
    for row in rows:
        for idx in range(len(row) - 1, -1, -1):
            if not DataCleaner.is_empty(row[idx]):
                width = max(width, idx + 1)
                break
    return [list(row[:width]) for row in rows]


class WorkbookReader:
    """Decode a spreadsheet file into a :class:`Workbook`."""

    def read(self, file_path: str) -> Workbook:
        path = Path(file_path).expanduser()
        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            raise FormatError(f"Unsupported file type {suffix or '<none>'}", context={"file": str(path)})
        if not path.exists():
            raise FileNotFoundError(f"input not found: {path}")

        if suffix == ".csv":
            sheets = [self._read_csv(path)]
        elif suffix == ".xls":
            sheets = self._read_xls(path)
        else:
            sheets = self._read_xlsx(path)
        logger.info("Read %s: %s", path.name, ", ".join(f"{s.name}({len(s.rows)})" for s in sheets))
        return Workbook(sheets=sheets, filename=path.name)

    # ------------------------------------------------------------------
    # Engines
    # ------------------------------------------------------------------

    @staticmethod
    def _read_xlsx(path: Path) -> List[Sheet]:
        try:
            wb = load_workbook(str(path), read_only=True, data_only=True)
        except Exception as exc:
            raise FormatError(f"Cannot open workbook {path.name}: {exc}") from exc
        try:
            return [
                Sheet(ws.title, _trim([list(r) for r in ws.iter_rows(values_only=True)]))
                for ws in wb.worksheets
            ]
        finally:
            wb.close()

    @staticmethod
    def _read_xls(path: Path) -> List[Sheet]:
        try:
            frames = pd.read_excel(str(path), sheet_name=None, header=None, engine="xlrd", keep_default_na=False)
        except Exception as exc:
            raise FormatError(f"Cannot open workbook {path.name}: {exc}") from exc
        return [Sheet(str(name), _trim(df.values.tolist())) for name, df in frames.items()]

    @staticmethod
    def _read_csv(path: Path) -> Sheet:
        try:
            df = pd.read_csv(str(path), header=None, dtype=str, keep_default_na=False, encoding="utf-8-sig")
        except Exception as exc:
            raise FormatError(f"Cannot read CSV {path.name}: {exc}") from exc
        return Sheet(path.stem, _trim(df.values.tolist()))
