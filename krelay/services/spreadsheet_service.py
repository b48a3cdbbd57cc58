"""
File: krelay/services/spreadsheet_service.py

Project: K Relay

Purpose:
Turn extracted table rows into a downloadable .xlsx file.

Rules:
- Fixed columns: date, delivery, credit, cash, total, diff, mark
- Anything that is not a list of records is an ExtractionFormatError
  (reported to the user, never a crash)
- An empty list is valid; the relay answers "no rows found"
- Control characters openpyxl rejects are dropped from text cells
- Generated filenames only use [A-Za-z0-9._-] so /files can serve them
"""

from __future__ import annotations

import json
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font

TABLE_COLUMNS = ("date", "delivery", "credit", "cash", "total", "diff", "mark")

COLUMN_HEADERS = {
    "date": "日付",
    "delivery": "デリバリー",
    "credit": "クレジット",
    "cash": "現金",
    "total": "合計",
    "diff": "差額",
    "mark": "備考",
}

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


class ExtractionFormatError(ValueError):
    pass


def parse_table_records(text: str) -> list[dict]:
    """
    Parse a model answer into rows.

    Accepts a JSON list of objects, or an object with a "rows" list.
    Markdown code fences around the JSON are ignored.
    """
    cleaned = _FENCE_RE.sub("", (text or "").strip()).strip()
    if not cleaned:
        raise ExtractionFormatError("Empty extraction output")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionFormatError(f"Extraction output is not JSON: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("rows"), list):
        data = data["rows"]

    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise ExtractionFormatError("Extraction output is not a list of records")

    return [{col: row.get(col) for col in TABLE_COLUMNS} for row in data]


def _cell(value: Any) -> Any:
    if value is None or isinstance(value, (int, float)):
        return value
    return ILLEGAL_CHARACTERS_RE.sub("", str(value))


class SpreadsheetWriter:
    def __init__(self, export_dir: str | Path) -> None:
        self._export_dir = Path(export_dir)

    @property
    def export_dir(self) -> Path:
        return self._export_dir

    @staticmethod
    def new_filename() -> str:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        return f"table_{stamp}_{uuid.uuid4().hex[:8]}.xlsx"

    def write(self, records: Iterable[dict]) -> Path:
        wb = Workbook()
        ws = wb.active
        ws.title = "table"

        ws.append([COLUMN_HEADERS[c] for c in TABLE_COLUMNS])
        for cell in ws[1]:
            cell.font = Font(bold=True)

        for row in records:
            ws.append([_cell(row.get(c)) for c in TABLE_COLUMNS])

        self._export_dir.mkdir(parents=True, exist_ok=True)
        path = self._export_dir / self.new_filename()
        wb.save(path)
        return path
