"""Tests for table parsing and the .xlsx writer."""

import json

import pytest
from openpyxl import load_workbook

from krelay.files import sanitize_filename
from krelay.services.spreadsheet_service import (
    COLUMN_HEADERS,
    TABLE_COLUMNS,
    ExtractionFormatError,
    SpreadsheetWriter,
    parse_table_records,
)

ROWS = [
    {"date": "10/1", "delivery": 1200, "credit": 3400, "cash": 560, "total": 5160, "diff": 0, "mark": ""},
    {"date": "10/2", "delivery": 900, "credit": None, "cash": 1000, "total": 1900, "diff": -10, "mark": "要確認"},
]


class TestParse:
    def test_plain_list(self):
        assert parse_table_records(json.dumps(ROWS)) == ROWS

    def test_code_fence(self):
        text = "```json\n" + json.dumps(ROWS, ensure_ascii=False) + "\n```"
        assert parse_table_records(text) == ROWS

    def test_rows_object(self):
        assert parse_table_records(json.dumps({"rows": ROWS})) == ROWS

    def test_empty_list_is_valid(self):
        assert parse_table_records("[]") == []
        assert parse_table_records('{"rows": []}') == []

    def test_missing_and_extra_keys(self):
        records = parse_table_records('[{"date": "10/3", "total": 5, "note": "x"}]')
        assert records == [
            {"date": "10/3", "delivery": None, "credit": None, "cash": None,
             "total": 5, "diff": None, "mark": None}
        ]

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "Sorry, I cannot read this image.",
            '{"date": "10/1"}',
            '["a", "b"]',
            '[{"date": "10/1"}, 3]',
            None,
        ],
    )
    def test_malformed(self, text):
        with pytest.raises(ExtractionFormatError):
            parse_table_records(text)


class TestWriter:
    def test_write_creates_workbook(self, tmp_path):
        writer = SpreadsheetWriter(tmp_path / "out")
        path = writer.write(ROWS)

        assert path.parent == tmp_path / "out"
        assert path.suffix == ".xlsx"

        ws = load_workbook(path).active
        rows = list(ws.values)
        assert rows[0] == tuple(COLUMN_HEADERS[c] for c in TABLE_COLUMNS)
        assert len(rows) == 1 + len(ROWS)
        assert rows[1][0] == "10/1"
        assert rows[1][4] == 5160
        assert rows[2][6] == "要確認"

    def test_filenames_are_unique_and_servable(self):
        names = {SpreadsheetWriter.new_filename() for _ in range(20)}
        assert len(names) == 20
        for name in names:
            assert sanitize_filename(name) == name
