from __future__ import annotations

import io
import json

import pytest
from openpyxl import Workbook

from inventory.decoder import XLS_MAGIC, XLSX_MAGIC, decode_table, detect_format
from inventory.errors import DecodeError


def _xlsx_bytes() -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Inventory"
    ws.append(["Department", " Division ", "License Permit Title", "revenue_2024", "volume_2024"])
    ws.append(["Department of Fish and Game", "Wildlife", "Hunting License", 1250.5, 300])
    ws.append(["Department of Natural Resources", "Oil and Gas", "Oil and Gas Lease", None, 12])
    other = wb.create_sheet("Ignored")
    other.append(["Department", "Division"])
    other.append(["Should not", "appear"])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_csv_quoted_commas_are_not_separators() -> None:
    content = b'Department,Division,License Permit Title,Description\n"Dept, A",Div,Hunting License,"Has, two, commas"\n'
    table = decode_table(content, "csv")
    assert table.headers == ["Department", "Division", "License Permit Title", "Description"]
    assert table.rows == [
        {
            "Department": "Dept, A",
            "Division": "Div",
            "License Permit Title": "Hunting License",
            "Description": "Has, two, commas",
        }
    ]


def test_csv_headers_trimmed_but_case_preserved() -> None:
    table = decode_table(b" Department , division\nX,Y\n", "csv")
    assert table.headers == ["Department", "division"]
    assert table.rows[0] == {"Department": "X", "division": "Y"}


def test_csv_skips_empty_rows_and_keeps_source_positions() -> None:
    table = decode_table(b"A,B\n1,2\n,\n\n3,4\n", "csv")
    assert table.rows == [{"A": "1", "B": "2"}, {"A": "3", "B": "4"}]
    assert table.row_numbers == [1, 4]
    assert list(table.numbered()) == [(1, {"A": "1", "B": "2"}), (4, {"A": "3", "B": "4"})]


def test_csv_with_bom() -> None:
    table = decode_table("\ufeffDepartment,Division\nX,Y\n".encode("utf-8"), "csv")
    assert table.headers == ["Department", "Division"]


@pytest.mark.parametrize(
    "content",
    [
        b"",
        b"   \n",
        b"Department,Division\n",
        b"Department,Division\n,\n",
    ],
)
def test_csv_without_data_rows_fails(content: bytes) -> None:
    with pytest.raises(DecodeError):
        decode_table(content, "csv")


def test_csv_malformed_quoting_fails_with_cause() -> None:
    with pytest.raises(DecodeError) as info:
        decode_table(b'A,B\n"unterminated,1\n', "csv")
    assert info.value.cause


def test_csv_ragged_row_fails() -> None:
    with pytest.raises(DecodeError):
        decode_table(b"A,B\n1,2,3,4\n", "csv")


def test_csv_trailing_comma_is_not_shifted_into_columns() -> None:
    content = b"Department,Division,License Permit Title\nFish & Game,Sport Fish,Hunting License,\n"
    with pytest.raises(DecodeError):
        decode_table(content, "csv")


def test_csv_short_row_fails_with_row_number() -> None:
    content = b"Department,Division,License Permit Title\nFish & Game,Sport Fish,Hunting License\nFish & Game,Sport Fish\n"
    with pytest.raises(DecodeError, match="Row 2") as info:
        decode_table(content, "csv")
    assert "expected 3 fields, found 2" in info.value.cause


def test_csv_empty_trailing_cells_are_kept() -> None:
    table = decode_table(b"Department,Division,Notes\nFish & Game,Sport Fish,\n", "csv")
    assert table.rows == [{"Department": "Fish & Game", "Division": "Sport Fish", "Notes": ""}]


def test_xlsx_reads_first_sheet_only() -> None:
    table = decode_table(_xlsx_bytes(), "xlsx")
    assert table.headers == ["Department", "Division", "License Permit Title", "revenue_2024", "volume_2024"]
    assert len(table) == 2
    assert table.row_numbers == [1, 2]
    first, second = table.rows
    assert first["revenue_2024"] == "1250.5"
    assert first["volume_2024"] == "300"
    assert second["revenue_2024"] == ""
    assert all("Should not" not in row.values() for row in table)


def test_xlsx_header_only_fails() -> None:
    wb = Workbook()
    wb.active.append(["Department", "Division"])
    buf = io.BytesIO()
    wb.save(buf)
    with pytest.raises(DecodeError):
        decode_table(buf.getvalue(), "xlsx")


def test_corrupt_workbook_fails() -> None:
    with pytest.raises(DecodeError):
        decode_table(XLSX_MAGIC + b"not really a zip archive", "xlsx")


def test_json_array_of_objects() -> None:
    content = json.dumps(
        [
            {"Department": "Fish & Game", "volume_2024": 1200, "revenue_2024": 10.5},
            {"Department": "Commerce"},
        ]
    ).encode("utf-8")
    table = decode_table(content, "json")
    assert table.rows[0] == {"Department": "Fish & Game", "volume_2024": "1200", "revenue_2024": "10.5"}
    assert table.rows[1]["volume_2024"] == ""


@pytest.mark.parametrize("content", [b"{not json", b'{"a": 1}', b"[1, 2]", b"[]"])
def test_json_invalid_shapes_fail(content: bytes) -> None:
    with pytest.raises(DecodeError):
        decode_table(content, "json")


def test_unsupported_format() -> None:
    with pytest.raises(DecodeError, match="Unsupported"):
        decode_table(b"%PDF-1.4", "pdf")


@pytest.mark.parametrize(
    ("filename", "content", "content_type", "expected"),
    [
        ("inventory.xlsx", b"", None, "xlsx"),
        ("inventory.XLS", b"", None, "xls"),
        ("inventory.csv", b"a,b", "text/csv", "csv"),
        ("inventory.json", b"[]", None, "json"),
        ("upload", XLSX_MAGIC + b"rest", None, "xlsx"),
        ("upload", XLS_MAGIC + b"rest", None, "xls"),
        ("upload.bin", b"x", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
        ("", b"Department,Division\n", None, "csv"),
    ],
)
def test_detect_format(filename: str, content: bytes, content_type: str | None, expected: str) -> None:
    assert detect_format(filename, content, content_type) == expected
