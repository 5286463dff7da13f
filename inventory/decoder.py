from __future__ import annotations

import io
import json
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Dict, Iterator, List, Optional

import pandas as pd

from inventory.errors import DecodeError

SUPPORTED_FORMATS = ("csv", "xlsx", "xls", "json")

XLSX_MAGIC = b"PK\x03\x04"
XLS_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

Row = Dict[str, str]


@dataclass
class DecodedTable:
    """Rows of one uploaded file, headers taken verbatim from the first row.

    ``row_numbers[i]`` is the 1-based position of ``rows[i]`` among the data
    rows of the source file (header excluded, skipped blank rows still counted).
    """

    headers: List[str] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)
    row_numbers: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def numbered(self) -> Iterator[tuple[int, Row]]:
        return zip(self.row_numbers, self.rows)


def detect_format(filename: str = "", content: bytes = b"", content_type: Optional[str] = None) -> str:
    ext = PurePath(filename or "").suffix.lower().lstrip(".")
    mime = (content_type or "").lower()
    if ext in {"xlsx", "xls"}:
        return ext
    if "spreadsheetml" in mime:
        return "xlsx"
    if "excel" in mime or "spreadsheet" in mime:
        return "xls" if content.startswith(XLS_MAGIC) else "xlsx"
    if ext == "json" or "json" in mime:
        return "json"
    head = content[:8]
    if head.startswith(XLSX_MAGIC):
        return "xlsx"
    if head.startswith(XLS_MAGIC):
        return "xls"
    return "csv"


def _clean_cell(value: object) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _frame_to_table(df: pd.DataFrame) -> DecodedTable:
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]
    headers = list(df.columns)
    rows: List[Row] = []
    row_numbers: List[int] = []
    for position, values in enumerate(df.itertuples(index=False, name=None), start=1):
        row = {h: _clean_cell(v) for h, v in zip(headers, values)}
        if not any(row.values()):
            continue
        rows.append(row)
        row_numbers.append(position)
    if not rows:
        raise DecodeError("File contains a header row but no data rows")
    return DecodedTable(headers=headers, rows=rows, row_numbers=row_numbers)


def _read_csv(content: bytes) -> pd.DataFrame:
    # header=None: the header line fixes the field count, so longer rows are a
    # ParserError instead of being shifted into an implicit index.
    try:
        raw = pd.read_csv(
            io.BytesIO(content),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError as exc:
        raise DecodeError("File is empty") from exc
    except pd.errors.ParserError as exc:
        raise DecodeError(f"Parse error: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise DecodeError(f"File is not valid UTF-8 text: {exc}") from exc

    header = [_clean_cell(v) for v in raw.iloc[0].tolist()]
    body = raw.iloc[1:].reset_index(drop=True)
    body.columns = [h if h else f"Unnamed: {i}" for i, h in enumerate(header)]
    if body.empty:
        return body

    # With keep_default_na=False only missing fields come back as NaN; rows with
    # no content at all are blank lines and are skipped later.
    missing = body.isna()
    has_content = body.fillna("").astype(str).apply(lambda col: col.str.strip().ne(""))
    short = missing.any(axis=1) & has_content.any(axis=1)
    if short.any():
        position = int(short.idxmax())
        found = int((~missing.loc[position]).sum())
        raise DecodeError(f"Row {position + 1}: expected {len(header)} fields, found {found}")

    return body


def _read_excel(content: bytes, fmt: str) -> pd.DataFrame:
    engine = "xlrd" if fmt == "xls" else "openpyxl"
    try:
        raw = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object, engine=engine)
    except Exception as exc:
        raise DecodeError(f"Could not read {fmt} workbook: {exc}") from exc
    raw = raw.dropna(how="all", axis=1)
    if len(raw) < 2:
        raise DecodeError("Spreadsheet must contain a header row and at least one data row")
    header = [_clean_cell(v) for v in raw.iloc[0].tolist()]
    header = [h if h else f"Unnamed: {i}" for i, h in enumerate(header)]
    df = raw.iloc[1:].copy()
    df.columns = header
    return df.reset_index(drop=True)


def _read_json(content: bytes) -> pd.DataFrame:
    try:
        payload = json.loads(content.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(f"Invalid JSON: {exc}") from exc
    if isinstance(payload, dict):
        # {"records": [...]} as produced by the export endpoint
        payload = payload.get("records", payload.get("data"))
    if not isinstance(payload, list) or not all(isinstance(r, dict) for r in payload):
        raise DecodeError("JSON upload must be an array of objects")
    if not payload:
        raise DecodeError("File contains no data rows")
    return pd.DataFrame.from_records(payload)


def decode_table(content: bytes, fmt: str = "csv") -> DecodedTable:
    """Decode raw upload bytes into header -> cell rows.

    Raises DecodeError when the bytes are empty, structurally malformed, not
    the declared format, or hold no data rows.
    """
    fmt = (fmt or "").lower().lstrip(".")
    if fmt not in SUPPORTED_FORMATS:
        raise DecodeError(f"Unsupported file format: {fmt or 'unknown'}")
    if not content or not content.strip():
        raise DecodeError("File is empty")

    if fmt == "csv":
        df = _read_csv(content)
    elif fmt == "json":
        df = _read_json(content)
    else:
        df = _read_excel(content, fmt)
    return _frame_to_table(df)
