from __future__ import annotations

from typing import Iterable, Optional, Tuple


class DecodeError(ValueError):
    """The uploaded bytes could not be read as the declared format."""

    def __init__(self, cause: str):
        super().__init__(cause)
        self.cause = cause


class RowValidationError(ValueError):
    def __init__(self, row_number: Optional[int], missing_fields: Iterable[str]):
        self.row_number = row_number
        self.missing_fields: Tuple[str, ...] = tuple(missing_fields)
        where = f"Row {row_number}" if row_number is not None else "Record"
        super().__init__(f"{where}: missing required field(s): {', '.join(self.missing_fields)}")


class RecordNotFoundError(KeyError):
    def __init__(self, record_id: str):
        super().__init__(record_id)
        self.record_id = record_id

    def __str__(self) -> str:
        return f"Record not found: {self.record_id}"
