from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from inventory.errors import RowValidationError
from inventory.mapping import map_row
from inventory.normalize import (
    apply_edit,
    classify_access_channel,
    classify_license_type,
    normalize_status,
    parse_count,
    parse_decimal,
    validate_row,
    validate_rows,
)


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Commercial Fishing Permit", "Permit"),
        ("Hunting License", "License"),
        ("Sport Fishing Licence", "License"),
        ("Xyz Widget", "Other"),
        ("Duck Stamp", "Stamp"),
        ("Vehicle Registration", "Registration"),
        ("Food Handler Certification", "Certificate"),
        ("Plan Approval", "Approval"),
        ("Permit to apply for a license", "License"),
        ("", "Other"),
    ],
)
def test_classify_license_type(title: str, expected: str) -> None:
    assert classify_license_type(title) == expected


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        ("Online and in-person", "Both"),
        ("Online only", "Online"),
        ("Mail-in forms", "Manual"),
        ("Paper form at regional office", "Manual"),
        ("Email submission", "Online"),
        ("Web portal or mail", "Both"),
        ("", "Unknown"),
        ("By appointment", "Unknown"),
    ],
)
def test_classify_access_channel(mode: str, expected: str) -> None:
    assert classify_access_channel(mode) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("$1,250.50", 1250.5),
        ("N/A", 0.0),
        ("", 0.0),
        (None, 0.0),
        ("  42 ", 42.0),
        ("-15", -15.0),
        ("inf", 0.0),
        (7, 7.0),
    ],
)
def test_parse_decimal(raw: object, expected: float) -> None:
    assert parse_decimal(raw) == expected


def test_parse_count_truncates() -> None:
    assert parse_count("1,200") == 1200
    assert parse_count("12.9") == 12
    assert parse_count("abc") == 0


def test_normalize_status() -> None:
    assert normalize_status("inactive") == "Inactive"
    assert normalize_status("Under Review") == "Under Review"
    assert normalize_status("Retired") == "Active"
    assert normalize_status(None) == "Active"


def test_validate_row_derives_fields(now: datetime) -> None:
    mapped = map_row(
        {
            "Department": "Department of Fish and Game",
            "Division": "Commercial Fisheries",
            "License Permit Title": "Commercial Fishing Permit",
            "Access Mode": "Online and in-person",
            "revenue_2024": "$1,250.50",
            "volume_2024": "100",
            "processing_time_2024": "10",
        }
    )
    record = validate_row(mapped, 3, now=now)
    assert record.license_type_category == "Permit"
    assert record.access_channel == "Both"
    assert record.revenue(2024) == 1250.5
    assert record.volume(2024) == 100
    assert record.processing_time(2024) == 10.0
    assert record.volume(2023) == 0
    assert record.status == "Active"
    assert record.department_id is None
    assert record.created_at == now and record.updated_at == now
    assert record.record_id


def test_validate_row_keeps_given_id() -> None:
    mapped = map_row({"ID": "abc-1", "Department": "D", "Division": "V", "License Permit Title": "T"})
    assert validate_row(mapped).record_id == "abc-1"


def test_validate_row_reports_all_missing_fields() -> None:
    with pytest.raises(RowValidationError) as info:
        validate_row(map_row({"Department": "D", "Division": "   "}), 7)
    assert info.value.row_number == 7
    assert info.value.missing_fields == ("division", "license_permit_type")
    assert str(info.value).startswith("Row 7:")


def test_validate_rows_continues_past_bad_rows() -> None:
    rows = [
        (1, map_row({"Department": "D", "Division": "V", "License Permit Title": "T"})),
        (2, map_row({"Department": "D", "License Permit Title": "T"})),
        (3, map_row({"Department": "D", "Division": "V", "License Permit Title": "T2"})),
    ]
    results = list(validate_rows(rows))
    assert [n for n, _ in results] == [1, 2, 3]
    assert isinstance(results[1][1], RowValidationError)
    assert results[2][1].license_permit_type == "T2"


def test_apply_edit_recomputes_derived_fields(now: datetime) -> None:
    original = validate_row(
        map_row({"ID": "r1", "Department": "D", "Division": "V", "License Permit Title": "Hunting License"}),
        now=now,
    )
    original = replace(original, department_id="2")
    later = datetime(2025, 2, 1, tzinfo=timezone.utc)

    edited = apply_edit(original, {"license_permit_type": "Fishing Permit", "access_mode": "online"}, now=later)
    assert edited.record_id == "r1"
    assert edited.license_type_category == "Permit"
    assert edited.access_channel == "Online"
    assert edited.department_id == "2"
    assert edited.created_at == now
    assert edited.updated_at == later


def test_apply_edit_department_change_clears_link(now: datetime) -> None:
    original = validate_row(map_row({"Department": "D", "Division": "V", "License Permit Title": "T"}), now=now)
    original = replace(original, department_id="2")
    assert apply_edit(original, {"department_name": "Other Dept"}).department_id is None


def test_apply_edit_rejects_blanked_required_field() -> None:
    original = validate_row(map_row({"Department": "D", "Division": "V", "License Permit Title": "T"}))
    with pytest.raises(RowValidationError) as info:
        apply_edit(original, {"division": ""})
    assert info.value.missing_fields == ("division",)
    assert info.value.row_number is None
