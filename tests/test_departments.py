from __future__ import annotations

import logging

import pytest

from inventory.departments import DepartmentResolver, display_name

from tests.factories import make_record


@pytest.mark.parametrize(
    ("name", "expected_id"),
    [
        ("Department of Fish and Game", "2"),
        ("fish & game", "2"),
        ("  Department of   Natural Resources ", "3"),
        ("MOTOR VEHICLES", "5"),
        ("Unknown Agency", None),
        ("", None),
    ],
)
def test_match(resolver: DepartmentResolver, name: str, expected_id: str | None) -> None:
    dept = resolver.match(name)
    assert (dept.id if dept else None) == expected_id


def test_resolve_links_known_department(resolver: DepartmentResolver) -> None:
    record = resolver.resolve(make_record("r1", "fish & game"))
    assert record.department_id == "2"
    assert record.department_name == "fish & game"


def test_resolve_keeps_unknown_department(resolver: DepartmentResolver, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="inventory.departments"):
        record = resolver.resolve(make_record("r1", "Unknown Agency", department_id="9"), row_number=4)
    assert record.department_id is None
    assert record.department_name == "Unknown Agency"
    assert "row 4" in caplog.text


def test_get(resolver: DepartmentResolver) -> None:
    assert resolver.get("1").short_name == "Commerce"
    assert resolver.get("99") is None
    assert resolver.get(None) is None


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Department of Fish and Game", "Fish and Game"),
        ("Department of Fish and Game – Sport Fish", "Fish and Game"),
        ("Office of the Governor", "Office of the Governor"),
        ("", "Unknown"),
    ],
)
def test_display_name(name: str, expected: str) -> None:
    assert display_name(name) == expected
