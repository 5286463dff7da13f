from __future__ import annotations

from datetime import datetime, timezone

import pytest

from inventory.departments import DEFAULT_DEPARTMENTS, DepartmentResolver

FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

SAMPLE_CSV = (
    "Department,Division,License Permit Title,Access Mode,revenue_2024,volume_2024,processing_time_2024,Extra Column\n"
    'Department of Fish and Game,Wildlife Conservation,Hunting License,"Online and in-person","$1,250.50",100,10,x\n'
    "Fish & Game,,Commercial Fishing Permit,Online only,500,50,20,y\n"
    "Unknown Agency,Licensing,Xyz Widget,Mail-in forms,N/A,0,5,z\n"
).encode("utf-8")


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def resolver() -> DepartmentResolver:
    return DepartmentResolver(DEFAULT_DEPARTMENTS)


@pytest.fixture
def sample_csv() -> bytes:
    return SAMPLE_CSV

