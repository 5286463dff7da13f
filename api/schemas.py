from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class InventoryFiltersModel(BaseModel):
    department: str = ""
    division: str = ""
    license_type: str = ""
    search: str = ""


class AnalyticsRequestModel(BaseModel):
    fiscal_year: Optional[int] = None
    filters: InventoryFiltersModel = Field(default_factory=InventoryFiltersModel)
    include_chart: bool = True


class RecordInputModel(BaseModel):
    """Manual-form payload; values are raw text and go through full validation."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    record_id: Optional[str] = None
    department_name: Optional[str] = None
    division: Optional[str] = None
    license_permit_type: Optional[str] = None
    description: Optional[str] = None
    access_mode: Optional[str] = None
    regulations: Optional[str] = None
    user_type: Optional[str] = None
    cost: Optional[str] = None
    approving_entities: Optional[str] = None
    renewal_frequency: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None
    revenue_2022: Optional[str] = None
    revenue_2023: Optional[str] = None
    revenue_2024: Optional[str] = None
    revenue_2025: Optional[str] = None
    processing_time_2022: Optional[str] = None
    processing_time_2023: Optional[str] = None
    processing_time_2024: Optional[str] = None
    processing_time_2025: Optional[str] = None
    volume_2022: Optional[str] = None
    volume_2023: Optional[str] = None
    volume_2024: Optional[str] = None
    volume_2025: Optional[str] = None
