"""
Room utility (meter reading) schemas.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import Field

from dormbill.schemas.common import BaseCreateSchema, BaseResponseSchema, BaseSchema, BaseUpdateSchema

__all__ = [
    "MeterReading",
    "UtilityRates",
    "UtilityCreate",
    "UtilityUpdate",
    "UtilityResponse",
]


class MeterReading(BaseSchema):
    previous: Optional[Decimal] = Field(default=None, ge=0)
    current: Optional[Decimal] = Field(default=None, ge=0)


class UtilityRates(BaseSchema):
    """Per-unit prices; unset rates fall back to the configured defaults."""

    water_rate: Optional[Decimal] = Field(default=None, ge=0)
    electricity_rate: Optional[Decimal] = Field(default=None, ge=0)


class UtilityCreate(BaseCreateSchema):
    room_id: str
    record_month: date
    tenant_id: Optional[str] = None
    water: MeterReading = Field(default_factory=MeterReading)
    electricity: MeterReading = Field(default_factory=MeterReading)
    rates: UtilityRates = Field(default_factory=UtilityRates)
    notes: Optional[str] = None


class UtilityUpdate(BaseUpdateSchema):
    tenant_id: Optional[str] = None
    water_previous_reading: Optional[Decimal] = Field(default=None, ge=0)
    water_current_reading: Optional[Decimal] = Field(default=None, ge=0)
    water_rate: Optional[Decimal] = Field(default=None, ge=0)
    electricity_previous_reading: Optional[Decimal] = Field(default=None, ge=0)
    electricity_current_reading: Optional[Decimal] = Field(default=None, ge=0)
    electricity_rate: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None


class UtilityResponse(BaseResponseSchema):
    room_id: str
    tenant_id: Optional[str] = None
    record_month: date
    water_previous_reading: Optional[Decimal] = None
    water_current_reading: Optional[Decimal] = None
    water_usage: Decimal
    water_rate: Decimal
    water_cost: Decimal
    electricity_previous_reading: Optional[Decimal] = None
    electricity_current_reading: Optional[Decimal] = None
    electricity_usage: Decimal
    electricity_rate: Decimal
    electricity_cost: Decimal
    total_cost: Decimal
    notes: Optional[str] = None
