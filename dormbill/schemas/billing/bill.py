"""
Bill request/response schemas.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import ConfigDict, Field, model_validator

from dormbill.models.base.enums import BillItemType, BillStatus
from dormbill.schemas.common import BaseCreateSchema, BaseResponseSchema, BaseSchema
from dormbill.schemas.payment.payment import PaymentResponse

__all__ = [
    "BillItemCreate",
    "BillCreate",
    "BillItemResponse",
    "BillResponse",
    "BillDetailResponse",
    "OverdueBillResponse",
    "BillStatusUpdate",
    "RateOverrides",
    "GenerateMonthlyBillsRequest",
    "GenerationError",
    "GenerationResult",
]


class BillItemCreate(BaseCreateSchema):
    """
    One requested bill line. The amount is always derived as
    quantity * unit_price; rent lines are billed with quantity 1.
    """

    item_type: BillItemType
    description: Optional[str] = Field(default=None, max_length=255)
    quantity: Decimal = Field(default=Decimal("1"), ge=0)
    unit_price: Decimal = Field(..., ge=0)

    @model_validator(mode="after")
    def rent_quantity_is_one(self) -> "BillItemCreate":
        if self.item_type == BillItemType.RENT and self.quantity != 1:
            raise ValueError("rent items must have quantity 1")
        return self


class BillCreate(BaseCreateSchema):
    # Client-supplied subtotal/total are dropped; totals come from the items
    model_config = ConfigDict(extra="ignore")

    tenant_id: str
    room_id: str
    billing_month: date
    due_date: date
    items: List[BillItemCreate] = Field(default_factory=list)
    utility_id: Optional[str] = None
    notes: Optional[str] = None


class BillItemResponse(BaseSchema):
    id: str
    item_type: BillItemType
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal


class BillResponse(BaseResponseSchema):
    bill_number: str
    tenant_id: str
    room_id: str
    utility_id: Optional[str] = None
    billing_month: date
    due_date: date
    status: BillStatus
    subtotal: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None
    items: List[BillItemResponse] = Field(default_factory=list)


class BillDetailResponse(BillResponse):
    payments: List[PaymentResponse] = Field(default_factory=list, validation_alias="active_payments")


class OverdueBillResponse(BillResponse):
    days_overdue: int


class BillStatusUpdate(BaseCreateSchema):
    status: BillStatus
    notes: Optional[str] = None


class RateOverrides(BaseSchema):
    """Optional replacements for the room rent and utility rates."""

    rent_amount: Optional[Decimal] = Field(default=None, ge=0)
    water_rate: Optional[Decimal] = Field(default=None, ge=0)
    electricity_rate: Optional[Decimal] = Field(default=None, ge=0)


class GenerateMonthlyBillsRequest(BaseCreateSchema):
    billing_month: date
    due_date: Optional[date] = None
    rent_amount: Optional[Decimal] = Field(default=None, ge=0)
    water_rate: Optional[Decimal] = Field(default=None, ge=0)
    electricity_rate: Optional[Decimal] = Field(default=None, ge=0)

    def overrides(self) -> RateOverrides:
        return RateOverrides(
            rent_amount=self.rent_amount,
            water_rate=self.water_rate,
            electricity_rate=self.electricity_rate,
        )


class GenerationError(BaseSchema):
    tenant_id: str
    error: str


class GenerationResult(BaseSchema):
    created_count: int = 0
    skipped_count: int = 0
    bill_ids: List[str] = Field(default_factory=list)
    errors: List[GenerationError] = Field(default_factory=list)
