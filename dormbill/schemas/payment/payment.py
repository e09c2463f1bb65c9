"""
Payment request/response schemas.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from dormbill.models.base.enums import PaymentMethod, PaymentStatus
from dormbill.schemas.common import BaseCreateSchema, BaseResponseSchema

__all__ = ["PaymentCreate", "PaymentReject", "PaymentResponse"]


class PaymentCreate(BaseCreateSchema):
    """
    Payment against a bill. Admins record payments directly; tenants
    submit them for verification.
    """

    bill_id: str
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_method: PaymentMethod
    payment_date: Optional[date] = None
    reference_number: Optional[str] = Field(default=None, max_length=100)
    receipt_url: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = None


class PaymentReject(BaseCreateSchema):
    reason: Optional[str] = None


class PaymentResponse(BaseResponseSchema):
    bill_id: str
    tenant_id: str
    amount: Decimal
    payment_method: PaymentMethod
    status: PaymentStatus
    payment_date: date
    reference_number: Optional[str] = None
    receipt_url: Optional[str] = None
    notes: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
