"""
Bill routes: creation, monthly generation, listing and status overrides.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from dormbill.api import deps
from dormbill.core.security import CurrentUser
from dormbill.models.base.enums import BillStatus
from dormbill.schemas.billing import (
    BillCreate,
    BillDetailResponse,
    BillResponse,
    BillStatusUpdate,
    GenerateMonthlyBillsRequest,
    GenerationResult,
    OverdueBillResponse,
)
from dormbill.schemas.common import SuccessResponse
from dormbill.services.billing import BillComposer, MonthlyBillGenerator

router = APIRouter(prefix="/bills", tags=["Bills"])


@router.post("", response_model=SuccessResponse[BillResponse], status_code=status.HTTP_201_CREATED)
def create_bill(
    payload: BillCreate,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    composer: BillComposer = Depends(deps.get_bill_composer),
):
    """Create a bill; totals are always computed from the items."""
    bill = composer.create_bill(
        tenant_id=payload.tenant_id,
        room_id=payload.room_id,
        billing_month=payload.billing_month,
        due_date=payload.due_date,
        items=payload.items,
        utility_id=payload.utility_id,
        notes=payload.notes,
        created_by=current_user.user_id,
    )
    return SuccessResponse.create("Bill created successfully", BillResponse.model_validate(bill))


@router.post("/generate-monthly", response_model=SuccessResponse[GenerationResult])
def generate_monthly_bills(
    payload: GenerateMonthlyBillsRequest,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    generator: MonthlyBillGenerator = Depends(deps.get_bill_generator),
):
    result = generator.generate_monthly_bills(
        billing_month=payload.billing_month,
        due_date=payload.due_date,
        overrides=payload.overrides(),
        created_by=current_user.user_id,
    )
    return SuccessResponse.create(f"Generated {result.created_count} bills", result)


@router.get("", response_model=SuccessResponse[List[BillResponse]])
def list_bills(
    bill_status: Optional[BillStatus] = Query(default=None, alias="status"),
    tenant_id: Optional[str] = None,
    room_id: Optional[str] = None,
    billing_month: Optional[date] = None,
    overdue: bool = False,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    tenant_scope: Optional[str] = Depends(deps.get_tenant_scope),
    composer: BillComposer = Depends(deps.get_bill_composer),
):
    """Admins see every bill; tenants only their own."""
    bills = composer.list_bills(
        tenant_id=tenant_scope or tenant_id,
        room_id=room_id,
        status=bill_status,
        billing_month=billing_month,
        overdue=overdue,
        skip=skip,
        limit=limit,
    )
    return SuccessResponse.create("OK", [BillResponse.model_validate(bill) for bill in bills])


@router.get("/overdue", response_model=SuccessResponse[List[OverdueBillResponse]])
def list_overdue_bills(
    current_user: CurrentUser = Depends(deps.get_admin_user),
    composer: BillComposer = Depends(deps.get_bill_composer),
):
    overdue = [
        OverdueBillResponse(**BillResponse.model_validate(bill).model_dump(), days_overdue=days)
        for bill, days in composer.list_overdue_bills()
    ]
    return SuccessResponse.create("OK", overdue)


@router.get("/{bill_id}", response_model=SuccessResponse[BillDetailResponse])
def get_bill(
    bill_id: str,
    tenant_scope: Optional[str] = Depends(deps.get_tenant_scope),
    composer: BillComposer = Depends(deps.get_bill_composer),
):
    bill = composer.get_bill(bill_id, tenant_id=tenant_scope)
    return SuccessResponse.create("OK", BillDetailResponse.model_validate(bill))


@router.put("/{bill_id}/status", response_model=SuccessResponse[BillResponse])
def update_bill_status(
    bill_id: str,
    payload: BillStatusUpdate,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    composer: BillComposer = Depends(deps.get_bill_composer),
):
    bill = composer.update_bill_status(bill_id, payload.status, payload.notes)
    return SuccessResponse.create("Bill status updated", BillResponse.model_validate(bill))
