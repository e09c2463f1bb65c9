"""
Payment routes.

`POST /payments` is role-dispatched: admins record payments directly,
tenants submit payments for verification.
"""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from dormbill.api import deps
from dormbill.core.exceptions import ForbiddenError
from dormbill.core.security import CurrentUser
from dormbill.models.base.enums import PaymentStatus
from dormbill.schemas.billing import BillResponse
from dormbill.schemas.common import SuccessResponse
from dormbill.schemas.payment import PaymentCreate, PaymentReject, PaymentResponse
from dormbill.services.payment import PaymentReconciler

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=SuccessResponse[PaymentResponse], status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreate,
    current_user: CurrentUser = Depends(deps.get_current_user),
    db: Session = Depends(deps.get_db),
    reconciler: PaymentReconciler = Depends(deps.get_payment_reconciler),
):
    fields = payload.model_dump(exclude={"bill_id"})

    if current_user.is_admin:
        payment = reconciler.record_payment(payload.bill_id, created_by=current_user.user_id, **fields)
        return SuccessResponse.create("Payment recorded successfully", PaymentResponse.model_validate(payment))

    if current_user.is_tenant:
        tenant = deps.get_current_tenant(current_user, db)
        payment = reconciler.submit_tenant_payment(tenant.id, payload.bill_id, **fields)
        return SuccessResponse.create(
            "Payment submitted and awaiting verification",
            PaymentResponse.model_validate(payment),
        )

    raise ForbiddenError("Insufficient permissions")


@router.get("", response_model=SuccessResponse[List[PaymentResponse]])
def list_payments(
    bill_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    payment_status: Optional[PaymentStatus] = Query(default=None, alias="status"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    tenant_scope: Optional[str] = Depends(deps.get_tenant_scope),
    reconciler: PaymentReconciler = Depends(deps.get_payment_reconciler),
):
    payments = reconciler.list_payments(
        tenant_id=tenant_scope or tenant_id,
        bill_id=bill_id,
        status=payment_status,
        skip=skip,
        limit=limit,
    )
    return SuccessResponse.create("OK", [PaymentResponse.model_validate(payment) for payment in payments])


@router.get("/{payment_id}", response_model=SuccessResponse[PaymentResponse])
def get_payment(
    payment_id: str,
    tenant_scope: Optional[str] = Depends(deps.get_tenant_scope),
    reconciler: PaymentReconciler = Depends(deps.get_payment_reconciler),
):
    payment = reconciler.get_payment(payment_id, tenant_id=tenant_scope)
    return SuccessResponse.create("OK", PaymentResponse.model_validate(payment))


@router.api_route("/{payment_id}/approve", methods=["PATCH", "PUT"], response_model=SuccessResponse[PaymentResponse])
def approve_payment(
    payment_id: str,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    reconciler: PaymentReconciler = Depends(deps.get_payment_reconciler),
):
    payment = reconciler.approve_payment(payment_id, approved_by=current_user.user_id)
    return SuccessResponse.create("Payment approved successfully", PaymentResponse.model_validate(payment))


@router.api_route("/{payment_id}/reject", methods=["PATCH", "PUT"], response_model=SuccessResponse[PaymentResponse])
def reject_payment(
    payment_id: str,
    payload: Optional[PaymentReject] = Body(default=None),
    current_user: CurrentUser = Depends(deps.get_admin_user),
    reconciler: PaymentReconciler = Depends(deps.get_payment_reconciler),
):
    reason = payload.reason if payload else None
    payment = reconciler.reject_payment(payment_id, reason=reason)
    return SuccessResponse.create("Payment rejected", PaymentResponse.model_validate(payment))


@router.delete("/{payment_id}", response_model=SuccessResponse[BillResponse])
def delete_payment(
    payment_id: str,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    reconciler: PaymentReconciler = Depends(deps.get_payment_reconciler),
):
    """Soft delete a payment; returns the bill with its recomputed paid amount."""
    bill = reconciler.delete_payment(payment_id)
    return SuccessResponse.create("Payment deleted successfully", BillResponse.model_validate(bill))
