"""
Payment reconciler.

Records payments against bills and keeps the bill's paid amount and status
in step with them. Every mutating operation runs in one transaction over
the bill and payment rows, and locks the bill row before validating the
remaining balance.

Bill state machine:
    pending -> verifying -> paid
    pending -> overdue        (due date passed, see mark_overdue_bills)
    verifying -> pending      (payment rejected)
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from dormbill.config.settings import Settings, settings
from dormbill.core.background_tasks import SEND_LINE_NOTIFICATION, JobQueue
from dormbill.core.exceptions import (
    AlreadyPaidError,
    ConflictError,
    ErrorCode,
    ForbiddenError,
    InvalidAmountError,
    NotFoundError,
    ValidationError,
)
from dormbill.models.base import to_money
from dormbill.models.base.enums import BillStatus, NotificationType, PaymentMethod, PaymentStatus
from dormbill.models.billing import Bill
from dormbill.models.payment import Payment
from dormbill.repositories import BillRepository, PaymentRepository
from dormbill.services.base import BaseService
from dormbill.utils.date_utils import now_utc, today_in


class PaymentReconciler(BaseService):
    """Payment workflows for admins and tenants."""

    def __init__(
        self,
        db_session: Session,
        job_queue: Optional[JobQueue] = None,
        config: Settings = settings,
    ):
        super().__init__(db_session, job_queue)
        self.config = config
        self.bills = BillRepository(db_session)
        self.payments = PaymentRepository(db_session)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_payment(
        self,
        bill_id: str,
        amount: Decimal,
        payment_method: PaymentMethod,
        payment_date: Optional[date] = None,
        reference_number: Optional[str] = None,
        receipt_url: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Payment:
        """
        Admin path. The bill moves to verifying only for a slip-based method
        with a receipt; otherwise its status is left alone.

        Raises:
            NotFoundError: bill missing
            ValidationError: amount rounds to zero
            InvalidAmountError: amount exceeds the remaining balance
        """
        amount = self._payment_amount(amount)

        with self.transaction():
            bill = self._lock_bill(bill_id)
            self._ensure_payable(bill)
            self._ensure_within_remaining(bill, amount)

            payment = self.payments.add(
                self._new_payment(
                    bill, amount, payment_method, payment_date,
                    reference_number, receipt_url, notes, created_by,
                )
            )
            if payment_method.is_slip_based and receipt_url:
                self.bills.update(bill, {"status": BillStatus.VERIFYING})

        self._logger.info(
            f"Payment recorded: {payment.id}",
            extra={"payment_id": payment.id, "bill_id": bill.id, "tenant_id": bill.tenant_id},
        )
        return payment

    def submit_tenant_payment(
        self,
        tenant_id: str,
        bill_id: str,
        amount: Decimal,
        payment_method: PaymentMethod,
        payment_date: Optional[date] = None,
        reference_number: Optional[str] = None,
        receipt_url: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        """
        Tenant path. Submissions always await verification.

        Raises:
            NotFoundError: bill missing or not the tenant's
            AlreadyPaidError: bill already paid
            InvalidAmountError: amount exceeds the remaining balance
        """
        amount = self._payment_amount(amount)

        with self.transaction():
            bill = self.bills.lock_by_id(bill_id)
            if bill is None or bill.tenant_id != tenant_id:
                raise NotFoundError("Bill", bill_id, message="Bill not found or does not belong to you")
            if bill.status == BillStatus.PAID:
                raise AlreadyPaidError(bill.id)
            self._ensure_payable(bill)
            self._ensure_within_remaining(bill, amount)

            payment = self.payments.add(
                self._new_payment(
                    bill, amount, payment_method, payment_date,
                    reference_number, receipt_url, notes, created_by=tenant_id,
                )
            )
            self.bills.update(bill, {"status": BillStatus.VERIFYING})

        self._logger.info(
            f"Tenant submitted payment for bill {bill.bill_number}",
            extra={"payment_id": payment.id, "bill_id": bill.id, "tenant_id": tenant_id},
        )
        self._enqueue_after_commit(
            SEND_LINE_NOTIFICATION,
            {
                "tenant_id": tenant_id,
                "bill_id": bill.id,
                "notification_type": NotificationType.PAYMENT_SUBMITTED.value,
                "title": "Payment received",
                "message": (
                    f"We received your payment of {amount:,.2f} {self.config.CURRENCY} "
                    f"for bill {bill.bill_number}. It is awaiting verification."
                ),
            },
        )
        return payment

    # -------------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------------

    def approve_payment(self, payment_id: str, approved_by: Optional[str] = None) -> Payment:
        """
        Approve a pending payment: paid_amount grows by its amount and the
        bill becomes paid once fully covered, pending otherwise.

        Raises:
            NotFoundError: payment or bill missing
            ConflictError: payment is not pending
            InvalidAmountError: approval would push paid_amount past the total
        """
        with self.transaction():
            payment, bill = self._lock_payment(payment_id)
            self._ensure_pending(payment)

            new_paid = to_money(bill.paid_amount + payment.amount)
            if new_paid > bill.total_amount:
                raise InvalidAmountError(
                    payment.amount,
                    bill.remaining_amount,
                    message=(
                        "Approving this payment would exceed the bill total. "
                        f"Remaining: {bill.remaining_amount}"
                    ),
                )

            now = now_utc()
            self.payments.update(
                payment,
                {"status": PaymentStatus.APPROVED, "approved_at": now, "approved_by": approved_by},
            )
            fully_paid = new_paid >= bill.total_amount
            self.bills.update(
                bill,
                {
                    "paid_amount": new_paid,
                    "paid_at": now if fully_paid else bill.paid_at,
                    "status": BillStatus.PAID if fully_paid else BillStatus.PENDING,
                },
            )

        self._logger.info(
            f"Payment approved: {payment.id}",
            extra={"payment_id": payment.id, "bill_id": bill.id, "tenant_id": payment.tenant_id},
        )
        self._enqueue_after_commit(
            SEND_LINE_NOTIFICATION,
            {
                "tenant_id": payment.tenant_id,
                "bill_id": bill.id,
                "notification_type": NotificationType.PAYMENT_APPROVED.value,
                "title": "Payment approved",
                "message": (
                    f"Your payment of {payment.amount:,.2f} {self.config.CURRENCY} "
                    f"for bill {bill.bill_number} has been approved. Thank you."
                ),
            },
        )
        return payment

    def reject_payment(self, payment_id: str, reason: Optional[str] = None) -> Payment:
        """
        Reject a pending payment; a verifying bill goes back to pending.
        """
        with self.transaction():
            payment, bill = self._lock_payment(payment_id)
            self._ensure_pending(payment)

            changes: Dict[str, Any] = {"status": PaymentStatus.REJECTED}
            if reason:
                reject_note = f"Reject Reason: {reason}"
                changes["notes"] = f"{payment.notes}\n{reject_note}" if payment.notes else reject_note
            self.payments.update(payment, changes)

            if bill.status == BillStatus.VERIFYING:
                self.bills.update(bill, {"status": BillStatus.PENDING})

        self._logger.info(
            f"Payment rejected: {payment.id}",
            extra={"payment_id": payment.id, "bill_id": bill.id, "tenant_id": payment.tenant_id},
        )
        message = f"Your payment for bill {bill.bill_number} was rejected"
        message += f": {reason}." if reason else "."
        self._enqueue_after_commit(
            SEND_LINE_NOTIFICATION,
            {
                "tenant_id": payment.tenant_id,
                "bill_id": bill.id,
                "notification_type": NotificationType.PAYMENT_REJECTED.value,
                "title": "Payment rejected",
                "message": message + " Please check and submit again.",
            },
        )
        return payment

    def delete_payment(self, payment_id: str) -> Bill:
        """
        Soft delete a payment and rebuild the bill's paid amount from the
        remaining approved payments rather than subtracting.
        """
        with self.transaction():
            payment, bill = self._lock_payment(payment_id)
            self.payments.soft_delete(payment)
            self._recompute_bill(bill)

        self._logger.info(
            f"Payment deleted: {payment_id}",
            extra={"payment_id": payment_id, "bill_id": bill.id},
        )
        return bill

    # -------------------------------------------------------------------------
    # Time based transitions
    # -------------------------------------------------------------------------

    def mark_overdue_bills(self, today: Optional[date] = None) -> List[str]:
        """Move pending bills whose due date has passed to overdue."""
        today = today or today_in(self.config.TIMEZONE)
        with self.transaction():
            bills = self.bills.find_pending_past_due(today)
            for bill in bills:
                self.bills.update(bill, {"status": BillStatus.OVERDUE})

        if bills:
            self._logger.info(f"Marked {len(bills)} bills overdue")
        return [bill.id for bill in bills]

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_payments(
        self,
        tenant_id: Optional[str] = None,
        bill_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Payment]:
        return self.payments.search(tenant_id=tenant_id, bill_id=bill_id, status=status, skip=skip, limit=limit)

    def get_payment(self, payment_id: str, tenant_id: Optional[str] = None) -> Payment:
        payment = self.payments.get_by_id(payment_id)
        if tenant_id is not None and payment.tenant_id != tenant_id:
            raise ForbiddenError("Insufficient permissions")
        return payment

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _lock_bill(self, bill_id: str) -> Bill:
        bill = self.bills.lock_by_id(bill_id)
        if bill is None:
            raise NotFoundError("Bill", bill_id)
        return bill

    def _lock_payment(self, payment_id: str) -> Tuple[Payment, Bill]:
        """
        Lock the payment's bill, then re-read the payment under that lock so
        status checks never run against a stale copy.
        """
        bill_id = self.payments.get_by_id(payment_id).bill_id
        bill = self._lock_bill(bill_id)
        payment = self.payments.lock_by_id(payment_id)
        if payment is None:
            raise NotFoundError("Payment", payment_id)
        return payment, bill

    @staticmethod
    def _ensure_payable(bill: Bill) -> None:
        if bill.status == BillStatus.CANCELLED:
            raise ConflictError(
                "Bill is cancelled",
                details={"bill_id": bill.id},
                error_code=ErrorCode.INVALID_STATE,
            )

    @staticmethod
    def _payment_amount(amount: Decimal) -> Decimal:
        money = to_money(amount)
        if money <= 0:
            raise ValidationError(
                "Payment amount must be at least 0.01",
                field_errors={"amount": [f"{amount} rounds to {money}"]},
            )
        return money

    @staticmethod
    def _ensure_within_remaining(bill: Bill, amount: Decimal) -> None:
        remaining = to_money(bill.total_amount - bill.paid_amount)
        if amount > remaining:
            raise InvalidAmountError(amount, remaining)

    @staticmethod
    def _ensure_pending(payment: Payment) -> None:
        if payment.status != PaymentStatus.PENDING:
            raise ConflictError(
                f"Payment is already {payment.status.value}",
                details={"payment_id": payment.id, "status": payment.status.value},
                error_code=ErrorCode.INVALID_STATE,
            )

    def _new_payment(
        self,
        bill: Bill,
        amount: Decimal,
        payment_method: PaymentMethod,
        payment_date: Optional[date],
        reference_number: Optional[str],
        receipt_url: Optional[str],
        notes: Optional[str],
        created_by: Optional[str],
    ) -> Payment:
        return Payment(
            bill_id=bill.id,
            tenant_id=bill.tenant_id,
            amount=amount,
            payment_method=payment_method,
            status=PaymentStatus.PENDING,
            payment_date=payment_date or today_in(self.config.TIMEZONE),
            reference_number=reference_number,
            receipt_url=receipt_url,
            notes=notes,
            created_by=created_by,
        )

    def _recompute_bill(self, bill: Bill) -> None:
        paid = self.payments.sum_approved_for_bill(bill.id)
        fully_paid = paid >= bill.total_amount
        changes: Dict[str, Any] = {
            "paid_amount": paid,
            "paid_at": (bill.paid_at or now_utc()) if fully_paid else None,
        }
        if bill.status != BillStatus.CANCELLED:
            changes["status"] = BillStatus.PAID if fully_paid else BillStatus.PENDING
        self.bills.update(bill, changes)
