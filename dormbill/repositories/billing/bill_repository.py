"""
Bill repository.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from dormbill.models.base.enums import BillStatus
from dormbill.models.billing import Bill, BillItem
from dormbill.models.tenant import Tenant
from dormbill.repositories.base import BaseRepository


class BillRepository(BaseRepository[Bill]):
    def __init__(self, db: Session):
        super().__init__(Bill, db)

    def find_for_month(self, tenant_id: str, billing_month: date) -> Optional[Bill]:
        """Existing non-deleted bill for (tenant, normalized month)."""
        stmt = self._select().where(
            Bill.tenant_id == tenant_id,
            Bill.billing_month == billing_month,
        )
        return self._scalar(stmt)

    def find_with_details(self, bill_id: str) -> Optional[Bill]:
        stmt = (
            self._select()
            .options(
                selectinload(Bill.items),
                selectinload(Bill.payments),
                selectinload(Bill.tenant),
                selectinload(Bill.room),
            )
            .where(Bill.id == bill_id)
        )
        return self._scalar(stmt)

    def lock_by_id(self, bill_id: str) -> Optional[Bill]:
        """
        Load a bill with a row lock held until the transaction ends.

        The row is re-read even when the session already holds it. SQLite
        ignores FOR UPDATE; its writer lock serializes instead.
        """
        stmt = (
            self._select()
            .where(Bill.id == bill_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._scalar(stmt)

    def search(
        self,
        tenant_id: Optional[str] = None,
        room_id: Optional[str] = None,
        status: Optional[BillStatus] = None,
        billing_month: Optional[date] = None,
        overdue_before: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Bill]:
        stmt = self._select().options(selectinload(Bill.items))
        if tenant_id:
            stmt = stmt.where(Bill.tenant_id == tenant_id)
        if room_id:
            stmt = stmt.where(Bill.room_id == room_id)
        if status:
            stmt = stmt.where(Bill.status == status)
        if billing_month:
            stmt = stmt.where(Bill.billing_month == billing_month)
        if overdue_before:
            stmt = stmt.where(
                Bill.due_date < overdue_before,
                Bill.status.in_([BillStatus.PENDING, BillStatus.OVERDUE]),
            )
        stmt = stmt.order_by(Bill.billing_month.desc(), Bill.created_at.desc())
        return self._scalars(stmt.offset(skip).limit(limit))

    def find_overdue(self, today: date) -> List[Bill]:
        """Unpaid bills whose due date has passed."""
        stmt = (
            self._select()
            .options(selectinload(Bill.tenant), selectinload(Bill.room))
            .where(
                Bill.due_date < today,
                Bill.status.in_([BillStatus.PENDING, BillStatus.OVERDUE]),
            )
            .order_by(Bill.due_date)
        )
        return self._scalars(stmt)

    def find_pending_past_due(self, today: date) -> List[Bill]:
        stmt = self._select().where(
            Bill.status == BillStatus.PENDING,
            Bill.due_date < today,
        )
        return self._scalars(stmt)

    def find_pending_due_between(self, start: date, end: date) -> List[Bill]:
        """Pending bills due in [start, end] whose tenant has a LINE identity."""
        stmt = (
            self._select()
            .join(Bill.tenant)
            .where(
                Bill.status == BillStatus.PENDING,
                Bill.due_date >= start,
                Bill.due_date <= end,
                Tenant.line_user_id.is_not(None),
                Tenant.is_deleted.is_(False),
            )
            .order_by(Bill.due_date)
        )
        return self._scalars(stmt)

    def find_overdue_with_line_identity(self, today: date) -> List[Bill]:
        stmt = (
            self._select()
            .join(Bill.tenant)
            .where(
                Bill.status == BillStatus.OVERDUE,
                Bill.due_date < today,
                Tenant.line_user_id.is_not(None),
                Tenant.is_deleted.is_(False),
            )
            .order_by(Bill.due_date)
        )
        return self._scalars(stmt)

    def sum_items(self, bill_id: str) -> Decimal:
        """Sum of persisted item amounts, read back from the store."""
        amounts = self.db.scalars(select(BillItem.amount).where(BillItem.bill_id == bill_id)).all()
        return sum(amounts, Decimal("0.00"))

