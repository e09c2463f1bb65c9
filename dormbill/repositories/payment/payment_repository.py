"""
Payment repository.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dormbill.core.exceptions import RepositoryError
from dormbill.models.base.enums import PaymentStatus
from dormbill.models.payment import Payment
from dormbill.repositories.base import BaseRepository


class PaymentRepository(BaseRepository[Payment]):
    def __init__(self, db: Session):
        super().__init__(Payment, db)

    def lock_by_id(self, payment_id: str) -> Optional[Payment]:
        """Reload a payment from the database with a row lock, replacing any stale in-session state."""
        stmt = (
            self._select()
            .where(Payment.id == payment_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._scalar(stmt)

    def sum_approved_for_bill(self, bill_id: str) -> Decimal:
        """Sum of non-deleted approved payments on a bill."""
        stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.bill_id == bill_id,
            Payment.status == PaymentStatus.APPROVED,
            Payment.is_deleted.is_(False),
        )
        try:
            total = self.db.scalar(stmt)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Payment sum failed: {str(e)}") from e
        return Decimal(str(total or 0)).quantize(Decimal("0.01"))

    def search(
        self,
        tenant_id: Optional[str] = None,
        bill_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Payment]:
        return self.find_by_criteria(
            {"tenant_id": tenant_id, "bill_id": bill_id, "status": status},
            skip=skip,
            limit=limit,
            order_by=["-created_at"],
        )
