"""
Tenant repository.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from dormbill.models.base.enums import TenantStatus
from dormbill.models.tenant import Tenant
from dormbill.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    def __init__(self, db: Session):
        super().__init__(Tenant, db)

    def find_by_user_id(self, user_id: str) -> Optional[Tenant]:
        return self._scalar(self._select().where(Tenant.user_id == user_id))

    def find_billable_for_month(self, month_end: date) -> List[Tenant]:
        """Active tenants with a room who moved in on or before `month_end`."""
        stmt = (
            self._select()
            .options(joinedload(Tenant.room))
            .where(
                Tenant.status == TenantStatus.ACTIVE,
                Tenant.room_id.is_not(None),
                or_(Tenant.move_in_date.is_(None), Tenant.move_in_date <= month_end),
            )
            .order_by(Tenant.created_at)
        )
        return self._scalars(stmt)

    def find_under_contract(self, today: date, billing_month: date) -> List[Tenant]:
        """Active tenants whose contract has started and has not ended before `billing_month`."""
        stmt = (
            self._select()
            .where(
                Tenant.status == TenantStatus.ACTIVE,
                Tenant.room_id.is_not(None),
                Tenant.contract_start_date <= today,
                or_(
                    Tenant.contract_end_date.is_(None),
                    Tenant.contract_end_date >= billing_month,
                ),
            )
            .order_by(Tenant.created_at)
        )
        return self._scalars(stmt)
