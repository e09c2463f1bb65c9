"""
Bill composer: assembles a bill's line items from a tenant/room/utility
snapshot, computes totals from the persisted items and stores header and
items in a single transaction.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple
from uuid import uuid4

from sqlalchemy.orm import Session

from dormbill.config.settings import Settings, settings
from dormbill.core.background_tasks import SEND_LINE_NOTIFICATION, JobQueue
from dormbill.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from dormbill.models.base import to_money
from dormbill.models.base.enums import BillItemType, BillStatus, NotificationType
from dormbill.models.billing import Bill, BillItem
from dormbill.models.room import Room, RoomUtility
from dormbill.models.tenant import Tenant
from dormbill.repositories import BillRepository, RoomRepository, RoomUtilityRepository, TenantRepository
from dormbill.schemas.billing import BillItemCreate, RateOverrides
from dormbill.services.base import BaseService
from dormbill.utils.date_utils import days_overdue, month_start, now_utc, today_in

DEFAULT_DESCRIPTIONS = {
    BillItemType.RENT: "Room rent",
    BillItemType.WATER: "Water",
    BillItemType.ELECTRICITY: "Electricity",
    BillItemType.UTILITY: "Utilities",
    BillItemType.OTHER: "Other charge",
}


@dataclass
class LineSpec:
    """A bill line before it is persisted."""

    item_type: BillItemType
    description: str
    quantity: Decimal
    unit_price: Decimal

    @property
    def amount(self) -> Decimal:
        return to_money(self.quantity * self.unit_price)


def generate_bill_number(billing_month: date) -> str:
    return f"BILL-{billing_month:%Y%m}-{uuid4().hex[:6].upper()}"


def _meter_line(item_type: BillItemType, label: str, usage: Decimal, rate: Decimal) -> LineSpec:
    usage = to_money(usage or 0)
    rate = to_money(rate)
    return LineSpec(
        item_type=item_type,
        description=f"{label} ({usage} units x {rate})",
        quantity=usage,
        unit_price=rate,
    )


def compose_lines(
    requested: Sequence[BillItemCreate],
    room: Room,
    utility: Optional[RoomUtility] = None,
    overrides: Optional[RateOverrides] = None,
) -> List[LineSpec]:
    """
    Build the final line list.

    Requested lines are kept as given. With a utility snapshot, water and
    electricity lines are appended unless one of that kind was requested.
    A rent line from the room's monthly rent is appended when missing.
    """
    overrides = overrides or RateOverrides()
    lines = [
        LineSpec(
            item_type=item.item_type,
            description=item.description or DEFAULT_DESCRIPTIONS[item.item_type],
            quantity=to_money(item.quantity),
            unit_price=to_money(item.unit_price),
        )
        for item in requested
    ]
    kinds = {line.item_type for line in lines}

    if utility is not None:
        if BillItemType.WATER not in kinds:
            rate = overrides.water_rate if overrides.water_rate is not None else utility.water_rate
            lines.append(_meter_line(BillItemType.WATER, "Water", utility.water_usage, rate))
        if BillItemType.ELECTRICITY not in kinds:
            rate = (
                overrides.electricity_rate
                if overrides.electricity_rate is not None
                else utility.electricity_rate
            )
            lines.append(_meter_line(BillItemType.ELECTRICITY, "Electricity", utility.electricity_usage, rate))

    if BillItemType.RENT not in kinds:
        rent = overrides.rent_amount if overrides.rent_amount is not None else room.monthly_rent
        lines.append(
            LineSpec(
                item_type=BillItemType.RENT,
                description=DEFAULT_DESCRIPTIONS[BillItemType.RENT],
                quantity=Decimal("1"),
                unit_price=to_money(rent),
            )
        )
    return lines


class BillComposer(BaseService):
    """Creates and reads bills."""

    def __init__(
        self,
        db_session: Session,
        job_queue: Optional[JobQueue] = None,
        config: Settings = settings,
    ):
        super().__init__(db_session, job_queue)
        self.config = config
        self.bills = BillRepository(db_session)
        self.tenants = TenantRepository(db_session)
        self.rooms = RoomRepository(db_session)
        self.utilities = RoomUtilityRepository(db_session)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_bill(
        self,
        tenant_id: str,
        room_id: str,
        billing_month: date,
        due_date: date,
        items: Sequence[BillItemCreate] = (),
        utility_id: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Bill:
        """
        Create one bill with its items.

        Raises:
            NotFoundError: tenant missing/inactive, room or utility missing
            ConflictError: a live bill already exists for (tenant, month)
        """
        billing_month = month_start(billing_month)
        tenant = self._get_billable_tenant(tenant_id)
        room = self.rooms.get_by_id(room_id)

        if self.bills.find_for_month(tenant.id, billing_month):
            raise ConflictError(
                "Bill already exists for this tenant and month",
                details={"tenant_id": tenant.id, "billing_month": billing_month.isoformat()},
            )

        utility = None
        if utility_id:
            utility = self.utilities.get_by_id(utility_id)
            if utility.room_id != room.id:
                raise ValidationError(
                    "Utility record belongs to a different room",
                    field_errors={"utility_id": ["must belong to the billed room"]},
                )

        lines = compose_lines(items, room, utility)

        with self.transaction():
            bill = self.persist_bill(
                tenant=tenant,
                room=room,
                billing_month=billing_month,
                due_date=due_date,
                lines=lines,
                utility=utility,
                notes=notes,
                created_by=created_by,
            )

        self._logger.info(
            f"Bill created: {bill.bill_number}",
            extra={"bill_id": bill.id, "tenant_id": tenant.id},
        )
        self.notify_bill_created(bill)
        return bill

    def persist_bill(
        self,
        tenant: Tenant,
        room: Room,
        billing_month: date,
        due_date: date,
        lines: Sequence[LineSpec],
        utility: Optional[RoomUtility] = None,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Bill:
        """
        Insert header and items, then set subtotal and total from the
        persisted item amounts. Must run inside the caller's transaction.
        """
        if not lines:
            raise ValidationError("A bill needs at least one item")

        bill = Bill(
            bill_number=generate_bill_number(billing_month),
            tenant_id=tenant.id,
            room_id=room.id,
            utility_id=utility.id if utility else None,
            billing_month=billing_month,
            due_date=due_date,
            status=BillStatus.PENDING,
            paid_amount=Decimal("0.00"),
            notes=notes,
            created_by=created_by,
        )
        bill.items = [
            BillItem(
                item_type=line.item_type,
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
                amount=line.amount,
                sort_order=index,
            )
            for index, line in enumerate(lines)
        ]
        self.bills.add(bill)

        total = to_money(self.bills.sum_items(bill.id))
        self.bills.update(bill, {"subtotal": total, "total_amount": total})
        return bill

    def notify_bill_created(self, bill: Bill) -> None:
        self._enqueue_after_commit(
            SEND_LINE_NOTIFICATION,
            {
                "tenant_id": bill.tenant_id,
                "bill_id": bill.id,
                "notification_type": NotificationType.BILL_CREATED.value,
            },
        )

    def _get_billable_tenant(self, tenant_id: str) -> Tenant:
        tenant = self.tenants.find_by_id(tenant_id)
        if tenant is None or not tenant.is_billable:
            raise NotFoundError("Tenant", tenant_id, message="Tenant not found or inactive")
        return tenant

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_bill(self, bill_id: str, tenant_id: Optional[str] = None) -> Bill:
        """Bill with items and live payments; `tenant_id` restricts to one owner."""
        bill = self.bills.find_with_details(bill_id)
        if bill is None:
            raise NotFoundError("Bill", bill_id)
        if tenant_id is not None and bill.tenant_id != tenant_id:
            raise ForbiddenError("Insufficient permissions")
        return bill

    def list_bills(
        self,
        tenant_id: Optional[str] = None,
        room_id: Optional[str] = None,
        status: Optional[BillStatus] = None,
        billing_month: Optional[date] = None,
        overdue: bool = False,
        today: Optional[date] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Bill]:
        return self.bills.search(
            tenant_id=tenant_id,
            room_id=room_id,
            status=status,
            billing_month=month_start(billing_month) if billing_month else None,
            overdue_before=(today or today_in(self.config.TIMEZONE)) if overdue else None,
            skip=skip,
            limit=limit,
        )

    def list_overdue_bills(self, today: Optional[date] = None) -> List[Tuple[Bill, int]]:
        """Unpaid bills past their due date with the number of days overdue."""
        today = today or today_in(self.config.TIMEZONE)
        return [(bill, days_overdue(bill.due_date, today)) for bill in self.bills.find_overdue(today)]

    # -------------------------------------------------------------------------
    # Admin override
    # -------------------------------------------------------------------------

    def update_bill_status(self, bill_id: str, status: BillStatus, notes: Optional[str] = None) -> Bill:
        with self.transaction():
            bill = self.bills.lock_by_id(bill_id)
            if bill is None:
                raise NotFoundError("Bill", bill_id)
            changes = {"status": status}
            if status == BillStatus.PAID and bill.paid_at is None:
                changes["paid_at"] = now_utc()
            if notes:
                changes["notes"] = f"{bill.notes}\n{notes}" if bill.notes else notes
            self.bills.update(bill, changes)

        self._logger.info(f"Bill status updated: {bill.bill_number} -> {status.value}", extra={"bill_id": bill.id})
        return bill
