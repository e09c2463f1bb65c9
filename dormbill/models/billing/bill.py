"""
Bill and bill item models.

A bill is one tenant's charge for one billing month. Its total is the sum
of its items at creation; `paid_amount` is the running sum of approved
payments.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dormbill.models.base import (
    MeterReadingType,
    MoneyType,
    SoftDeleteMixin,
    TimestampModel,
    enum_column,
)
from dormbill.models.base.enums import BillItemType, BillStatus

if TYPE_CHECKING:
    from dormbill.models.payment.payment import Payment
    from dormbill.models.room.room import Room
    from dormbill.models.room.room_utility import RoomUtility
    from dormbill.models.tenant.tenant import Tenant


class Bill(TimestampModel, SoftDeleteMixin):
    """Monthly bill header."""

    __tablename__ = "bills"
    __table_args__ = (
        Index(
            "uq_bills_tenant_month_active",
            "tenant_id",
            "billing_month",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
        Index("ix_bills_status_due_date", "status", "due_date"),
    )

    bill_number: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        comment="Human readable number (BILL-YYYYMM-XXXXXX)",
    )
    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    room_id: Mapped[str] = mapped_column(
        ForeignKey("rooms.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    utility_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("room_utilities.id", ondelete="SET NULL"),
        nullable=True,
    )

    billing_month: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="First day of the billed month",
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[BillStatus] = mapped_column(
        enum_column(BillStatus, "bill_status_enum"),
        nullable=False,
        default=BillStatus.PENDING,
    )

    subtotal: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0"))
    paid_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0"))
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    tenant: Mapped["Tenant"] = relationship(back_populates="bills")
    room: Mapped["Room"] = relationship()
    utility: Mapped[Optional["RoomUtility"]] = relationship()
    items: Mapped[List["BillItem"]] = relationship(
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillItem.sort_order",
    )
    payments: Mapped[List["Payment"]] = relationship(
        back_populates="bill",
        order_by="Payment.created_at",
    )

    @property
    def remaining_amount(self) -> Decimal:
        return max(Decimal("0.00"), self.total_amount - self.paid_amount)

    @property
    def active_payments(self) -> List["Payment"]:
        return [payment for payment in self.payments if not payment.is_deleted]

    def amount_for(self, item_type: BillItemType) -> Decimal:
        """Sum of the item amounts of one kind."""
        return sum(
            (item.amount for item in self.items if item.item_type == item_type),
            Decimal("0.00"),
        )

    def __repr__(self) -> str:
        return f"<Bill(id={self.id}, number={self.bill_number}, status={self.status})>"


class BillItem(TimestampModel):
    """
    Bill line. Immutable once created.

    For water and electricity lines `quantity` is the metered usage and
    `unit_price` the rate.
    """

    __tablename__ = "bill_items"

    bill_id: Mapped[str] = mapped_column(
        ForeignKey("bills.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_type: Mapped[BillItemType] = mapped_column(
        enum_column(BillItemType, "bill_item_type_enum"),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(MeterReadingType, nullable=False, default=Decimal("1"))
    unit_price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    sort_order: Mapped[int] = mapped_column(nullable=False, default=0)

    bill: Mapped["Bill"] = relationship(back_populates="items")
