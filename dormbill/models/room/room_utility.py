"""
Monthly meter snapshot for a room.
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, ForeignKey, Index, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dormbill.models.base import MeterReadingType, MoneyType, SoftDeleteMixin, TimestampModel

if TYPE_CHECKING:
    from dormbill.models.room.room import Room
    from dormbill.models.tenant.tenant import Tenant


class RoomUtility(TimestampModel, SoftDeleteMixin):
    """
    Water and electricity readings of one room for one calendar month.

    Derived columns: usage = max(0, current - previous), cost = usage * rate.
    At most one non-deleted row exists per (room_id, record_month).
    """

    __tablename__ = "room_utilities"
    __table_args__ = (
        Index(
            "uq_room_utilities_room_month_active",
            "room_id",
            "record_month",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    room_id: Mapped[str] = mapped_column(
        ForeignKey("rooms.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    record_month: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    water_previous_reading: Mapped[Optional[Decimal]] = mapped_column(MeterReadingType, nullable=True)
    water_current_reading: Mapped[Optional[Decimal]] = mapped_column(MeterReadingType, nullable=True)
    water_usage: Mapped[Decimal] = mapped_column(MeterReadingType, nullable=False, default=Decimal("0"))
    water_rate: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0"))
    water_cost: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0"))

    electricity_previous_reading: Mapped[Optional[Decimal]] = mapped_column(MeterReadingType, nullable=True)
    electricity_current_reading: Mapped[Optional[Decimal]] = mapped_column(MeterReadingType, nullable=True)
    electricity_usage: Mapped[Decimal] = mapped_column(MeterReadingType, nullable=False, default=Decimal("0"))
    electricity_rate: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0"))
    electricity_cost: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0"))

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    room: Mapped["Room"] = relationship(back_populates="utilities")
    tenant: Mapped[Optional["Tenant"]] = relationship()

    @property
    def total_cost(self) -> Decimal:
        return (self.water_cost or Decimal("0")) + (self.electricity_cost or Decimal("0"))
