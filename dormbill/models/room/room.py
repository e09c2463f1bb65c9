"""
Building and room models.

Rooms carry the monthly rent used for the rent line of every bill.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dormbill.models.base import MoneyType, SoftDeleteMixin, TimestampModel, enum_column
from dormbill.models.base.enums import RoomStatus

if TYPE_CHECKING:
    from dormbill.models.room.room_utility import RoomUtility
    from dormbill.models.tenant.tenant import Tenant


class Building(TimestampModel, SoftDeleteMixin):
    """Dormitory building; rooms belong to exactly one building."""

    __tablename__ = "buildings"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    rooms: Mapped[List["Room"]] = relationship(back_populates="building")


class Room(TimestampModel, SoftDeleteMixin):
    """
    Rentable room.

    `max_occupancy` bounds the number of active tenants assigned to the room.
    """

    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("building_id", "room_number", name="uq_rooms_building_number"),
    )

    building_id: Mapped[str] = mapped_column(
        ForeignKey("buildings.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    room_number: Mapped[str] = mapped_column(String(20), nullable=False)
    floor: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    monthly_rent: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    status: Mapped[RoomStatus] = mapped_column(
        enum_column(RoomStatus, "room_status_enum"),
        nullable=False,
        default=RoomStatus.AVAILABLE,
    )
    max_occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    building: Mapped["Building"] = relationship(back_populates="rooms")
    tenants: Mapped[List["Tenant"]] = relationship(back_populates="room")
    utilities: Mapped[List["RoomUtility"]] = relationship(back_populates="room")

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, number={self.room_number})>"
