"""
Tenant model.
"""

from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dormbill.models.base import SoftDeleteMixin, TimestampModel, enum_column
from dormbill.models.base.enums import TenantStatus

if TYPE_CHECKING:
    from dormbill.models.billing.bill import Bill
    from dormbill.models.room.room import Room


class Tenant(TimestampModel, SoftDeleteMixin):
    """
    Person renting a room.

    Only active, non-deleted tenants receive bills. `line_user_id` is the
    LINE messaging identity; tenants without one get no chat notifications.
    """

    __tablename__ = "tenants"

    user_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
        index=True,
        comment="Subject of the bearer token for tenant-role users",
    )
    room_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("rooms.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    contract_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    contract_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    move_in_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    status: Mapped[TenantStatus] = mapped_column(
        enum_column(TenantStatus, "tenant_status_enum"),
        nullable=False,
        default=TenantStatus.ACTIVE,
        index=True,
    )
    line_user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    room: Mapped[Optional["Room"]] = relationship(back_populates="tenants")
    bills: Mapped[List["Bill"]] = relationship(back_populates="tenant")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_billable(self) -> bool:
        return self.status == TenantStatus.ACTIVE and not self.is_deleted
