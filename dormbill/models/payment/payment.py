"""
Payment model.

A payment is recorded against one bill and moves from pending to approved
or rejected exactly once.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dormbill.models.base import MoneyType, SoftDeleteMixin, TimestampModel, enum_column
from dormbill.models.base.enums import PaymentMethod, PaymentStatus

if TYPE_CHECKING:
    from dormbill.models.billing.bill import Bill
    from dormbill.models.tenant.tenant import Tenant


class Payment(TimestampModel, SoftDeleteMixin):
    """Payment towards a bill."""

    __tablename__ = "payments"

    bill_id: Mapped[str] = mapped_column(
        ForeignKey("bills.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        enum_column(PaymentMethod, "payment_method_enum"),
        nullable=False,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        enum_column(PaymentStatus, "payment_status_enum"),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True,
    )
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    reference_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    receipt_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    bill: Mapped["Bill"] = relationship(back_populates="payments")
    tenant: Mapped["Tenant"] = relationship()

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, amount={self.amount}, status={self.status})>"
