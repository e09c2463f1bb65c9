"""
Notification model.

Append-only audit trail of outbound messages. Rows are written once the
delivery attempt has an outcome; only status and sent_at ever change.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dormbill.models.base import JSONType, TimestampModel, enum_column
from dormbill.models.base.enums import NotificationStatus, NotificationType

if TYPE_CHECKING:
    from dormbill.models.tenant.tenant import Tenant


class Notification(TimestampModel):
    """Delivery record for one message to one tenant."""

    __tablename__ = "notifications"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    notification_type: Mapped[NotificationType] = mapped_column(
        enum_column(NotificationType, "notification_type_enum"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[NotificationStatus] = mapped_column(
        enum_column(NotificationStatus, "notification_status_enum"),
        nullable=False,
        default=NotificationStatus.PENDING,
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    tenant: Mapped["Tenant"] = relationship()
