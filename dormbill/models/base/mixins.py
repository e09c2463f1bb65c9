"""
SQLAlchemy model mixins for reusable functionality.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from dormbill.utils.date_utils import now_utc


class SoftDeleteMixin:
    """
    Mixin for soft delete capability.

    Provides is_deleted flag and deleted_at timestamp
    for logical deletion without data loss. Repositories filter
    on `is_deleted` automatically.
    """

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
        comment="Soft delete flag"
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Deletion timestamp (UTC)"
    )

    def mark_deleted(self) -> None:
        """Flag the row as deleted; the caller owns the transaction."""
        self.is_deleted = True
        self.deleted_at = now_utc()

    def restore(self) -> None:
        self.is_deleted = False
        self.deleted_at = None
