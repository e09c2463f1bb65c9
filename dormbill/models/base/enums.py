"""
Database enums shared by models and schemas.
"""

import enum


class UserRole(str, enum.Enum):
    """Role carried in the bearer token."""
    ADMIN = "admin"
    TENANT = "tenant"
    GUEST = "guest"


class RoomStatus(str, enum.Enum):
    """Room availability status."""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class TenantStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MOVED_OUT = "moved_out"


class BillStatus(str, enum.Enum):
    """Bill lifecycle status."""
    PENDING = "pending"
    VERIFYING = "verifying"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class BillItemType(str, enum.Enum):
    """Kind of a bill line."""
    RENT = "rent"
    WATER = "water"
    ELECTRICITY = "electricity"
    UTILITY = "utility"
    OTHER = "other"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    LINE_PAY = "line_pay"
    PROMPTPAY = "promptpay"

    @property
    def is_slip_based(self) -> bool:
        """Methods that need a receipt image before approval."""
        return self in (PaymentMethod.BANK_TRANSFER, PaymentMethod.PROMPTPAY)


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationType(str, enum.Enum):
    """Domain events that produce an outbound message."""
    BILL_CREATED = "bill_created"
    BILL_DUE = "bill_due"
    BILL_OVERDUE = "bill_overdue"
    PAYMENT_SUBMITTED = "payment_submitted"
    PAYMENT_APPROVED = "payment_approved"
    PAYMENT_REJECTED = "payment_rejected"
    MAINTENANCE_UPDATED = "maintenance_updated"
    MAINTENANCE_COMPLETED = "maintenance_completed"
    GENERAL = "general"

    @property
    def is_bill_related(self) -> bool:
        return self in (
            NotificationType.BILL_CREATED,
            NotificationType.BILL_DUE,
            NotificationType.BILL_OVERDUE,
        )

    @property
    def is_maintenance_related(self) -> bool:
        return self in (
            NotificationType.MAINTENANCE_UPDATED,
            NotificationType.MAINTENANCE_COMPLETED,
        )


class NotificationStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
