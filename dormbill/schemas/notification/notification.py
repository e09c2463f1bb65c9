"""
Notification request/response schemas.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from dormbill.models.base.enums import NotificationType
from dormbill.schemas.common import BaseCreateSchema, BaseSchema

__all__ = [
    "SendNotificationRequest",
    "SendBillNotificationRequest",
    "DispatchResult",
    "JobEnqueued",
]


class SendNotificationRequest(BaseCreateSchema):
    tenant_id: str
    notification_type: NotificationType = NotificationType.GENERAL
    title: Optional[str] = Field(default=None, max_length=255)
    message: Optional[str] = None
    bill_id: Optional[str] = None
    request_id: Optional[str] = None
    status: Optional[str] = None

    def context(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"tenant_id", "notification_type"}, exclude_none=True)


class SendBillNotificationRequest(BaseCreateSchema):
    bill_id: str
    notification_type: NotificationType = NotificationType.BILL_CREATED

    @field_validator("notification_type")
    @classmethod
    def must_be_bill_type(cls, value: NotificationType) -> NotificationType:
        if not value.is_bill_related:
            raise ValueError("notification_type must be a bill notification")
        return value


class DispatchResult(BaseSchema):
    success: bool
    message_id: Optional[str] = None
    notification_id: Optional[str] = None
    reason: Optional[str] = None


class JobEnqueued(BaseSchema):
    job_id: Optional[str] = None
    job_name: str
