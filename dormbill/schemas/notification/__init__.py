from dormbill.schemas.notification.notification import (
    DispatchResult,
    JobEnqueued,
    SendBillNotificationRequest,
    SendNotificationRequest,
)

__all__ = [
    "DispatchResult",
    "JobEnqueued",
    "SendBillNotificationRequest",
    "SendNotificationRequest",
]
