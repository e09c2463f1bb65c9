"""
Notification routes. Admin only.
"""

from fastapi import APIRouter, Depends, status

from dormbill.api import deps
from dormbill.core.background_tasks import SEND_LINE_NOTIFICATION, JobQueue
from dormbill.core.security import CurrentUser
from dormbill.schemas.common import SuccessResponse
from dormbill.schemas.notification import (
    DispatchResult,
    JobEnqueued,
    SendBillNotificationRequest,
    SendNotificationRequest,
)
from dormbill.services.billing import BillComposer
from dormbill.services.notification import NotificationDispatcher

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post("/send", response_model=SuccessResponse[DispatchResult])
def send_notification(
    payload: SendNotificationRequest,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    dispatcher: NotificationDispatcher = Depends(deps.get_notification_dispatcher),
):
    """Push directly to LINE; delivery errors surface as 502 and are not retried."""
    result = dispatcher.dispatch(payload.tenant_id, payload.notification_type, payload.context())
    message = "Notification sent" if result.success else "Notification not sent"
    return SuccessResponse.create(message, result)


@router.post(
    "/send-bill",
    response_model=SuccessResponse[JobEnqueued],
    status_code=status.HTTP_202_ACCEPTED,
)
def send_bill_notification(
    payload: SendBillNotificationRequest,
    current_user: CurrentUser = Depends(deps.get_admin_user),
    composer: BillComposer = Depends(deps.get_bill_composer),
    job_queue: JobQueue = Depends(deps.get_job_queue),
):
    bill = composer.get_bill(payload.bill_id)
    job_id = job_queue.enqueue(
        SEND_LINE_NOTIFICATION,
        {
            "tenant_id": bill.tenant_id,
            "bill_id": bill.id,
            "notification_type": payload.notification_type.value,
        },
    )
    return SuccessResponse.create(
        "Notification queued",
        JobEnqueued(job_id=job_id, job_name=SEND_LINE_NOTIFICATION),
    )
