"""
Notification jobs (queue: notifications).
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from dormbill.config.logging import get_logger
from dormbill.config.settings import settings
from dormbill.core.background_tasks import (
    SEND_LINE_NOTIFICATION,
    celery_app,
    get_worker_database,
    retry_options,
)
from dormbill.core.exceptions import ExternalServiceError, ValidationError
from dormbill.services.notification import LineMessagingClient, NotificationDispatcher

logger = get_logger(__name__)

ENVELOPE_KEYS = ("tenant_id", "notification_type")


def run_send_line_notification(
    session: Session,
    payload: Dict[str, Any],
    line_client: Optional[LineMessagingClient] = None,
) -> Dict[str, Any]:
    """Dispatch one notification; everything beyond the envelope is message context."""
    missing = [key for key in ENVELOPE_KEYS if not payload.get(key)]
    if missing:
        raise ValidationError(
            "Notification job payload is incomplete",
            field_errors={key: ["required"] for key in missing},
        )

    context = {key: value for key, value in payload.items() if key not in ENVELOPE_KEYS}
    dispatcher = NotificationDispatcher(session, line_client)
    result = dispatcher.dispatch(payload["tenant_id"], payload["notification_type"], context)
    return result.model_dump()


@celery_app.task(
    name=SEND_LINE_NOTIFICATION,
    bind=True,
    **retry_options(settings, (ExternalServiceError,)),
)
def send_line_notification(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    logger.info(
        f"Processing {payload.get('notification_type')} notification (attempt {self.request.retries + 1})",
        extra={"job_id": self.request.id, "tenant_id": payload.get("tenant_id")},
    )
    with get_worker_database().session() as session, LineMessagingClient.from_settings(settings) as client:
        return run_send_line_notification(session, payload, client)
