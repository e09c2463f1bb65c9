"""
Bill generation jobs (queue: bill-generation).
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from dormbill.config.logging import get_logger
from dormbill.config.settings import settings
from dormbill.core.background_tasks import (
    GENERATE_BILL,
    CeleryJobQueue,
    JobQueue,
    celery_app,
    get_worker_database,
    retry_options,
)
from dormbill.core.exceptions import ConflictError, RepositoryError, ValidationError
from dormbill.services.billing import MonthlyBillGenerator
from dormbill.utils.date_utils import parse_date

logger = get_logger(__name__)


def run_generate_bill(
    session: Session,
    payload: Dict[str, Any],
    job_queue: Optional[JobQueue] = None,
) -> Dict[str, Any]:
    """Create the tenant's bill for the month unless it already exists."""
    if not payload.get("tenant_id") or not payload.get("billing_month"):
        raise ValidationError(
            "Bill generation job payload is incomplete",
            field_errors={"tenant_id": ["required"], "billing_month": ["required"]},
        )

    due_date = parse_date(payload["due_date"]) if payload.get("due_date") else None
    generator = MonthlyBillGenerator(session, job_queue)
    bill = generator.generate_bill_for_tenant(
        payload["tenant_id"],
        parse_date(payload["billing_month"]),
        due_date,
    )
    return {"success": bill is not None, "bill_id": bill.id if bill else None}


# A duplicate insert from a concurrent run resolves on retry: the existing bill is returned.
@celery_app.task(
    name=GENERATE_BILL,
    bind=True,
    **retry_options(settings, (RepositoryError, ConflictError)),
)
def generate_bill(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    logger.info(
        f"Generating bill for {payload.get('billing_month')}",
        extra={"job_id": self.request.id, "tenant_id": payload.get("tenant_id")},
    )
    with get_worker_database().session() as session:
        return run_generate_bill(session, payload, CeleryJobQueue(celery_app))
