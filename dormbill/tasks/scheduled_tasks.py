"""
Periodic jobs fired by Celery beat (see build_beat_schedule).
"""

from dataclasses import asdict
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from dormbill.config.logging import get_logger
from dormbill.config.settings import settings
from dormbill.core.background_tasks import (
    ENQUEUE_MONTHLY_BILLS,
    SEND_DUE_REMINDERS,
    SEND_OVERDUE_NOTICES,
    CeleryJobQueue,
    JobQueue,
    celery_app,
    get_worker_database,
    retry_options,
)
from dormbill.core.exceptions import RepositoryError
from dormbill.services.background import SchedulerRun, TaskSchedulerService

logger = get_logger(__name__)


def _summary(run: SchedulerRun) -> Dict[str, Any]:
    summary = asdict(run)
    summary["run_date"] = run.run_date.isoformat()
    summary["enqueued"] = run.enqueued
    return summary


def run_send_due_reminders(session: Session, job_queue: JobQueue, today: Optional[date] = None) -> Dict[str, Any]:
    return _summary(TaskSchedulerService(session, job_queue).send_due_reminders(today))


def run_send_overdue_notices(session: Session, job_queue: JobQueue, today: Optional[date] = None) -> Dict[str, Any]:
    return _summary(TaskSchedulerService(session, job_queue).send_overdue_notices(today))


def run_enqueue_monthly_bills(session: Session, job_queue: JobQueue, today: Optional[date] = None) -> Dict[str, Any]:
    return _summary(TaskSchedulerService(session, job_queue).enqueue_monthly_bills(today))


@celery_app.task(name=SEND_DUE_REMINDERS, **retry_options(settings, (RepositoryError,)))
def send_due_reminders() -> Dict[str, Any]:
    logger.info("Running daily bill due notifications")
    with get_worker_database().session() as session:
        return run_send_due_reminders(session, CeleryJobQueue(celery_app))


@celery_app.task(name=SEND_OVERDUE_NOTICES, **retry_options(settings, (RepositoryError,)))
def send_overdue_notices() -> Dict[str, Any]:
    logger.info("Running daily overdue bill notifications")
    with get_worker_database().session() as session:
        return run_send_overdue_notices(session, CeleryJobQueue(celery_app))


@celery_app.task(name=ENQUEUE_MONTHLY_BILLS, **retry_options(settings, (RepositoryError,)))
def enqueue_monthly_bills() -> Dict[str, Any]:
    logger.info("Running monthly bill generation")
    with get_worker_database().session() as session:
        return run_enqueue_monthly_bills(session, CeleryJobQueue(celery_app))
