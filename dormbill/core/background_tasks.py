"""
Background Task Management

Celery application, queue routing, retry policy and the periodic schedule
for bill generation and LINE notification jobs. Producers talk to the
queue through the small `JobQueue` interface so services never depend on
Celery directly.
"""

import uuid
from typing import Any, Dict, List, Optional, Protocol, Tuple

from celery import Celery
from celery.schedules import crontab
from celery.signals import task_failure, worker_process_init, worker_process_shutdown

from dormbill.config.logging import get_logger
from dormbill.config.settings import Settings, settings
from dormbill.db.session import Database

logger = get_logger(__name__)

# Job names shared by producers and workers
SEND_LINE_NOTIFICATION = "send-line-notification"
GENERATE_BILL = "generate-bill"

# Periodic job names
SEND_DUE_REMINDERS = "scheduler.send-due-reminders"
SEND_OVERDUE_NOTICES = "scheduler.send-overdue-notices"
ENQUEUE_MONTHLY_BILLS = "scheduler.enqueue-monthly-bills"


class JobQueue(Protocol):
    """Durable at-least-once queue of named jobs with JSON payloads."""

    def enqueue(self, job_name: str, payload: Dict[str, Any]) -> str:
        ...


def build_task_routes(config: Settings) -> Dict[str, Dict[str, str]]:
    return {
        SEND_LINE_NOTIFICATION: {"queue": config.NOTIFICATION_QUEUE},
        GENERATE_BILL: {"queue": config.BILL_GENERATION_QUEUE},
        "scheduler.*": {"queue": config.BILL_GENERATION_QUEUE},
    }


def build_beat_schedule() -> Dict[str, Dict[str, Any]]:
    """Daily reminders at 09:00, overdue notices at 10:00, bills on day 1 at 08:00."""
    return {
        "send-due-reminders": {
            "task": SEND_DUE_REMINDERS,
            "schedule": crontab(hour=9, minute=0),
        },
        "send-overdue-notices": {
            "task": SEND_OVERDUE_NOTICES,
            "schedule": crontab(hour=10, minute=0),
        },
        "enqueue-monthly-bills": {
            "task": ENQUEUE_MONTHLY_BILLS,
            "schedule": crontab(day_of_month=1, hour=8, minute=0),
        },
    }


def retry_options(config: Settings, retry_on: Tuple[type, ...]) -> Dict[str, Any]:
    """Task options for exponential backoff: 2s, 4s, ... up to JOB_MAX_ATTEMPTS runs."""
    return {
        "autoretry_for": retry_on,
        "retry_backoff": config.JOB_BACKOFF_SECONDS,
        "retry_backoff_max": config.JOB_BACKOFF_SECONDS * 2 ** config.JOB_MAX_ATTEMPTS,
        "retry_jitter": False,
        "max_retries": max(0, config.JOB_MAX_ATTEMPTS - 1),
    }


def create_celery_app(config: Settings = settings) -> Celery:
    """Initialize Celery application"""
    app = Celery(
        "dormbill",
        broker=config.get_broker_url(),
        backend=config.get_result_backend(),
        include=[
            "dormbill.tasks.notification_tasks",
            "dormbill.tasks.billing_tasks",
            "dormbill.tasks.scheduled_tasks",
        ],
    )

    app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone=config.TIMEZONE,
        enable_utc=True,
        task_track_started=True,
        worker_prefetch_multiplier=1,
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        result_extended=True,
        task_default_queue=config.NOTIFICATION_QUEUE,
        task_routes=build_task_routes(config),
        beat_schedule=build_beat_schedule(),
    )
    return app


celery_app = create_celery_app()


class CeleryJobQueue:
    """`JobQueue` backed by the Celery broker."""

    def __init__(self, app: Celery = celery_app):
        self.app = app

    def enqueue(self, job_name: str, payload: Dict[str, Any]) -> str:
        task_id = str(uuid.uuid4())
        self.app.send_task(job_name, kwargs={"payload": payload}, task_id=task_id)
        logger.debug(f"Sent task {job_name}", extra={"job_id": task_id})
        return task_id


class InMemoryJobQueue:
    """Collects jobs instead of sending them; used when no broker is wanted."""

    def __init__(self) -> None:
        self.jobs: List[Tuple[str, Dict[str, Any]]] = []

    def enqueue(self, job_name: str, payload: Dict[str, Any]) -> str:
        self.jobs.append((job_name, payload))
        return f"local-{len(self.jobs)}"

    def names(self) -> List[str]:
        return [name for name, _ in self.jobs]


# ==================== Worker lifecycle ====================

_worker_database: Optional[Database] = None


def get_worker_database() -> Database:
    """Database handle owned by the current worker process."""
    global _worker_database
    if _worker_database is None:
        _worker_database = Database.from_settings(settings)
    return _worker_database


def set_worker_database(database: Optional[Database]) -> None:
    global _worker_database
    _worker_database = database


@worker_process_init.connect
def _open_worker_database(**kwargs) -> None:
    get_worker_database()
    logger.info("Worker database handle opened")


@worker_process_shutdown.connect
def _close_worker_database(**kwargs) -> None:
    global _worker_database
    if _worker_database is not None:
        _worker_database.dispose()
        _worker_database = None


@task_failure.connect
def _log_task_failure(sender=None, task_id=None, exception=None, **kwargs) -> None:
    task_name = getattr(sender, "name", "unknown")
    logger.error(
        f"Task {task_name} failed: {exception}",
        extra={"job_id": task_id},
    )
