"""
Task scheduler service.

Bodies of the periodic jobs run by Celery beat:
- Due reminders for pending bills (daily)
- Overdue marking and notices (daily)
- Monthly bill generation fan-out (1st of the month)

Each run only enqueues follow-up jobs; delivery and bill creation happen
in the workers that consume them.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from dormbill.config.settings import Settings, settings
from dormbill.core.background_tasks import GENERATE_BILL, SEND_LINE_NOTIFICATION, JobQueue
from dormbill.models.base.enums import NotificationType
from dormbill.repositories import BillRepository, TenantRepository
from dormbill.services.base import BaseService
from dormbill.services.payment import PaymentReconciler
from dormbill.utils.date_utils import add_days, month_start, today_in


@dataclass
class SchedulerRun:
    """Outcome of one periodic job."""
    job_name: str
    run_date: date
    candidates: int = 0
    job_ids: List[str] = field(default_factory=list)
    marked_overdue: int = 0

    @property
    def enqueued(self) -> int:
        return len(self.job_ids)


class TaskSchedulerService(BaseService):
    """Finds the bills and tenants each periodic job is about and enqueues work for them."""

    def __init__(
        self,
        db_session: Session,
        job_queue: JobQueue,
        config: Settings = settings,
    ):
        super().__init__(db_session, job_queue)
        self.config = config
        self.bills = BillRepository(db_session)
        self.tenants = TenantRepository(db_session)

    def send_due_reminders(self, today: Optional[date] = None) -> SchedulerRun:
        """`bill_due` jobs for pending bills due within the reminder window."""
        today = today or today_in(self.config.TIMEZONE)
        window_end = add_days(today, self.config.BILL_DUE_REMINDER_DAYS)
        run = SchedulerRun(job_name="send-due-reminders", run_date=today)

        bills = self.bills.find_pending_due_between(today, window_end)
        run.candidates = len(bills)
        for bill in bills:
            self._collect(run, SEND_LINE_NOTIFICATION, {
                "tenant_id": bill.tenant_id,
                "bill_id": bill.id,
                "notification_type": NotificationType.BILL_DUE.value,
            })

        self._logger.info(f"Queued {run.enqueued} bill due notifications")
        return run

    def send_overdue_notices(self, today: Optional[date] = None) -> SchedulerRun:
        """Mark past-due bills overdue, then queue `bill_overdue` jobs."""
        today = today or today_in(self.config.TIMEZONE)
        run = SchedulerRun(job_name="send-overdue-notices", run_date=today)

        reconciler = PaymentReconciler(self.db, self.job_queue, self.config)
        run.marked_overdue = len(reconciler.mark_overdue_bills(today))

        bills = self.bills.find_overdue_with_line_identity(today)
        run.candidates = len(bills)
        for bill in bills:
            self._collect(run, SEND_LINE_NOTIFICATION, {
                "tenant_id": bill.tenant_id,
                "bill_id": bill.id,
                "notification_type": NotificationType.BILL_OVERDUE.value,
            })

        self._logger.info(
            f"Queued {run.enqueued} overdue bill notifications ({run.marked_overdue} newly overdue)"
        )
        return run

    def enqueue_monthly_bills(self, today: Optional[date] = None) -> SchedulerRun:
        """One `generate-bill` job per active tenant whose contract covers the month."""
        today = today or today_in(self.config.TIMEZONE)
        billing_month = month_start(today)
        due_date = add_days(billing_month, self.config.MONTHLY_DUE_DATE_OFFSET_DAYS)
        run = SchedulerRun(job_name="enqueue-monthly-bills", run_date=today)

        tenants = self.tenants.find_under_contract(today, billing_month)
        run.candidates = len(tenants)
        for tenant in tenants:
            self._collect(run, GENERATE_BILL, {
                "tenant_id": tenant.id,
                "billing_month": billing_month.isoformat(),
                "due_date": due_date.isoformat(),
            })

        self._logger.info(f"Queued {run.enqueued} bill generation jobs for {billing_month:%Y-%m}")
        return run

    def _collect(self, run: SchedulerRun, job_name: str, payload: dict) -> None:
        job_id = self._enqueue_after_commit(job_name, payload)
        if job_id:
            run.job_ids.append(job_id)
