from __future__ import annotations

from datetime import date

import pytest

from dormbill.core.background_tasks import (
    ENQUEUE_MONTHLY_BILLS,
    GENERATE_BILL,
    SEND_DUE_REMINDERS,
    SEND_LINE_NOTIFICATION,
    SEND_OVERDUE_NOTICES,
    build_beat_schedule,
    build_task_routes,
    celery_app,
    retry_options,
    set_worker_database,
)
from dormbill.core.exceptions import ExternalServiceError, ValidationError
from dormbill.models.base.enums import BillStatus
from dormbill.tasks import billing_tasks, notification_tasks, scheduled_tasks

from tests.helpers import MARCH


@pytest.fixture
def worker_database(database):
    set_worker_database(database)
    yield database
    set_worker_database(None)


def test_retry_policy_is_exponential_with_three_attempts(test_settings):
    options = retry_options(test_settings, (ExternalServiceError,))

    assert options["autoretry_for"] == (ExternalServiceError,)
    assert options["max_retries"] == 2
    assert options["retry_backoff"] == 2
    assert options["retry_jitter"] is False


def test_jobs_are_routed_to_their_queues(test_settings):
    routes = build_task_routes(test_settings)

    assert routes[SEND_LINE_NOTIFICATION] == {"queue": "notifications"}
    assert routes[GENERATE_BILL] == {"queue": "bill-generation"}


def test_beat_schedule_runs_the_three_periodic_jobs():
    schedule = build_beat_schedule()

    assert {entry["task"] for entry in schedule.values()} == {
        SEND_DUE_REMINDERS,
        SEND_OVERDUE_NOTICES,
        ENQUEUE_MONTHLY_BILLS,
    }


def test_all_jobs_are_registered():
    registered = set(celery_app.tasks.keys())

    assert {
        SEND_LINE_NOTIFICATION,
        GENERATE_BILL,
        SEND_DUE_REMINDERS,
        SEND_OVERDUE_NOTICES,
        ENQUEUE_MONTHLY_BILLS,
    } <= registered
    assert notification_tasks.send_line_notification.max_retries == 2


def test_notification_job_passes_extra_keys_as_context(session, tenant, make_bill, line_client, line_api):
    bill = make_bill(tenant)

    result = notification_tasks.run_send_line_notification(
        session,
        {"tenant_id": tenant.id, "notification_type": "bill_created", "bill_id": bill.id},
        line_client,
    )

    assert result["success"] is True
    assert result["notification_id"]
    assert len(line_api.requests) == 1


def test_notification_job_rejects_incomplete_payload(session, line_client):
    with pytest.raises(ValidationError):
        notification_tasks.run_send_line_notification(session, {"bill_id": "b1"}, line_client)


def test_generate_bill_job_is_idempotent(session, job_queue, tenant):
    payload = {"tenant_id": tenant.id, "billing_month": "2025-03-01", "due_date": "2025-04-05"}

    first = billing_tasks.run_generate_bill(session, payload, job_queue)
    second = billing_tasks.run_generate_bill(session, payload, job_queue)

    assert first["success"] is True
    assert second["bill_id"] == first["bill_id"]
    assert job_queue.names() == ["send-line-notification"]


def test_generate_bill_job_accepts_datetime_strings(session, job_queue, tenant):
    result = billing_tasks.run_generate_bill(
        session,
        {"tenant_id": tenant.id, "billing_month": "2025-03-15T00:00:00Z"},
        job_queue,
    )

    assert result["success"] is True


def test_generate_bill_job_requires_tenant_and_month(session, job_queue):
    with pytest.raises(ValidationError):
        billing_tasks.run_generate_bill(session, {"tenant_id": "t1"}, job_queue)


def test_scheduled_job_summaries(session, job_queue, make_bill, tenant):
    make_bill(tenant, due_date=date(2025, 4, 5))

    reminders = scheduled_tasks.run_send_due_reminders(session, job_queue, date(2025, 4, 3))
    notices = scheduled_tasks.run_send_overdue_notices(session, job_queue, date(2025, 4, 6))
    fan_out = scheduled_tasks.run_enqueue_monthly_bills(session, job_queue, MARCH)

    assert reminders["enqueued"] == 1
    assert reminders["run_date"] == "2025-04-03"
    assert notices["marked_overdue"] == 1
    assert notices["enqueued"] == 1
    assert fan_out["job_name"] == "enqueue-monthly-bills"
    assert fan_out["enqueued"] == 1


def test_overdue_task_uses_worker_database(worker_database, make_bill, tenant, session):
    bill = make_bill(tenant, due_date=date(2000, 1, 5))
    tenant.line_user_id = None
    session.commit()

    summary = scheduled_tasks.send_overdue_notices()

    assert summary["marked_overdue"] == 1
    assert summary["enqueued"] == 0
    session.expire_all()
    assert session.get(type(bill), bill.id).status == BillStatus.OVERDUE
