from __future__ import annotations

from datetime import date

import pytest

from dormbill.models.base.enums import BillStatus, TenantStatus
from dormbill.services.background import TaskSchedulerService

from tests.helpers import FailingJobQueue


@pytest.fixture
def scheduler(session, job_queue, test_settings):
    return TaskSchedulerService(session, job_queue, test_settings)


def notification_jobs(job_queue, notification_type):
    return [
        payload for name, payload in job_queue.jobs
        if name == "send-line-notification" and payload["notification_type"] == notification_type
    ]


def test_due_reminders_cover_today_through_reminder_window(scheduler, job_queue, make_bill, make_tenant):
    today = date(2025, 4, 2)
    due_today = make_bill(make_tenant(), due_date=today)
    due_in_three = make_bill(make_tenant(), due_date=date(2025, 4, 5))
    make_bill(make_tenant(), due_date=date(2025, 4, 6))
    make_bill(make_tenant(), due_date=date(2025, 4, 1))
    make_bill(make_tenant(line_user_id=None), due_date=today)

    run = scheduler.send_due_reminders(today)

    assert run.candidates == 2
    assert run.enqueued == 2
    assert {p["bill_id"] for p in notification_jobs(job_queue, "bill_due")} == {due_today.id, due_in_three.id}


def test_due_reminders_skip_bills_already_under_verification(scheduler, job_queue, composer, make_bill, tenant):
    bill = make_bill(tenant, due_date=date(2025, 4, 3))
    composer.update_bill_status(bill.id, BillStatus.VERIFYING)

    run = scheduler.send_due_reminders(date(2025, 4, 2))

    assert run.candidates == 0
    assert notification_jobs(job_queue, "bill_due") == []


def test_overdue_notices_mark_then_notify(scheduler, job_queue, composer, make_bill, make_tenant):
    late = make_bill(make_tenant(), due_date=date(2025, 4, 5))
    offline = make_bill(make_tenant(line_user_id=None), due_date=date(2025, 4, 5))
    make_bill(make_tenant(), due_date=date(2025, 4, 30))

    run = scheduler.send_overdue_notices(date(2025, 4, 10))

    assert run.marked_overdue == 2
    assert run.candidates == 1
    assert [p["bill_id"] for p in notification_jobs(job_queue, "bill_overdue")] == [late.id]
    assert composer.get_bill(offline.id).status == BillStatus.OVERDUE


def test_overdue_notices_repeat_daily_for_still_overdue_bills(scheduler, job_queue, make_bill, tenant):
    bill = make_bill(tenant, due_date=date(2025, 4, 5))

    scheduler.send_overdue_notices(date(2025, 4, 10))
    second = scheduler.send_overdue_notices(date(2025, 4, 11))

    assert second.marked_overdue == 0
    assert second.enqueued == 1
    assert [p["bill_id"] for p in notification_jobs(job_queue, "bill_overdue")] == [bill.id, bill.id]


def test_monthly_fan_out_enqueues_one_job_per_tenant_under_contract(scheduler, job_queue, make_tenant):
    covered = make_tenant()
    ends_this_month = make_tenant(contract_end_date=date(2025, 3, 31))
    make_tenant(contract_end_date=date(2025, 2, 28))
    make_tenant(contract_start_date=date(2025, 3, 2))
    make_tenant(status=TenantStatus.MOVED_OUT)

    run = scheduler.enqueue_monthly_bills(date(2025, 3, 1))

    assert run.enqueued == 2
    assert job_queue.names() == ["generate-bill", "generate-bill"]
    payloads = [payload for _, payload in job_queue.jobs]
    assert {p["tenant_id"] for p in payloads} == {covered.id, ends_this_month.id}
    assert all(p["billing_month"] == "2025-03-01" for p in payloads)
    assert all(p["due_date"] == "2025-03-11" for p in payloads)


def test_unreachable_queue_is_reported_not_raised(session, test_settings, make_tenant):
    make_tenant()
    scheduler = TaskSchedulerService(session, FailingJobQueue(), test_settings)

    run = scheduler.enqueue_monthly_bills(date(2025, 3, 1))

    assert run.candidates == 1
    assert run.enqueued == 0
