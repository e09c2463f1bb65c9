from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from dormbill.models.base.enums import BillItemType, RoomStatus, TenantStatus
from dormbill.models.room import Room
from dormbill.schemas.billing import MeterReading, RateOverrides
from dormbill.services.billing import MonthlyBillGenerator, UtilityService

from tests.helpers import MARCH, MARCH_DUE


@pytest.fixture
def generator(session, job_queue, test_settings):
    return MonthlyBillGenerator(session, job_queue, test_settings)


def test_generates_one_bill_per_active_tenant(generator, job_queue, make_tenant):
    first = make_tenant()
    second = make_tenant()

    result = generator.generate_monthly_bills(MARCH)

    assert result.created_count == 2
    assert result.skipped_count == 0
    assert result.errors == []
    bills = generator.list_bills(billing_month=MARCH)
    assert {bill.tenant_id for bill in bills} == {first.id, second.id}
    assert all(bill.total_amount == Decimal("3000.00") for bill in bills)
    assert job_queue.names() == ["send-line-notification", "send-line-notification"]


def test_rerun_for_same_month_skips_existing_bills(generator, make_tenant):
    make_tenant()
    make_tenant()
    generator.generate_monthly_bills(MARCH)

    again = generator.generate_monthly_bills(date(2025, 3, 15))

    assert again.created_count == 0
    assert again.skipped_count == 2
    assert len(generator.list_bills(billing_month=MARCH)) == 2


def test_default_due_date_is_fifth_of_next_month(generator, make_tenant):
    make_tenant()

    result = generator.generate_monthly_bills(MARCH)

    bill = generator.get_bill(result.bill_ids[0])
    assert bill.due_date == MARCH_DUE


def test_explicit_due_date_is_used(generator, make_tenant):
    make_tenant()

    result = generator.generate_monthly_bills(MARCH, due_date=date(2025, 4, 10))

    assert generator.get_bill(result.bill_ids[0]).due_date == date(2025, 4, 10)


def test_overrides_replace_rent_and_utility_rates(generator, session, room, make_tenant, test_settings):
    make_tenant()
    UtilityService(session, test_settings).record_utility(
        room.id,
        MARCH,
        MeterReading(previous=Decimal("100"), current=Decimal("110")),
        MeterReading(previous=Decimal("1000"), current=Decimal("1050")),
    )

    result = generator.generate_monthly_bills(
        MARCH,
        overrides=RateOverrides(rent_amount=Decimal("2500"), water_rate=Decimal("20")),
    )

    bill = generator.get_bill(result.bill_ids[0])
    assert bill.amount_for(BillItemType.RENT) == Decimal("2500.00")
    assert bill.amount_for(BillItemType.WATER) == Decimal("200.00")
    assert bill.amount_for(BillItemType.ELECTRICITY) == Decimal("400.00")
    assert bill.total_amount == Decimal("3100.00")
    assert bill.utility_id is not None


def test_excludes_late_movers_and_inactive_tenants(generator, make_tenant):
    included = make_tenant(move_in_date=date(2025, 3, 31))
    make_tenant(move_in_date=date(2025, 4, 1))
    make_tenant(status=TenantStatus.INACTIVE)
    make_tenant(status=TenantStatus.MOVED_OUT)
    make_tenant(room_id=None)

    result = generator.generate_monthly_bills(MARCH)

    assert result.created_count == 1
    assert generator.get_bill(result.bill_ids[0]).tenant_id == included.id


def test_one_tenant_failing_does_not_stop_the_batch(generator, session, building, make_tenant):
    closed_room = Room(building_id=building.id, room_number="999", monthly_rent=Decimal("1000"),
                       status=RoomStatus.MAINTENANCE)
    session.add(closed_room)
    session.commit()
    broken = make_tenant(room_id=closed_room.id)
    healthy = make_tenant()
    closed_room.mark_deleted()
    session.commit()

    result = generator.generate_monthly_bills(MARCH)

    assert result.created_count == 1
    assert [error.tenant_id for error in result.errors] == [broken.id]
    assert generator.get_bill(result.bill_ids[0]).tenant_id == healthy.id


def test_generate_for_tenant_returns_existing_bill(generator, job_queue, tenant):
    first = generator.generate_bill_for_tenant(tenant.id, MARCH)
    second = generator.generate_bill_for_tenant(tenant.id, date(2025, 3, 20))

    assert second.id == first.id
    assert job_queue.names() == ["send-line-notification"]


def test_generate_for_tenant_skips_unbillable_tenants(generator, make_tenant):
    inactive = make_tenant(status=TenantStatus.INACTIVE)

    assert generator.generate_bill_for_tenant(inactive.id, MARCH) is None
    assert generator.generate_bill_for_tenant("missing", MARCH) is None
    assert generator.list_bills() == []
