from __future__ import annotations

from decimal import Decimal

import pytest

from dormbill.config.settings import MissingReadingPolicy
from dormbill.core.exceptions import ConflictError, NotFoundError, ValidationError
from dormbill.schemas.billing import MeterReading, UtilityRates
from dormbill.services.billing import UtilityService, compute_meter

from tests.helpers import MARCH


@pytest.fixture
def service(session, test_settings):
    return UtilityService(session, test_settings)


def record(service, room, **overrides):
    fields = {
        "room_id": room.id,
        "month": MARCH,
        "water": MeterReading(previous=Decimal("100"), current=Decimal("110")),
        "electricity": MeterReading(previous=Decimal("1000"), current=Decimal("1050")),
    }
    fields.update(overrides)
    return service.record_utility(**fields)


def test_record_utility_derives_usage_and_cost_from_default_rates(service, room):
    utility = record(service, room)

    assert utility.water_usage == Decimal("10.00")
    assert utility.water_rate == Decimal("15.00")
    assert utility.water_cost == Decimal("150.00")
    assert utility.electricity_usage == Decimal("50.00")
    assert utility.electricity_cost == Decimal("400.00")
    assert utility.total_cost == Decimal("550.00")


def test_record_utility_normalizes_month_and_uses_explicit_rates(service, room):
    utility = record(
        service,
        room,
        month=MARCH.replace(day=20),
        rates=UtilityRates(water_rate=Decimal("18"), electricity_rate=Decimal("7.5")),
    )

    assert utility.record_month == MARCH
    assert utility.water_cost == Decimal("180.00")
    assert utility.electricity_cost == Decimal("375.00")


def test_second_record_for_same_room_and_month_conflicts(service, room):
    record(service, room)

    with pytest.raises(ConflictError):
        record(service, room, month=MARCH.replace(day=28))


def test_deleted_record_frees_the_month(service, room):
    first = record(service, room)
    service.delete_utility(first.id)

    second = record(service, room)

    assert second.id != first.id
    assert [u.id for u in service.list_utilities(room_id=room.id)] == [second.id]


def test_unknown_room_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.record_utility(
            "missing-room",
            MARCH,
            MeterReading(previous=Decimal("1"), current=Decimal("2")),
            MeterReading(previous=Decimal("1"), current=Decimal("2")),
        )


def test_missing_reading_bills_zero_usage_by_default(service, room):
    utility = record(service, room, water=MeterReading(previous=None, current=Decimal("110")))

    assert utility.water_usage == Decimal("0")
    assert utility.water_cost == Decimal("0")
    assert utility.electricity_cost == Decimal("400.00")


def test_missing_reading_is_refused_under_reject_policy(session, room, test_settings):
    strict = test_settings.model_copy(update={"UTILITY_MISSING_READING_POLICY": MissingReadingPolicy.REJECT})
    service = UtilityService(session, strict)

    with pytest.raises(ValidationError):
        record(service, room, electricity=MeterReading(previous=Decimal("1000"), current=None))

    assert service.list_utilities(room_id=room.id) == []


def test_backwards_reading_clamps_to_zero():
    usage, cost = compute_meter("water", Decimal("120"), Decimal("110"), Decimal("15"), MissingReadingPolicy.ZERO)

    assert usage == Decimal("0")
    assert cost == Decimal("0")


def test_backwards_reading_is_refused_under_reject_policy():
    with pytest.raises(ValidationError):
        compute_meter("water", Decimal("120"), Decimal("110"), Decimal("15"), MissingReadingPolicy.REJECT)


def test_update_recomputes_only_the_changed_meter(service, room):
    utility = record(service, room)

    updated = service.update_utility(utility.id, {"water_current_reading": Decimal("120")})

    assert updated.water_usage == Decimal("20.00")
    assert updated.water_cost == Decimal("300.00")
    assert updated.electricity_usage == Decimal("50.00")
    assert updated.electricity_cost == Decimal("400.00")


def test_update_rate_recomputes_cost(service, room):
    utility = record(service, room)

    updated = service.update_utility(utility.id, {"electricity_rate": Decimal("10")})

    assert updated.electricity_cost == Decimal("500.00")
    assert updated.water_cost == Decimal("150.00")


def test_update_without_reading_changes_keeps_derived_values(service, room):
    utility = record(service, room)

    updated = service.update_utility(utility.id, {"notes": "Meter photo checked"})

    assert updated.notes == "Meter photo checked"
    assert updated.water_cost == Decimal("150.00")
