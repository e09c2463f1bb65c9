"""
Utility reader: monthly water/electricity readings per room and their
derived usage and cost.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from dormbill.config.settings import MissingReadingPolicy, Settings, settings
from dormbill.core.exceptions import ConflictError, ValidationError
from dormbill.models.base import to_money
from dormbill.models.room import RoomUtility
from dormbill.repositories import RoomRepository, RoomUtilityRepository, TenantRepository
from dormbill.schemas.billing import MeterReading, UtilityRates
from dormbill.services.base import BaseService
from dormbill.utils.date_utils import month_start

ZERO = Decimal("0")

METERS = ("water", "electricity")


def compute_meter(
    meter: str,
    previous: Optional[Decimal],
    current: Optional[Decimal],
    rate: Decimal,
    policy: MissingReadingPolicy,
) -> Tuple[Decimal, Decimal]:
    """
    Usage and cost of one meter.

    usage = max(0, current - previous); cost = usage * rate. A missing
    reading (or a reading that went backwards) bills zero usage under the
    `zero` policy and is refused under `reject`.
    """
    if previous is None or current is None:
        if policy == MissingReadingPolicy.REJECT:
            raise ValidationError(
                f"Missing {meter} meter reading",
                field_errors={meter: ["previous and current readings are required"]},
            )
        return ZERO, ZERO

    if current < previous and policy == MissingReadingPolicy.REJECT:
        raise ValidationError(
            f"{meter.capitalize()} current reading is lower than the previous reading",
            field_errors={meter: ["current reading must be >= previous reading"]},
        )

    usage = max(ZERO, Decimal(current) - Decimal(previous))
    return to_money(usage), to_money(usage * Decimal(rate))


class UtilityService(BaseService):
    """Records and maintains RoomUtility snapshots."""

    def __init__(self, db_session: Session, config: Settings = settings):
        super().__init__(db_session)
        self.config = config
        self.rooms = RoomRepository(db_session)
        self.tenants = TenantRepository(db_session)
        self.utilities = RoomUtilityRepository(db_session)

    def record_utility(
        self,
        room_id: str,
        month: date,
        water: MeterReading,
        electricity: MeterReading,
        rates: Optional[UtilityRates] = None,
        tenant_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> RoomUtility:
        """
        Record a room's readings for a month.

        Raises:
            NotFoundError: room (or given tenant) missing
            ConflictError: a live record exists for (room, month)
            ValidationError: readings refused by the missing-reading policy
        """
        rates = rates or UtilityRates()
        record_month = month_start(month)

        self.rooms.get_by_id(room_id)
        if tenant_id:
            self.tenants.get_by_id(tenant_id)

        if self.utilities.find_for_month(room_id, record_month):
            raise ConflictError(
                "Utility record for this room and month already exists",
                details={"room_id": room_id, "record_month": record_month.isoformat()},
            )

        water_rate = to_money(rates.water_rate if rates.water_rate is not None else self.config.DEFAULT_WATER_RATE)
        electricity_rate = to_money(
            rates.electricity_rate if rates.electricity_rate is not None else self.config.DEFAULT_ELECTRICITY_RATE
        )
        policy = self.config.UTILITY_MISSING_READING_POLICY
        water_usage, water_cost = compute_meter("water", water.previous, water.current, water_rate, policy)
        electricity_usage, electricity_cost = compute_meter(
            "electricity", electricity.previous, electricity.current, electricity_rate, policy
        )

        utility = RoomUtility(
            room_id=room_id,
            tenant_id=tenant_id,
            record_month=record_month,
            water_previous_reading=water.previous,
            water_current_reading=water.current,
            water_usage=water_usage,
            water_rate=water_rate,
            water_cost=water_cost,
            electricity_previous_reading=electricity.previous,
            electricity_current_reading=electricity.current,
            electricity_usage=electricity_usage,
            electricity_rate=electricity_rate,
            electricity_cost=electricity_cost,
            notes=notes,
        )

        with self.transaction():
            self.utilities.add(utility)

        self._logger.info(
            f"Recorded utilities for room {room_id} ({record_month:%Y-%m})",
            extra={"tenant_id": tenant_id},
        )
        return utility

    def update_utility(self, utility_id: str, changes: Dict[str, Any]) -> RoomUtility:
        """
        Apply changes; a meter's usage and cost are recomputed only when one
        of its readings or its rate actually changed.
        """
        utility = self.utilities.get_by_id(utility_id)
        if changes.get("tenant_id"):
            self.tenants.get_by_id(changes["tenant_id"])

        changed_meters = set()
        for meter in METERS:
            for suffix in ("previous_reading", "current_reading", "rate"):
                key = f"{meter}_{suffix}"
                if key in changes and changes[key] != getattr(utility, key):
                    changed_meters.add(meter)

        with self.transaction():
            for key, value in changes.items():
                if hasattr(utility, key):
                    setattr(utility, key, value)

            for meter in changed_meters:
                usage, cost = compute_meter(
                    meter,
                    getattr(utility, f"{meter}_previous_reading"),
                    getattr(utility, f"{meter}_current_reading"),
                    getattr(utility, f"{meter}_rate"),
                    self.config.UTILITY_MISSING_READING_POLICY,
                )
                setattr(utility, f"{meter}_usage", usage)
                setattr(utility, f"{meter}_cost", cost)

            self.utilities.update(utility, {})

        if changed_meters:
            self._logger.info(f"Recomputed {', '.join(sorted(changed_meters))} for utility {utility_id}")
        return utility

    def get_utility(self, utility_id: str) -> RoomUtility:
        return self.utilities.get_by_id(utility_id)

    def list_utilities(
        self,
        room_id: Optional[str] = None,
        month: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[RoomUtility]:
        return self.utilities.search(
            room_id=room_id,
            record_month=month_start(month) if month else None,
            skip=skip,
            limit=limit,
        )

    def delete_utility(self, utility_id: str) -> RoomUtility:
        utility = self.utilities.get_by_id(utility_id)
        with self.transaction():
            self.utilities.soft_delete(utility)
        self._logger.info(f"Deleted utility record {utility_id}")
        return utility
