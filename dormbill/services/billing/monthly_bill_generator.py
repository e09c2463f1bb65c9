"""
Monthly bill generator.

Creates one bill per active tenant for a billing month. Re-running for the
same month is safe: tenants that already have a bill are skipped.
"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from dormbill.config.settings import Settings, settings
from dormbill.core.background_tasks import JobQueue
from dormbill.core.exceptions import BaseAppException
from dormbill.models.billing import Bill
from dormbill.models.tenant import Tenant
from dormbill.schemas.billing import GenerationError, GenerationResult, RateOverrides
from dormbill.services.billing.bill_composer import BillComposer, compose_lines
from dormbill.utils.date_utils import default_due_date, month_end, month_start


class MonthlyBillGenerator(BillComposer):
    """Batch and single-tenant bill generation on top of the composer."""

    def __init__(
        self,
        db_session: Session,
        job_queue: Optional[JobQueue] = None,
        config: Settings = settings,
    ):
        super().__init__(db_session, job_queue, config)

    def generate_monthly_bills(
        self,
        billing_month: date,
        due_date: Optional[date] = None,
        overrides: Optional[RateOverrides] = None,
        created_by: Optional[str] = None,
    ) -> GenerationResult:
        """
        Generate bills for every active tenant who moved in by the end of
        the month. One tenant's failure is logged and does not stop the batch.
        """
        billing_month = month_start(billing_month)
        due_date = due_date or default_due_date(billing_month, self.config.DEFAULT_DUE_DAY_OF_NEXT_MONTH)
        result = GenerationResult()

        tenants = self.tenants.find_billable_for_month(month_end(billing_month))
        self._logger.info(f"Generating bills for {billing_month:%Y-%m}: {len(tenants)} candidate tenants")

        for tenant in tenants:
            if self.bills.find_for_month(tenant.id, billing_month):
                result.skipped_count += 1
                continue

            try:
                bill = self._create_for_tenant(tenant, billing_month, due_date, overrides, created_by)
            except Exception as e:
                self._logger.error(
                    f"Failed to create bill for tenant {tenant.id}: {e}",
                    exc_info=not isinstance(e, BaseAppException),
                    extra={"tenant_id": tenant.id},
                )
                result.errors.append(GenerationError(tenant_id=tenant.id, error=str(e)))
                continue

            result.created_count += 1
            result.bill_ids.append(bill.id)
            self.notify_bill_created(bill)

        self._logger.info(
            f"Generated bills for {billing_month:%Y-%m}: created={result.created_count} "
            f"skipped={result.skipped_count} failed={len(result.errors)}"
        )
        return result

    def generate_bill_for_tenant(
        self,
        tenant_id: str,
        billing_month: date,
        due_date: Optional[date] = None,
    ) -> Optional[Bill]:
        """
        Single-tenant generation used by the generate-bill job.

        Returns the existing bill when one is already there, and None when
        the tenant is inactive, deleted or has no room.
        """
        billing_month = month_start(billing_month)
        due_date = due_date or default_due_date(billing_month, self.config.DEFAULT_DUE_DAY_OF_NEXT_MONTH)

        tenant = self.tenants.find_by_id(tenant_id)
        if tenant is None or not tenant.is_billable or not tenant.room_id:
            self._logger.warning(
                f"Tenant {tenant_id} is not billable, skipping",
                extra={"tenant_id": tenant_id},
            )
            return None

        existing = self.bills.find_for_month(tenant.id, billing_month)
        if existing is not None:
            self._logger.info(
                f"Bill already exists for tenant {tenant_id} ({billing_month:%Y-%m})",
                extra={"tenant_id": tenant_id, "bill_id": existing.id},
            )
            return existing

        bill = self._create_for_tenant(tenant, billing_month, due_date)
        self.notify_bill_created(bill)
        return bill

    def _create_for_tenant(
        self,
        tenant: Tenant,
        billing_month: date,
        due_date: date,
        overrides: Optional[RateOverrides] = None,
        created_by: Optional[str] = None,
    ) -> Bill:
        room = self.rooms.get_by_id(tenant.room_id)
        utility = self.utilities.find_for_month(room.id, billing_month)
        lines = compose_lines((), room, utility, overrides)

        with self.transaction():
            bill = self.persist_bill(
                tenant=tenant,
                room=room,
                billing_month=billing_month,
                due_date=due_date,
                lines=lines,
                utility=utility,
                created_by=created_by,
            )

        self._logger.info(
            f"Bill created: {bill.bill_number}",
            extra={"bill_id": bill.id, "tenant_id": tenant.id},
        )
        return bill
