"""
Notification dispatcher.

Turns a (tenant, notification type, context) job into a LINE push and an
audit record. Every delivery attempt with a linked LINE identity ends in
exactly one Notification row, `sent` or `failed`.
"""

from datetime import date
from typing import Any, Dict, Optional, Tuple, Union

from sqlalchemy.orm import Session

from dormbill.config.settings import Settings, settings
from dormbill.core.exceptions import NotFoundError, ValidationError
from dormbill.models.base.enums import BillItemType, NotificationStatus, NotificationType
from dormbill.models.notification import Notification
from dormbill.repositories import BillRepository, NotificationRepository, TenantRepository
from dormbill.schemas.notification import DispatchResult
from dormbill.services.base import BaseService
from dormbill.services.notification import flex_messages
from dormbill.services.notification.line_messaging_client import LineMessagingClient
from dormbill.utils.date_utils import days_overdue, now_utc, today_in


class NotificationDispatcher(BaseService):
    """Delivers tenant notifications over LINE and records the outcome."""

    def __init__(
        self,
        db_session: Session,
        line_client: Optional[LineMessagingClient] = None,
        config: Settings = settings,
    ):
        super().__init__(db_session)
        self.config = config
        self.line_client = line_client or LineMessagingClient.from_settings(config)
        self.tenants = TenantRepository(db_session)
        self.bills = BillRepository(db_session)
        self.notifications = NotificationRepository(db_session)

    def dispatch(
        self,
        tenant_id: str,
        notification_type: Union[NotificationType, str],
        context: Optional[Dict[str, Any]] = None,
        today: Optional[date] = None,
    ) -> DispatchResult:
        """
        Send one notification.

        A tenant without a LINE identity yields `success=False` and no
        record. Any failure after that point writes a `failed` record and
        re-raises so the job layer can retry.
        """
        context = dict(context or {})
        notification_type = self._coerce_type(notification_type)

        tenant = self.tenants.find_by_id(tenant_id)
        if tenant is None or not tenant.line_user_id:
            self._logger.warning(
                f"Cannot send notification: tenant {tenant_id} has no linked LINE user",
                extra={"tenant_id": tenant_id},
            )
            return DispatchResult(success=False, reason="Tenant has no linked LINE user")

        try:
            alt_text, contents = self._build_message(notification_type, context, today)
            message_id = self.line_client.push_flex(tenant.line_user_id, alt_text, contents)
        except Exception as e:
            self._logger.error(
                f"Failed to send {notification_type.value} notification: {e}",
                extra={"tenant_id": tenant_id, "bill_id": context.get("bill_id")},
            )
            self._record_failure(tenant_id, notification_type, context, e)
            raise

        with self.transaction():
            notification = self.notifications.add(
                Notification(
                    tenant_id=tenant.id,
                    notification_type=notification_type,
                    title=alt_text,
                    message=context.get("message") or f"Notification sent to {tenant.full_name}",
                    status=NotificationStatus.SENT,
                    sent_at=now_utc(),
                    data={**context, "flex_message": contents},
                )
            )

        self._logger.info(
            "Notification sent successfully",
            extra={"tenant_id": tenant.id, "bill_id": context.get("bill_id")},
        )
        return DispatchResult(
            success=True,
            message_id=message_id or notification.id,
            notification_id=notification.id,
        )

    # -------------------------------------------------------------------------
    # Message building
    # -------------------------------------------------------------------------

    def _build_message(
        self,
        notification_type: NotificationType,
        context: Dict[str, Any],
        today: Optional[date],
    ) -> Tuple[str, Dict[str, Any]]:
        if notification_type.is_bill_related:
            return self._build_bill_message(notification_type, context, today)

        if notification_type.is_maintenance_related:
            return "Maintenance request update", flex_messages.maintenance_update(
                context.get("request_id"),
                context.get("title"),
                context.get("status"),
            )

        title = context.get("title") or "Dormitory notice"
        return title, flex_messages.text_bubble(title, context.get("message") or "")

    def _build_bill_message(
        self,
        notification_type: NotificationType,
        context: Dict[str, Any],
        today: Optional[date],
    ) -> Tuple[str, Dict[str, Any]]:
        bill_id = context.get("bill_id")
        if not bill_id:
            raise ValidationError(
                "bill_id is required for bill notifications",
                field_errors={"bill_id": ["required"]},
            )
        bill = self.bills.find_with_details(bill_id)
        if bill is None:
            raise NotFoundError("Bill", bill_id)

        currency = self.config.CURRENCY
        if notification_type == NotificationType.BILL_OVERDUE:
            overdue_days = days_overdue(bill.due_date, today or today_in(self.config.TIMEZONE))
            context.update(days_overdue=overdue_days, remaining_amount=str(bill.remaining_amount))
            return "Overdue bill", flex_messages.bill_overdue(
                bill_id=bill.id,
                bill_number=bill.bill_number,
                remaining_amount=bill.remaining_amount,
                days_overdue=overdue_days,
                due_date=bill.due_date,
                currency=currency,
            )

        title = "Bill due soon" if notification_type == NotificationType.BILL_DUE else "New monthly bill"
        return title, flex_messages.bill_notification(
            bill_id=bill.id,
            billing_month=bill.billing_month,
            room_number=bill.room.room_number if bill.room else "N/A",
            rent_amount=bill.amount_for(BillItemType.RENT),
            water_amount=bill.amount_for(BillItemType.WATER),
            electricity_amount=bill.amount_for(BillItemType.ELECTRICITY),
            total_amount=bill.total_amount,
            due_date=bill.due_date,
            currency=currency,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _coerce_type(notification_type: Union[NotificationType, str]) -> NotificationType:
        try:
            return NotificationType(notification_type)
        except ValueError as e:
            raise ValidationError(
                f"Unknown notification type: {notification_type}",
                field_errors={"notification_type": ["unknown notification type"]},
            ) from e

    def _record_failure(
        self,
        tenant_id: str,
        notification_type: NotificationType,
        context: Dict[str, Any],
        error: Exception,
    ) -> None:
        with self.transaction():
            self.notifications.add(
                Notification(
                    tenant_id=tenant_id,
                    notification_type=notification_type,
                    title="Notification Failed",
                    message=str(error),
                    status=NotificationStatus.FAILED,
                    data=context,
                    error=str(error),
                )
            )
