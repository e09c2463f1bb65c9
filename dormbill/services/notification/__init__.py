from dormbill.services.notification.line_messaging_client import LineMessagingClient
from dormbill.services.notification.notification_dispatcher import NotificationDispatcher

__all__ = ["LineMessagingClient", "NotificationDispatcher"]
