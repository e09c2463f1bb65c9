from dormbill.models.notification.notification import Notification

__all__ = ["Notification"]
