"""
Notification repository.
"""

from sqlalchemy.orm import Session

from dormbill.models.notification import Notification
from dormbill.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session):
        super().__init__(Notification, db)
