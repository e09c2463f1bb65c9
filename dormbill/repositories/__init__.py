"""
Data access layer.
"""

from dormbill.repositories.base import BaseRepository
from dormbill.repositories.billing import BillRepository
from dormbill.repositories.notification import NotificationRepository
from dormbill.repositories.payment import PaymentRepository
from dormbill.repositories.room import RoomRepository, RoomUtilityRepository
from dormbill.repositories.tenant import TenantRepository

__all__ = [
    "BaseRepository",
    "BillRepository",
    "NotificationRepository",
    "PaymentRepository",
    "RoomRepository",
    "RoomUtilityRepository",
    "TenantRepository",
]
