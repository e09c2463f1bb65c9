"""
Database models.

Importing this package registers every table with the declarative Base.
"""

from dormbill.models.billing import Bill, BillItem
from dormbill.models.notification import Notification
from dormbill.models.payment import Payment
from dormbill.models.room import Building, Room, RoomUtility
from dormbill.models.tenant import Tenant

__all__ = [
    "Bill",
    "BillItem",
    "Building",
    "Notification",
    "Payment",
    "Room",
    "RoomUtility",
    "Tenant",
]
