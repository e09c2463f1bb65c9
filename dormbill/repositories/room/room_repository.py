"""
Room and room utility repositories.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from dormbill.models.room import Room, RoomUtility
from dormbill.repositories.base import BaseRepository


class RoomRepository(BaseRepository[Room]):
    def __init__(self, db: Session):
        super().__init__(Room, db)


class RoomUtilityRepository(BaseRepository[RoomUtility]):
    def __init__(self, db: Session):
        super().__init__(RoomUtility, db)

    def find_for_month(self, room_id: str, record_month: date) -> Optional[RoomUtility]:
        """The live snapshot of a room for a normalized month, if any."""
        stmt = self._select().where(
            RoomUtility.room_id == room_id,
            RoomUtility.record_month == record_month,
        )
        return self._scalar(stmt)

    def search(
        self,
        room_id: Optional[str] = None,
        record_month: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[RoomUtility]:
        return self.find_by_criteria(
            {"room_id": room_id, "record_month": record_month},
            skip=skip,
            limit=limit,
            order_by=["-record_month", "room_id"],
        )
