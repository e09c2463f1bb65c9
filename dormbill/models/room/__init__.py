from dormbill.models.room.room import Building, Room
from dormbill.models.room.room_utility import RoomUtility

__all__ = ["Building", "Room", "RoomUtility"]
