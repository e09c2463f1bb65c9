from dormbill.repositories.room.room_repository import RoomRepository, RoomUtilityRepository

__all__ = ["RoomRepository", "RoomUtilityRepository"]
