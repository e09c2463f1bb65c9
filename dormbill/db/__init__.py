from dormbill.db.base import Base
from dormbill.db.session import Database, get_db

__all__ = ["Base", "Database", "get_db"]
