"""Database initialization."""
from dormbill.config.logging import get_logger
from dormbill.db.session import Database

logger = get_logger(__name__)


def init_db(database: Database) -> None:
    """Create all tables known to the model registry."""
    logger.info("Creating database tables")
    database.create_all()
    logger.info("Database tables ready")
