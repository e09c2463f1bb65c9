"""Database session management."""
from typing import Any, Dict, Generator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dormbill.config.logging import get_logger
from dormbill.config.settings import Settings, settings

logger = get_logger(__name__)


class Database:
    """
    Explicit handle around an engine and its session factory.

    Created by whoever owns the process (the FastAPI lifespan, the Celery
    worker init hook, or a test fixture) and closed by the same owner.
    """

    def __init__(self, url: str, engine_options: Optional[Dict[str, Any]] = None):
        self.url = url
        options = dict(engine_options or {})

        if url.startswith("sqlite"):
            options.setdefault("connect_args", {"check_same_thread": False})
            if ":memory:" in url or url.rstrip("/") == "sqlite:":
                options.setdefault("poolclass", StaticPool)

        self.engine: Engine = create_engine(url, **options)

        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "Database":
        return cls(config.DATABASE_URL, config.get_engine_options())

    def session(self) -> Session:
        """Open a new session; the caller is responsible for closing it."""
        return self.session_factory()

    def create_all(self) -> None:
        from dormbill.db.base import Base, import_models

        import_models()
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        from dormbill.db.base import Base, import_models

        import_models()
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        logger.info("Disposing database engine")
        self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency function that yields a database session.

    Usage in FastAPI endpoints:
        @router.get("/items/")
        def read_items(db: Session = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
