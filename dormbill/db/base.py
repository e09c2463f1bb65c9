"""SQLAlchemy Base class for all models."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def import_models() -> None:
    """Import all models so they are registered with Base.metadata."""
    from dormbill.models import (  # noqa: F401
        Bill,
        BillItem,
        Building,
        Notification,
        Payment,
        Room,
        RoomUtility,
        Tenant,
    )
