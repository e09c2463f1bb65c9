"""
Liveness and database readiness.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dormbill import __version__
from dormbill.api import deps
from dormbill.config.logging import get_logger
from dormbill.utils.date_utils import now_utc

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


@router.get("/health")
def health_check(db: Session = Depends(deps.get_db)):
    database = "ok"
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database = "unavailable"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "version": __version__,
        "timestamp": now_utc().isoformat(),
    }
