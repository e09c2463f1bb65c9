"""
Base service class providing common functionality for all services.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy.orm import Session

from dormbill.config.logging import get_logger
from dormbill.core.background_tasks import JobQueue
from dormbill.core.exceptions import BaseAppException


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Transaction management utilities
    - Best-effort job enqueueing after commit
    """

    def __init__(self, db_session: Session, job_queue: Optional[JobQueue] = None):
        """
        Initialize base service.

        Args:
            db_session: SQLAlchemy database session
            job_queue: Queue used for follow-up jobs (notifications)
        """
        self.db: Session = db_session
        self.job_queue = job_queue
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions with automatic rollback.

        Example:
            with self.transaction():
                self.bills.add(bill)
                # automatic commit on success, rollback on exception
        """
        try:
            yield self.db
            self._commit()
        except BaseAppException as e:
            self._rollback()
            self._logger.debug(f"Transaction rolled back: {e}")
            raise
        except Exception as e:
            self._rollback()
            self._logger.error(f"Transaction failed: {e}", exc_info=True)
            raise

    def _commit(self) -> None:
        """Commit the current transaction with error handling."""
        try:
            self.db.commit()
            self._logger.debug("Transaction committed successfully")
        except Exception as e:
            self._logger.error(f"Commit failed: {e}", exc_info=True)
            self._rollback()
            raise

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except Exception as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Follow-up jobs
    # -------------------------------------------------------------------------

    def _enqueue_after_commit(self, job_name: str, payload: Dict[str, Any]) -> Optional[str]:
        """
        Enqueue a follow-up job once the financial change is committed.

        Enqueue failures are logged and never propagated: the committed
        change stays the source of truth.
        """
        if self.job_queue is None:
            self._logger.debug(f"No job queue configured, skipping {job_name}")
            return None
        try:
            job_id = self.job_queue.enqueue(job_name, payload)
            self._logger.info(
                f"Enqueued {job_name}",
                extra={"job_id": job_id, "tenant_id": payload.get("tenant_id")},
            )
            return job_id
        except Exception as e:
            self._logger.error(
                f"Failed to enqueue {job_name}: {e}",
                exc_info=True,
                extra={"tenant_id": payload.get("tenant_id")},
            )
            return None
