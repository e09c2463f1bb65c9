"""
Base repository with standardized CRUD operations and error handling.

Repositories never commit: the calling service owns the transaction. For
soft-deletable models every read filters out deleted rows unless the
caller explicitly asks for them.
"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from dormbill.config.logging import get_logger
from dormbill.core.exceptions import ConflictError, NotFoundError, RepositoryError
from dormbill.models.base import BaseModel, SoftDeleteMixin

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository over one model class bound to one session.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db
        self._is_soft_delete = issubclass(model, SoftDeleteMixin)

    # ==================== Query Building ====================

    def _select(self, include_deleted: bool = False) -> Select:
        """Base statement with the soft delete filter applied."""
        stmt = select(self.model)
        if self._is_soft_delete and not include_deleted:
            stmt = stmt.where(self.model.is_deleted.is_(False))
        return stmt

    def _scalars(self, stmt: Select) -> List[ModelType]:
        try:
            return list(self.db.scalars(stmt).unique().all())
        except SQLAlchemyError as e:
            raise RepositoryError(f"Query on {self.model.__name__} failed: {str(e)}") from e

    def _scalar(self, stmt: Select) -> Optional[ModelType]:
        try:
            return self.db.scalars(stmt).unique().first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Query on {self.model.__name__} failed: {str(e)}") from e

    # ==================== Create Operations ====================

    def add(self, entity: ModelType) -> ModelType:
        """
        Stage a new entity and flush it so defaults and ids are populated.

        Raises:
            ConflictError: If a unique constraint rejects the row
        """
        try:
            self.db.add(entity)
            self.db.flush()
            logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
            return entity
        except IntegrityError as e:
            raise ConflictError(
                f"{self.model.__name__} already exists",
                details={"constraint": str(e.orig)},
            ) from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Create failed: {str(e)}") from e

    # ==================== Read Operations ====================

    def find_by_id(self, id: str, include_deleted: bool = False) -> Optional[ModelType]:
        """
        Find entity by ID.

        Args:
            id: Entity ID
            include_deleted: Include soft-deleted entities

        Returns:
            Entity or None
        """
        return self._scalar(self._select(include_deleted).where(self.model.id == id))

    def get_by_id(self, id: str, include_deleted: bool = False) -> ModelType:
        """
        Get entity by ID or raise exception.

        Raises:
            NotFoundError: If entity not found
        """
        entity = self.find_by_id(id, include_deleted)
        if entity is None:
            raise NotFoundError(self.model.__name__, id)
        return entity

    def find_by_criteria(
        self,
        criteria: Dict[str, Any],
        skip: int = 0,
        limit: Optional[int] = 100,
        order_by: Optional[List[str]] = None,
        include_deleted: bool = False
    ) -> List[ModelType]:
        """
        Find entities matching criteria.

        Args:
            criteria: Filter criteria as key-value pairs; None values are ignored
            skip: Number of records to skip
            limit: Maximum number of records (None for no limit)
            order_by: List of fields to order by (prefix with - for desc)
            include_deleted: Include soft-deleted entities
        """
        stmt = self._select(include_deleted)

        for key, value in criteria.items():
            if value is None or not hasattr(self.model, key):
                continue
            column = getattr(self.model, key)
            if isinstance(value, (list, tuple, set)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)

        for field in order_by or []:
            if field.startswith('-'):
                stmt = stmt.order_by(getattr(self.model, field[1:]).desc())
            else:
                stmt = stmt.order_by(getattr(self.model, field))

        if skip:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return self._scalars(stmt)

    def count(self, criteria: Optional[Dict[str, Any]] = None, include_deleted: bool = False) -> int:
        stmt = select(func.count()).select_from(self.model)
        if self._is_soft_delete and not include_deleted:
            stmt = stmt.where(self.model.is_deleted.is_(False))
        for key, value in (criteria or {}).items():
            if value is not None and hasattr(self.model, key):
                stmt = stmt.where(getattr(self.model, key) == value)
        try:
            return int(self.db.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Count failed: {str(e)}") from e

    # ==================== Update Operations ====================

    def update(self, entity: ModelType, data: Dict[str, Any]) -> ModelType:
        """Apply a dict of changes to a loaded entity and flush."""
        for key, value in data.items():
            if hasattr(entity, key):
                setattr(entity, key, value)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"{self.model.__name__} update violates a unique constraint",
                details={"constraint": str(e.orig)},
            ) from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Update failed: {str(e)}") from e
        return entity

    # ==================== Delete Operations ====================

    def soft_delete(self, entity: ModelType) -> ModelType:
        """Mark an entity deleted; hard deletes are not offered."""
        if not self._is_soft_delete:
            raise RepositoryError(f"{self.model.__name__} does not support soft delete")
        entity.mark_deleted()
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Soft delete failed: {str(e)}") from e
        logger.debug(f"Soft deleted {self.model.__name__} with id: {entity.id}")
        return entity
