"""
Base service classes and utilities for async database operations.

This module provides common read and pagination helpers and the partial
update routine shared by every CRUD service.
"""

import logging
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.core.exceptions import ValidationError
from app.db.base_class import Base
from app.services.async_error_handler import AsyncErrorHandler

# Type variables for generic base service
ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class AsyncBaseService(Generic[ModelType]):
    """
    Base async service class providing lookups and partial updates.

    Concrete services either subclass it or use ``AsyncQueryUtils`` directly
    when their queries need role scoping.
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: Any, options: Sequence = ()) -> Optional[ModelType]:
        """
        Get a single record by ID.

        Args:
            db: Async database session
            id: Primary key value
            options: Loader options such as ``selectinload(...)``

        Returns:
            Model instance or None if not found
        """
        try:
            stmt = select(self.model).where(self.model.id == id)
            if options:
                stmt = stmt.options(*options).execution_options(populate_existing=True)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise AsyncErrorHandler.handle_error(e, f"get {self.model.__name__}") from e

    async def count(self, db: AsyncSession, *criteria) -> int:
        """Count records matching the given where-criteria."""
        stmt = select(func.count(self.model.id))
        if criteria:
            stmt = stmt.where(*criteria)
        result = await db.execute(stmt)
        return result.scalar() or 0


class AsyncQueryUtils:
    """
    Utility class providing common async query patterns and helpers.
    """

    @staticmethod
    async def paginate(
        db: AsyncSession,
        stmt: Select,
        page: int,
        limit: int,
    ) -> Tuple[List[Any], int]:
        """
        Run a select for one page and count the full result set.

        Args:
            db: Async database session
            stmt: Select producing ORM entities, already filtered and ordered
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (items on the page, total matching rows)
        """
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await db.execute(count_stmt)).scalar() or 0

        result = await db.execute(stmt.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().unique().all()), total

    @staticmethod
    def reject_nulls(model: Type[Base], changes: Dict[str, Any]) -> None:
        """Raise ValidationError when a NOT NULL column is explicitly set to null."""
        columns = {attr.key: attr.columns[0] for attr in inspect(model).column_attrs}
        for field, value in changes.items():
            column = columns.get(field)
            if value is None and column is not None and not column.nullable:
                raise ValidationError(f"{field} cannot be null")

    @staticmethod
    def apply_updates(
        obj: Any,
        data: BaseModel,
        exclude: Iterable[str] = (),
    ) -> Dict[str, Any]:
        """
        Copy only the fields the caller actually sent onto a model instance.

        Returns:
            The applied field values
        """
        changes = data.model_dump(exclude_unset=True, exclude=set(exclude))
        AsyncQueryUtils.reject_nulls(type(obj), changes)
        for field, value in changes.items():
            if hasattr(obj, field):
                setattr(obj, field, value)
        return changes
