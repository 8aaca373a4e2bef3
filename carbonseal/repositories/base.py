"""
Base repository.

Generic read and upsert operations for all mirror repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from carbonseal.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic mirror operations.

    Provides async database operations for any SQLAlchemy model.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class FarmRepository(BaseRepository[Farm]):
            def __init__(self, session: AsyncSession):
                super().__init__(Farm, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """
        Get entity by primary key.

        Args:
            id: Entity natural key

        Returns:
            Entity or None if not found
        """
        return await self.session.get(self.model, id)

    async def count(self, *criteria: ColumnElement[bool]) -> int:
        """
        Count entities matching criteria.

        Args:
            *criteria: WHERE clauses

        Returns:
            Count of matching entities
        """
        stmt = select(func.count()).select_from(self.model)
        if criteria:
            stmt = stmt.where(*criteria)

        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def find_paginated(
        self,
        *criteria: ColumnElement[bool],
        order_by: Any,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[ModelType], int]:
        """
        Find entities with pagination to avoid OOM.

        Args:
            *criteria: WHERE clauses
            order_by: Ordering clause (recency first)
            page: Page number (1-indexed)
            per_page: Items per page

        Returns:
            Tuple of (items, total_count)
        """
        total = await self.count(*criteria)

        offset = (page - 1) * per_page
        stmt = select(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        stmt = stmt.order_by(order_by).offset(offset).limit(per_page)

        result = await self.session.execute(stmt)
        items = list(result.scalars().all())

        return items, total

    def _insert(self):
        """
        Build a dialect-specific INSERT supporting ON CONFLICT.

        Raises:
            NotImplementedError: If the dialect has no upsert support
        """
        dialect = self.session.get_bind().dialect.name
        try:
            insert = _INSERT_BY_DIALECT[dialect]
        except KeyError:
            raise NotImplementedError(
                f"Upsert is not supported for dialect '{dialect}'"
            ) from None
        return insert(self.model)

    async def upsert(self, key: str, values: dict[str, Any]) -> None:
        """
        Insert or fully overwrite a row keyed by its natural id.

        A single statement writes the whole row, so concurrent
        writers never leave a partially updated record.

        Args:
            key: Primary key column name
            values: Complete column values
        """
        stmt = self._insert().values(**values)
        update_cols = {
            name: stmt.excluded[name] for name in values if name != key
        }
        update_cols["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(
            index_elements=[key],
            set_=update_cols,
        )
        await self.session.execute(stmt)

    async def insert_ignore(self, key: str, values: dict[str, Any]) -> bool:
        """
        Insert a row, silently skipping it if the key already exists.

        Other integrity errors (foreign keys, NOT NULL) still raise.

        Args:
            key: Primary key column name
            values: Column values

        Returns:
            True if inserted, False if the key already existed
        """
        stmt = (
            self._insert()
            .values(**values)
            .on_conflict_do_nothing(index_elements=[key])
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
