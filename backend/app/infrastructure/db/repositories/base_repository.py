"""
Base Repository for Liftx

Generic async repository over one SQLModel table.
Follows SOLID principles:
- Single Responsibility: Only handles data access logic
- Open/Closed: Extensible via inheritance
- Dependency Inversion: Depends on SQLModel abstractions

Store outages (lost connection, pool timeout) surface as
DependencyUnavailable so callers fail closed.
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Result
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.infrastructure.exceptions import DependencyUnavailable


logger = logging.getLogger(__name__)

# Type variable for generic repository
ModelType = TypeVar("ModelType", bound=SQLModel)

STORE_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, OSError)


class BaseRepository(Generic[ModelType]):
    """
    Generic async repository with shared query helpers.

    Args:
        model: The SQLModel class to operate on
        session: Async database session shared with the request
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self._model = model
        self._session = session

    @property
    def session(self) -> AsyncSession:
        """Get the current session."""
        return self._session

    @property
    def table_name(self) -> str:
        return getattr(self._model, "__tablename__", self._model.__name__)

    def insert(self):
        """
        ``INSERT`` for the session's dialect, supporting ``ON CONFLICT``.

        PostgreSQL in production; SQLite when the tests run on aiosqlite.
        """
        if self._session.bind is not None and self._session.bind.dialect.name == "sqlite":
            return sqlite_insert(self._model)
        return pg_insert(self._model)

    async def execute(self, statement: Any, operation: str) -> Result:
        """
        Execute a statement, translating store outages.

        Args:
            statement: SQLAlchemy statement
            operation: Short name used in logs and error details

        Raises:
            DependencyUnavailable: database unreachable
        """
        try:
            return await self._session.execute(statement)
        except STORE_UNAVAILABLE_ERRORS as e:
            logger.error(f"Database unavailable during {operation} on {self.table_name}: {e}")
            raise DependencyUnavailable(
                "Database is unavailable",
                operation=operation,
                table=self.table_name,
                original_error=e,
            ) from e

    async def flush(self, operation: str) -> None:
        """Flush pending changes, translating store outages."""
        try:
            await self._session.flush()
        except STORE_UNAVAILABLE_ERRORS as e:
            logger.error(f"Database unavailable during {operation} on {self.table_name}: {e}")
            raise DependencyUnavailable(
                "Database is unavailable",
                operation=operation,
                table=self.table_name,
                original_error=e,
            ) from e

    async def get_model(self, id: int) -> Optional[ModelType]:
        """
        Get a single row by its primary key.

        Returns:
            Model instance or None if not found
        """
        stmt = select(self._model).where(self._model.id == id)
        result = await self.execute(stmt, "get")
        return result.scalar_one_or_none()
