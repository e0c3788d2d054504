"""
Base repository for async PostgreSQL access.
"""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from math import ceil
from typing import Any, AsyncIterator, Generic, Optional, Protocol, Sequence, Type, TypeVar

import asyncpg
from pydantic import BaseModel

from arbitrage_hub.errors import NotFoundError, PersistError
from arbitrage_hub.storage.database import TRANSIENT_ERRORS
from arbitrage_hub.storage.identifiers import parse_record_id

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class AsyncDatabase(Protocol):
    """Protocol for async database connections."""

    async def fetch(self, query: str, *args: Any) -> Sequence[dict[str, Any]]:
        """Fetch multiple rows."""
        ...

    async def fetchrow(self, query: str, *args: Any) -> Optional[dict[str, Any]]:
        """Fetch a single row."""
        ...

    async def fetchval(self, query: str, *args: Any) -> Any:
        """Fetch a single value."""
        ...

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query."""
        ...


@dataclass
class PaginatedResult(Generic[T]):
    """One page of a listing plus the total matching the same filter."""

    items: list[T]
    total: int
    page: int
    per_page: int

    @property
    def total_pages(self) -> int:
        return max(1, ceil(self.total / self.per_page))


def now_ts() -> float:
    """Current time as float unix seconds."""
    return time.time()


def page_offset(page: int, per_page: int, max_per_page: int) -> int:
    """Validate 1-indexed pagination and return the row offset.

    Raises:
        ValueError: If page < 1 or per_page outside [1, max_per_page]
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if per_page < 1 or per_page > max_per_page:
        raise ValueError(f"per_page must be between 1 and {max_per_page}, got {per_page}")
    return (page - 1) * per_page


def like_pattern(term: str) -> str:
    """Substring ILIKE pattern with LIKE wildcards in the term escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class BaseRepository(Generic[M]):
    """
    Base class for async repositories.

    Subclasses define the table name, the model type and a human-readable
    entity name used in error messages.
    """

    table_name: str
    model_class: Type[M]
    entity_name: str = "Record"

    def __init__(self, db: AsyncDatabase) -> None:
        self.db = db

    def _record_to_model(self, record: Optional[dict[str, Any]]) -> Optional[M]:
        if record is None:
            return None
        return self.model_class(**dict(record))

    def _records_to_models(self, records: Sequence[dict[str, Any]]) -> list[M]:
        return [self._record_to_model(r) for r in records]

    @asynccontextmanager
    async def _persisting(self, action: str) -> AsyncIterator[None]:
        """Translate store failures into PersistError."""
        try:
            yield
        except (asyncpg.PostgresError, *TRANSIENT_ERRORS) as e:
            logger.error(f"Failed to {action} {self.entity_name.lower()}: {e}")
            raise PersistError(str(e)) from e

    async def get(self, record_id: str) -> M:
        """Get a record by id.

        Raises:
            InvalidReferenceError: If the id is malformed
            NotFoundError: If no record has this id
        """
        record_id = parse_record_id(record_id)
        query = f"SELECT * FROM {self.table_name} WHERE id = $1"
        async with self._persisting("fetch"):
            record = await self.db.fetchrow(query, record_id)
        if record is None:
            raise NotFoundError(f"{self.entity_name} not found")
        return self._record_to_model(record)

    async def exists(self, record_id: str) -> bool:
        query = f"SELECT 1 FROM {self.table_name} WHERE id = $1"
        async with self._persisting("check"):
            result = await self.db.fetchval(query, parse_record_id(record_id))
        return result is not None

    async def delete(self, record_id: str) -> bool:
        """Delete a record by id. Returns True if a row was deleted."""
        query = f"DELETE FROM {self.table_name} WHERE id = $1"
        async with self._persisting("delete"):
            result = await self.db.execute(query, parse_record_id(record_id))
        return result != "DELETE 0"
