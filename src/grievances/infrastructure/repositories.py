"""
Grievance Infrastructure Repositories
=====================================

Concrete implementations of the grievance store.

- InMemoryGrievanceStore: instance-owned dict, always available
- SQLAlchemyGrievanceStore: external key-value table
- FallbackGrievanceStore: primary store with transparent in-memory fallback
"""

import threading
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core import RepositoryException
from src.grievances.application import IGrievanceStore
from src.grievances.domain import Grievance
from src.grievances.infrastructure.models import GrievanceModel
from src.infrastructure.database import session_scope
from src.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


class InMemoryGrievanceStore(IGrievanceStore):
    """
    Process-local grievance store.

    Records are copied on the way in and out so callers never share
    mutable state with the store. All access goes through one lock.
    """

    def __init__(self):
        self._records: Dict[str, Grievance] = {}
        self._lock = threading.Lock()

    async def put(self, grievance: Grievance) -> None:
        with self._lock:
            self._records[grievance.grievance_id] = grievance.copy()

    async def get(self, grievance_id: str) -> Optional[Grievance]:
        with self._lock:
            record = self._records.get(grievance_id)
        return record.copy() if record else None

    async def scan(self) -> List[Grievance]:
        with self._lock:
            records = list(self._records.values())
        return [record.copy() for record in records]

    async def delete(self, grievance_id: str) -> bool:
        with self._lock:
            return self._records.pop(grievance_id, None) is not None

    async def find_by_ticket_number(self, ticket_number: str) -> Optional[Grievance]:
        with self._lock:
            record = next(
                (g for g in self._records.values() if g.ticket_number == ticket_number),
                None
            )
        return record.copy() if record else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class SQLAlchemyGrievanceStore(IGrievanceStore):
    """
    Grievance table accessed through SQLAlchemy's async ORM.

    Each call is a single-item operation in its own unit of work. Driver
    and SQL errors surface as RepositoryException.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with session_scope(self._session_maker) as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            raise RepositoryException(
                f"Grievance table {operation} failed: {e}",
                {"operation": operation}
            ) from e

    async def put(self, grievance: Grievance) -> None:
        async with self._session("put") as session:
            await session.merge(GrievanceModel.from_domain(grievance))

    async def get(self, grievance_id: str) -> Optional[Grievance]:
        async with self._session("get") as session:
            model = await session.get(GrievanceModel, grievance_id)
            return model.to_domain() if model else None

    async def scan(self) -> List[Grievance]:
        with log_latency(logger, "grievance_table_scan"):
            async with self._session("scan") as session:
                stmt = select(GrievanceModel).order_by(GrievanceModel.created_at)
                result = await session.execute(stmt)
                return [model.to_domain() for model in result.scalars().all()]

    async def delete(self, grievance_id: str) -> bool:
        async with self._session("delete") as session:
            stmt = delete(GrievanceModel).where(GrievanceModel.grievance_id == grievance_id)
            result = await session.execute(stmt)
            return result.rowcount > 0

    async def find_by_ticket_number(self, ticket_number: str) -> Optional[Grievance]:
        async with self._session("find_by_ticket_number") as session:
            stmt = select(GrievanceModel).where(GrievanceModel.ticket_number == ticket_number).limit(1)
            result = await session.execute(stmt)
            model = result.scalars().first()
            return model.to_domain() if model else None


class StorageSource(str, Enum):
    """Which backend served a store operation."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class StoreResult:
    """Value returned by a store operation, tagged with the backend that produced it."""
    value: Any
    source: StorageSource

    @property
    def degraded(self) -> bool:
        return self.source == StorageSource.FALLBACK


class FallbackGrievanceStore(IGrievanceStore):
    """
    Primary store with transparent fallback to an in-memory store.

    Any failure of the primary is logged, counted and replayed against the
    fallback; callers never see the backend error. Records accepted by the
    fallback during an outage stay visible: reads and scans prefer the
    fallback copy of a record, and a later successful primary write evicts
    the fallback copy.
    """

    def __init__(
        self,
        primary: IGrievanceStore,
        fallback: Optional[InMemoryGrievanceStore] = None
    ):
        self._primary = primary
        self._fallback = fallback or InMemoryGrievanceStore()
        self._fallback_events = 0
        self._last_source = StorageSource.PRIMARY

    @property
    def fallback(self) -> InMemoryGrievanceStore:
        return self._fallback

    @property
    def fallback_events(self) -> int:
        """Number of operations served by the fallback since startup."""
        return self._fallback_events

    @property
    def last_source(self) -> StorageSource:
        return self._last_source

    async def _attempt(
        self,
        operation: str,
        primary_call: Callable[[], Awaitable[Any]],
        fallback_call: Callable[[], Awaitable[Any]],
    ) -> StoreResult:
        try:
            result = StoreResult(await primary_call(), StorageSource.PRIMARY)
        except Exception as e:
            self._fallback_events += 1
            logger.warning(
                "Primary grievance store failed, using in-memory fallback",
                extra={
                    "operation": operation,
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "fallback_events": self._fallback_events,
                }
            )
            result = StoreResult(await fallback_call(), StorageSource.FALLBACK)

        self._last_source = result.source
        return result

    async def put(self, grievance: Grievance) -> None:
        result = await self._attempt(
            "put",
            lambda: self._primary.put(grievance),
            lambda: self._fallback.put(grievance),
        )
        if not result.degraded:
            await self._fallback.delete(grievance.grievance_id)

    async def get(self, grievance_id: str) -> Optional[Grievance]:
        result = await self._attempt(
            "get",
            lambda: self._primary.get(grievance_id),
            lambda: self._fallback.get(grievance_id),
        )
        if result.degraded:
            return result.value
        # A copy written during a failed primary write is newer
        pending = await self._fallback.get(grievance_id)
        return pending if pending is not None else result.value

    async def scan(self) -> List[Grievance]:
        result = await self._attempt("scan", self._primary.scan, self._fallback.scan)
        if result.degraded:
            return result.value

        merged = {g.grievance_id: g for g in result.value}
        for grievance in await self._fallback.scan():
            merged[grievance.grievance_id] = grievance
        return sorted(merged.values(), key=lambda g: g.created_at)

    async def delete(self, grievance_id: str) -> bool:
        result = await self._attempt(
            "delete",
            lambda: self._primary.delete(grievance_id),
            lambda: self._fallback.delete(grievance_id),
        )
        if result.degraded:
            return result.value
        removed_from_fallback = await self._fallback.delete(grievance_id)
        return result.value or removed_from_fallback

    async def find_by_ticket_number(self, ticket_number: str) -> Optional[Grievance]:
        result = await self._attempt(
            "find_by_ticket_number",
            lambda: self._primary.find_by_ticket_number(ticket_number),
            lambda: self._fallback.find_by_ticket_number(ticket_number),
        )
        if result.degraded:
            return result.value
        pending = await self._fallback.find_by_ticket_number(ticket_number)
        return pending if pending is not None else result.value
