"""
Size-bounded, persisted log of classified failures.
"""
import asyncio
import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from .exceptions import RecoveryStateError
from .persistence.base import BaseStorage
from .types import ErrorCategory, ErrorRecord

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100
DEFAULT_STORAGE_KEY = "error_recovery:error_logs"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorRecordStore:
    """Newest-first record log mirrored to one storage key.

    Every mutation rewrites the whole list under ``storage_key``. Mutations
    hold a single lock so concurrent invocations never lose each other's
    writes. Storage failures are logged and never reach the caller.

    Duplicate ids are rejected among the live records only. Generated ids
    combine a millisecond timestamp with a random suffix, so an evicted id
    does not come back in practice.
    """

    def __init__(
        self,
        storage: BaseStorage,
        capacity: int = DEFAULT_CAPACITY,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Callable[[], datetime] = _utcnow
    ):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.storage = storage
        self.capacity = capacity
        self.storage_key = storage_key
        self._clock = clock
        self._records: list[ErrorRecord] = []
        self._ids: set[str] = set()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    async def load(self) -> None:
        """Read persisted records, starting empty on absence or corruption."""
        async with self._lock:
            self._records = await self._read()
            self._ids = {record.id for record in self._records}
        logger.info(f"Loaded {len(self._records)} error records from storage")

    async def _read(self) -> list[ErrorRecord]:
        try:
            raw = await self.storage.get(self.storage_key)
        except Exception as e:
            logger.error(f"Failed to read error records: {e}")
            return []

        if not raw:
            return []

        try:
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise ValueError(f"expected a list, got {type(payload).__name__}")
            records = [ErrorRecord.from_dict(item) for item in payload]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.error(f"Discarding corrupted error records: {e}")
            return []

        return records[:self.capacity]

    async def _persist(self) -> None:
        """Write the full list. Caller holds the lock."""
        try:
            payload = json.dumps([record.to_dict() for record in self._records])
            await self.storage.set(self.storage_key, payload)
        except Exception as e:
            logger.error(f"Failed to save error records: {e}")

    async def append(self, record: ErrorRecord) -> None:
        """Insert ``record`` as newest, evicting the oldest past capacity.

        Raises:
            RecoveryStateError: Duplicate id, or the record cannot be serialised

        """
        try:
            json.dumps(record.to_dict())
        except (TypeError, ValueError, AttributeError) as e:
            raise RecoveryStateError(f"Error record {record.id} cannot be serialised: {e}", record.id) from e

        async with self._lock:
            if record.id in self._ids:
                raise RecoveryStateError(f"Duplicate error record id: {record.id}", record.id)
            self._ids.add(record.id)
            self._records.insert(0, record)
            evicted = self._records[self.capacity:]
            if evicted:
                del self._records[self.capacity:]
                self._ids.difference_update(r.id for r in evicted)
                logger.debug(f"Evicted {len(evicted)} oldest error records")
            await self._persist()

    async def mark_resolved(
        self,
        category: ErrorCategory,
        retry_count: int,
        limit: int = 5
    ) -> list[ErrorRecord]:
        """Flip up to ``limit`` newest unresolved records of ``category``."""
        async with self._lock:
            resolved = [
                record for record in self._records
                if record.category == category and not record.resolved
            ][:limit]
            for record in resolved:
                record.mark_resolved(retry_count)
            if resolved:
                await self._persist()
        return resolved

    async def purge_older_than(self, duration: timedelta | float) -> int:
        """Remove records older than ``duration``; returns the count removed."""
        if not isinstance(duration, timedelta):
            duration = timedelta(seconds=duration)
        now = self._clock()

        async with self._lock:
            kept = [record for record in self._records if now - record.timestamp <= duration]
            removed_count = len(self._records) - len(kept)
            self._records = kept
            self._ids = {record.id for record in kept}
            await self._persist()

        logger.info(f"Cleared {removed_count} old error records")
        return removed_count

    async def clear(self) -> None:
        async with self._lock:
            self._records = []
            self._ids = set()
            await self._persist()

    def list(self, limit: int | None = None) -> list[ErrorRecord]:
        """Newest-first copy of the records, optionally capped."""
        if limit is None:
            return list(self._records)
        return self._records[:max(limit, 0)]
