"""In-memory implementation of key-value storage."""
import asyncio

from .base import BaseStorage


class MemoryStorage(BaseStorage):
    """In-memory implementation of key-value storage.

    Useful for testing and scenarios where persistence across restarts
    is not required.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        super().__init__()
        self._storage: dict[str, str] = dict(initial or {})
        self._lock = asyncio.Lock()

    async def _setup(self) -> None:
        """No setup needed for memory storage."""
        pass

    async def get(self, key: str) -> str | None:
        async with self._lock:
            return self._storage.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            self._storage[key] = value

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._storage.pop(key, None)

    async def keys(self) -> list[str]:
        async with self._lock:
            return list(self._storage)

    async def clear(self) -> None:
        """Clear all stored data. Useful for testing."""
        async with self._lock:
            self._storage.clear()
