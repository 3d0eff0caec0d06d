"""
Base implementation for key-value persistence.
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable


logger = logging.getLogger(__name__)


class BaseStorage(ABC):
    """Base class for key-value storage backends.

    Values are opaque strings; callers serialise before writing.
    """

    def __init__(self):
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize the storage backend."""
        if not self._initialized:
            await self._setup()
            self._initialized = True

    @abstractmethod
    async def _setup(self) -> None:
        """Setup the storage backend. Override in subclasses."""
        pass

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under ``key`` or None."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Overwrite the value stored under ``key``."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """List all stored keys."""
        pass

    async def delete_matching(self, predicate: Callable[[str], bool]) -> int:
        """
        Delete every key accepted by ``predicate``.

        Args:
            predicate: Called with each key; truthy means delete

        Returns:
            Number of keys deleted
        """
        deleted_count = 0
        for key in await self.keys():
            if not predicate(key):
                continue
            try:
                await self.delete(key)
                deleted_count += 1
            except Exception as e:
                logger.error(f"Error deleting storage key {key}: {e}")

        logger.info(f"Deleted {deleted_count} matching storage keys")
        return deleted_count

    async def close(self) -> None:
        """Release backend resources."""
        pass
