"""SQLAlchemy-based key-value storage."""
import asyncio
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ..exceptions import StorageError
from .base import BaseStorage
from .repository import KeyValueRepository

DEFAULT_DATA_DIR = Path.home() / ".error-recovery" / "data"


def default_database_url() -> str:
    """SQLite file in the user data directory."""
    DEFAULT_DATA_DIR.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{DEFAULT_DATA_DIR / 'errors.db'}"


class SQLAlchemyStorage(BaseStorage):
    """SQLAlchemy-based key-value storage."""

    def __init__(self, database_url: str | None = None):
        """Initialize SQLAlchemy storage.

        Args:
            database_url: SQLAlchemy async database URL. Defaults to SQLite in user data dir.

        """
        super().__init__()
        self.database_url = database_url or default_database_url()
        self.engine = create_async_engine(
            self.database_url,
            echo=False,
            pool_pre_ping=True,
        )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )
        self._init_lock = asyncio.Lock()

    async def _setup(self) -> None:
        """Create tables if they don't exist."""
        from .models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return
            try:
                await self.initialize()
            except Exception as e:
                raise StorageError(f"Failed to initialize storage at {self.database_url}: {e}") from e

    async def get(self, key: str) -> str | None:
        await self._ensure_initialized()

        async with self.session_factory() as session:
            repository = KeyValueRepository(session)
            return await repository.get_value(key)

    async def set(self, key: str, value: str) -> None:
        await self._ensure_initialized()

        async with self.session_factory() as session:
            repository = KeyValueRepository(session)
            await repository.set_value(key, value)

    async def delete(self, key: str) -> None:
        await self._ensure_initialized()

        async with self.session_factory() as session:
            repository = KeyValueRepository(session)
            await repository.delete_value(key)

    async def keys(self) -> list[str]:
        await self._ensure_initialized()

        async with self.session_factory() as session:
            repository = KeyValueRepository(session)
            return await repository.list_keys()

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()
