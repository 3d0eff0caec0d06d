"""Repository pattern implementation for key-value persistence."""
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import KeyValueModel

logger = logging.getLogger(__name__)


class KeyValueRepository:
    """Repository for key-value rows.

    Wraps one async session; every write commits or rolls back before
    returning.
    """

    def __init__(self, session: AsyncSession):
        """Initialize with async database session."""
        self.session = session

    async def get_value(self, key: str) -> str | None:
        """Load the value stored under ``key``."""
        try:
            stmt = select(KeyValueModel.value).where(KeyValueModel.key == key)
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

        except Exception as e:
            logger.error(f"Failed to load storage key {key}: {e}")
            raise

    async def set_value(self, key: str, value: str) -> None:
        """Insert or overwrite the value stored under ``key``."""
        try:
            existing = await self.session.get(KeyValueModel, key)
            if existing:
                existing.value = value
            else:
                self.session.add(KeyValueModel(key=key, value=value))

            await self.session.commit()
            logger.debug(f"Saved storage key {key} ({len(value)} bytes)")

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to save storage key {key}: {e}")
            raise

    async def delete_value(self, key: str) -> None:
        """Delete the row for ``key``."""
        try:
            await self.session.execute(
                delete(KeyValueModel).where(KeyValueModel.key == key)
            )
            await self.session.commit()

        except Exception as e:
            await self.session.rollback()
            logger.error(f"Failed to delete storage key {key}: {e}")
            raise

    async def list_keys(self) -> list[str]:
        """List all keys, oldest write first."""
        result = await self.session.execute(
            select(KeyValueModel.key).order_by(KeyValueModel.updated_at)
        )
        return list(result.scalars().all())
