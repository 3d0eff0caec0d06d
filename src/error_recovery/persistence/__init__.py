"""Key-value storage backends for the record store."""
from .base import BaseStorage
from .memory import MemoryStorage
from .sqlalchemy_storage import SQLAlchemyStorage, default_database_url

__all__ = [
    'BaseStorage',
    'MemoryStorage',
    'SQLAlchemyStorage',
    'default_database_url',
]
