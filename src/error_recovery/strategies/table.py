"""Category to strategy mapping."""
import logging

from ..exceptions import StrategyNotFoundError
from ..persistence.base import BaseStorage
from ..types import ErrorCategory
from .base import RecoveryStrategy
from .builtin import default_strategies

logger = logging.getLogger(__name__)


class StrategyTable:
    """Holds exactly one active strategy per category.

    Built-in defaults are registered at construction, so every lookup
    succeeds unless the table was built with ``defaults=False``.
    """

    def __init__(self, storage: BaseStorage | None = None, defaults: bool = True):
        self._storage = storage
        self._strategies: dict[ErrorCategory, RecoveryStrategy] = (
            default_strategies(storage) if defaults else {}
        )

    def register(self, category: ErrorCategory | str, strategy: RecoveryStrategy) -> None:
        """Replace the strategy for ``category`` (last write wins)."""
        category = ErrorCategory.coerce(category)
        if strategy.category != category:
            strategy = strategy.bind(category)
        if category in self._strategies:
            logger.debug(f"Replacing recovery strategy for {category.value}")
        self._strategies[category] = strategy

    def get(self, category: ErrorCategory | str) -> RecoveryStrategy:
        category = ErrorCategory.coerce(category)
        try:
            return self._strategies[category]
        except KeyError:
            raise StrategyNotFoundError(category) from None

    def reset(self, category: ErrorCategory | str) -> None:
        """Restore the built-in strategy for ``category``."""
        category = ErrorCategory.coerce(category)
        self._strategies[category] = default_strategies(self._storage)[category]

    def categories(self) -> list[ErrorCategory]:
        return list(self._strategies)

    def __contains__(self, category: object) -> bool:
        try:
            return ErrorCategory.coerce(category) in self._strategies
        except ValueError:
            return False
