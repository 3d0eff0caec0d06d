"""
Recovery strategy: retry budget, backoff and fallback for one category.
"""
from collections.abc import Callable

from ..types import ErrorCategory, FallbackAction

RetryPredicate = Callable[[BaseException, int], bool]


class RecoveryStrategy:
    """
    Retry policy bound to an error category.

    Delay grows linearly with the attempt number:
    delay = base_delay * (attempt + 1)
    """

    def __init__(
        self,
        category: ErrorCategory,
        max_retries: int = 3,
        base_delay: float = 1.0,
        should_retry: RetryPredicate | None = None,
        fallback_action: FallbackAction | None = None,
        name: str | None = None
    ):
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        if base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {base_delay}")
        self.category = category
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.retry_predicate = should_retry
        self.fallback_action = fallback_action
        self._name = name

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay before the attempt following ``attempt``.

        Args:
            attempt: Attempt that just failed (0-indexed)

        Returns:
            Delay in seconds
        """
        return self.base_delay * (attempt + 1)

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        """
        Determine if the operation should run again after ``attempt`` failed.

        The retry budget is a hard ceiling; the predicate can only narrow it.
        """
        if attempt >= self.max_retries:
            return False
        if self.retry_predicate is None:
            return True
        return bool(self.retry_predicate(error, attempt))

    def bind(self, category: ErrorCategory) -> 'RecoveryStrategy':
        """Copy of this strategy registered under ``category``."""
        return RecoveryStrategy(
            category=category,
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            should_retry=self.retry_predicate,
            fallback_action=self.fallback_action,
            name=self._name
        )

    @property
    def name(self) -> str:
        return self._name or f"LinearBackoff(category={self.category.value}, base={self.base_delay})"

    def __repr__(self) -> str:
        return (
            f"<RecoveryStrategy(category='{self.category.value}', "
            f"max_retries={self.max_retries}, base_delay={self.base_delay})>"
        )
