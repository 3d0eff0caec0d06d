"""
Exceptions for the recovery engine.
"""
from .types import ErrorCategory


class RecoveryError(Exception):
    """Base exception for the recovery engine."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN):
        super().__init__(message)
        self.category = category


class StrategyNotFoundError(RecoveryError):
    """Raised when no strategy is registered for a category."""

    def __init__(self, category: ErrorCategory):
        super().__init__(f"No recovery strategy registered for category: {category.value}", category)


class RecoveryTimeoutError(RecoveryError):
    """Raised when a single attempt exceeds its time budget."""

    def __init__(self, message: str, timeout: float, category: ErrorCategory = ErrorCategory.UNKNOWN):
        super().__init__(message, category)
        self.timeout = timeout


class RecoveryStateError(RecoveryError):
    """Raised when there's an issue with the record store state."""

    def __init__(self, message: str, record_id: str):
        super().__init__(message)
        self.record_id = record_id


class StorageError(RecoveryError):
    """Raised by storage backends when a read or write fails."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message, ErrorCategory.STORAGE)
        self.key = key
