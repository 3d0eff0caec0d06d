"""
Built-in strategies registered for every category at table construction.
"""
import logging

from ..persistence.base import BaseStorage
from ..types import ErrorCategory
from .base import RecoveryStrategy

logger = logging.getLogger(__name__)

TRANSIENT_NETWORK_MARKERS = ('timeout', 'network', 'fetch')


def _message(error: BaseException) -> str:
    return str(error).lower()


def network_should_retry(error: BaseException, attempt: int) -> bool:
    return attempt < 3 and any(marker in _message(error) for marker in TRANSIENT_NETWORK_MARKERS)


def data_should_retry(error: BaseException, attempt: int) -> bool:
    return attempt < 2 and 'parse' not in _message(error)


def component_should_retry(error: BaseException, attempt: int) -> bool:
    # Component failures go straight to the fallback view
    return False


def navigation_should_retry(error: BaseException, attempt: int) -> bool:
    return attempt < 2


def storage_should_retry(error: BaseException, attempt: int) -> bool:
    return attempt < 3 and 'quota' not in _message(error)


def unknown_should_retry(error: BaseException, attempt: int) -> bool:
    return attempt < 1


def is_stale_cache_key(key: str) -> bool:
    return 'cache_' in key and '_old' in key


async def _use_cached_data() -> None:
    logger.info("Using cached data as fallback")


async def _reload_local_data() -> None:
    logger.info("Reloading data from local storage")


async def _show_fallback_component() -> None:
    logger.info("Showing fallback component")


async def _navigate_home() -> None:
    logger.info("Navigating to home screen")


def _prune_stale_cache(storage: BaseStorage | None):
    async def prune() -> None:
        if storage is None:
            logger.info("No storage backend wired; skipping stale cache cleanup")
            return
        removed = await storage.delete_matching(is_stale_cache_key)
        logger.info(f"Cleared {removed} old cache entries")

    return prune


def default_strategies(storage: BaseStorage | None = None) -> dict[ErrorCategory, RecoveryStrategy]:
    """Build a fresh set of built-in strategies.

    Args:
        storage: Backend the storage fallback prunes stale cache keys from

    """
    return {
        ErrorCategory.NETWORK: RecoveryStrategy(
            category=ErrorCategory.NETWORK,
            max_retries=3,
            base_delay=1.0,
            should_retry=network_should_retry,
            fallback_action=_use_cached_data
        ),
        ErrorCategory.DATA: RecoveryStrategy(
            category=ErrorCategory.DATA,
            max_retries=2,
            base_delay=0.5,
            should_retry=data_should_retry,
            fallback_action=_reload_local_data
        ),
        ErrorCategory.COMPONENT: RecoveryStrategy(
            category=ErrorCategory.COMPONENT,
            max_retries=1,
            base_delay=0.0,
            should_retry=component_should_retry,
            fallback_action=_show_fallback_component
        ),
        ErrorCategory.NAVIGATION: RecoveryStrategy(
            category=ErrorCategory.NAVIGATION,
            max_retries=2,
            base_delay=0.1,
            should_retry=navigation_should_retry,
            fallback_action=_navigate_home
        ),
        ErrorCategory.STORAGE: RecoveryStrategy(
            category=ErrorCategory.STORAGE,
            max_retries=3,
            base_delay=0.2,
            should_retry=storage_should_retry,
            fallback_action=_prune_stale_cache(storage)
        ),
        ErrorCategory.UNKNOWN: RecoveryStrategy(
            category=ErrorCategory.UNKNOWN,
            max_retries=1,
            base_delay=0.5,
            should_retry=unknown_should_retry
        ),
    }
