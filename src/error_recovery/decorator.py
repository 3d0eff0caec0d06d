"""Decorator routing a coroutine function through a recovery engine.
"""
import dataclasses
import functools
import inspect
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar, cast

from .types import ErrorCategory, ErrorContext

if TYPE_CHECKING:
    from .engine import RecoveryEngine

F = TypeVar('F', bound=Callable[..., Any])


def recoverable(
    engine: 'RecoveryEngine',
    category: ErrorCategory | str = ErrorCategory.UNKNOWN,
    context: ErrorContext | None = None,
    attempt_timeout: float | None = None,
    deadline: float | None = None
) -> Callable[[F], F]:
    """Decorator to run an async function under ``engine``'s recovery policy.

    Args:
        engine: Engine whose strategy table, store and telemetry are used
        category: Category selecting the strategy (default: unknown)
        context: Metadata attached to every record (default: function name)
        attempt_timeout: Seconds allowed per attempt
        deadline: Seconds allowed for the whole call

    Returns:
        Decorated coroutine function

    """
    category = ErrorCategory.coerce(category)

    def decorator(func: F) -> F:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"@recoverable requires an async function, got {func!r}")

        func_name = f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            call_context = context or ErrorContext()
            if call_context.operation is None:
                call_context = dataclasses.replace(call_context, operation=func_name)

            async def attempt() -> Any:
                return await func(*args, **kwargs)

            return await engine.execute_with_recovery(
                category,
                attempt,
                call_context,
                attempt_timeout=attempt_timeout,
                deadline=deadline
            )

        return cast(F, async_wrapper)

    return decorator
