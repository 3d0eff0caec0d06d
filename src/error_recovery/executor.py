"""Recovery executor: runs an operation under its category's strategy.
"""
import asyncio
import dataclasses
import inspect
import logging
import time
import traceback
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .classification import SEVERITY_LOG_LEVELS, ErrorClassifier, ErrorReport
from .exceptions import RecoveryTimeoutError
from .store import ErrorRecordStore
from .strategies import RecoveryStrategy, StrategyTable
from .telemetry import TelemetryDispatcher
from .types import ErrorCategory, ErrorContext, ErrorRecord, Operation, Severity, T

logger = logging.getLogger(__name__)

DEFAULT_RESOLVE_LIMIT = 5

ReportHandler = Callable[[ErrorReport], Awaitable[None] | None]


def _operation_name(operation: Callable[..., Any]) -> str:
    name = getattr(operation, '__qualname__', None) or getattr(operation, '__name__', None)
    return name or type(operation).__name__


async def _invoke(operation: Operation[T]) -> T:
    result = operation()
    if inspect.isawaitable(result):
        return await result
    return result


class RecoveryExecutor:
    """Retry / backoff / fallback state machine.

    Attempts of one invocation run strictly one after another. Every failed
    attempt is classified and appended to the store before the retry
    decision. When the budget is spent the fallback runs once and the last
    operation error is re-raised.
    """

    def __init__(
        self,
        table: StrategyTable,
        store: ErrorRecordStore,
        classifier: ErrorClassifier,
        telemetry: TelemetryDispatcher | None = None,
        resolve_limit: int = DEFAULT_RESOLVE_LIMIT,
        attempt_timeout: float | None = None,
        deadline: float | None = None,
        report_handler: ReportHandler | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        self.table = table
        self.store = store
        self.classifier = classifier
        self.telemetry = telemetry or TelemetryDispatcher()
        self.resolve_limit = resolve_limit
        self.attempt_timeout = attempt_timeout
        self.deadline = deadline
        self.report_handler = report_handler
        self._handlers: dict[ErrorCategory, ReportHandler] = {}
        self._sleep = sleep
        self._clock = clock

    def register_handler(self, category: ErrorCategory | str, handler: ReportHandler) -> None:
        """Set the handler receiving every terminal report of ``category``."""
        self._handlers[ErrorCategory.coerce(category)] = handler

    def unregister_handler(self, category: ErrorCategory | str) -> None:
        self._handlers.pop(ErrorCategory.coerce(category), None)

    async def execute_with_recovery(
        self,
        category: ErrorCategory | str,
        operation: Operation[T],
        context: ErrorContext | Mapping[str, Any] | None = None,
        *,
        attempt_timeout: float | None = None,
        deadline: float | None = None
    ) -> T:
        """Run ``operation`` with retries, fallback and error recording.

        Args:
            category: Category whose strategy governs the retries
            operation: Zero-argument coroutine function
            context: Caller metadata attached to every record
            attempt_timeout: Seconds allowed per attempt (default: engine setting)
            deadline: Seconds allowed for the whole invocation (default: engine setting)

        Returns:
            The operation's result

        Raises:
            StrategyNotFoundError: No strategy for ``category``
            TypeError: ``context`` is neither an ErrorContext nor a mapping
            Exception: The last operation error once retries are exhausted

        """
        category = ErrorCategory.coerce(category)
        context = ErrorContext.coerce(context)
        strategy = self.table.get(category)
        attempt_timeout = attempt_timeout if attempt_timeout is not None else self.attempt_timeout
        deadline = deadline if deadline is not None else self.deadline
        op_name = _operation_name(operation)
        started = self._clock()

        attempt = 0
        last_error: Exception | None = None
        last_record: ErrorRecord | None = None

        while True:
            timeout = self._attempt_budget(attempt_timeout, deadline, started)
            try:
                logger.info(
                    f"Attempting {op_name} [{category.value}] "
                    f"(attempt {attempt + 1}/{strategy.max_retries + 1})"
                )
                result = await self._run_attempt(operation, timeout, category)

            except Exception as e:
                last_error = e
                logger.error(f"Error in {op_name} [{category.value}]: {e}")
                logger.debug(f"Traceback: {traceback.format_exc()}")

                last_record = await self._record_failure(e, category, context, attempt, op_name)

                if not self._should_retry(strategy, e, attempt):
                    break

                delay = strategy.calculate_delay(attempt)
                if deadline is not None and self._clock() - started + delay >= deadline:
                    logger.warning(
                        f"Deadline of {deadline}s leaves no room to retry {op_name} after {delay}s"
                    )
                    break

                logger.info(f"Retrying {op_name} after {delay}s delay ({strategy.name})")
                if delay > 0:
                    await self._sleep(delay)
                attempt += 1
                continue

            if attempt > 0:
                await self._mark_recovered(category, attempt)
                logger.info(f"Successfully executed {op_name} after {attempt + 1} attempts")
            return result

        await self._run_fallback(strategy, category)
        if last_record is not None:
            try:
                await self.notify(last_record, last_error)
            except Exception as e:
                logger.error(f"Failed to report {category.value} error {last_record.id}: {e}")
        raise last_error

    def _should_retry(self, strategy: RecoveryStrategy, error: Exception, attempt: int) -> bool:
        """Evaluate the retry predicate; a failing predicate means no retry."""
        try:
            return strategy.should_retry(error, attempt)
        except Exception as e:
            logger.error(f"Retry predicate of {strategy.name} failed: {e}")
            logger.debug(f"Traceback: {traceback.format_exc()}")
            return False

    def _attempt_budget(
        self,
        attempt_timeout: float | None,
        deadline: float | None,
        started: float
    ) -> float | None:
        if deadline is None:
            return attempt_timeout
        remaining = max(deadline - (self._clock() - started), 0.0)
        if attempt_timeout is None:
            return remaining
        return min(attempt_timeout, remaining)

    async def _run_attempt(
        self,
        operation: Operation[T],
        timeout: float | None,
        category: ErrorCategory
    ) -> T:
        """Execute one attempt with an optional timeout."""
        if timeout is None:
            return await _invoke(operation)

        task = asyncio.ensure_future(_invoke(operation))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if not done:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise RecoveryTimeoutError(f"Attempt exceeded timeout of {timeout}s", timeout, category)
        return task.result()

    async def _record_failure(
        self,
        error: Exception,
        category: ErrorCategory,
        context: ErrorContext | None,
        attempt: int,
        op_name: str
    ) -> ErrorRecord | None:
        try:
            context = dataclasses.replace(
                context or ErrorContext(),
                attempt=attempt,
                operation=(context.operation if context else None) or op_name
            )
            record = self.classifier.classify(error, category, context)
            await self.store.append(record)
        except Exception as e:
            logger.error(f"Failed to record {category.value} error: {e}")
            return None

        self.telemetry.error_logged(record)
        return record

    async def _mark_recovered(self, category: ErrorCategory, attempt: int) -> None:
        try:
            resolved = await self.store.mark_resolved(category, attempt, self.resolve_limit)
        except Exception as e:
            logger.error(f"Failed to mark {category.value} errors resolved: {e}")
            return
        self.telemetry.recovery_succeeded(category.value, attempt, len(resolved))

    async def _run_fallback(self, strategy: RecoveryStrategy, category: ErrorCategory) -> None:
        if strategy.fallback_action is None:
            return
        try:
            await strategy.fallback_action()
            logger.info(f"Fallback action executed for {category.value}")
        except Exception as e:
            logger.error(f"Fallback action failed for {category.value}: {e}")

    async def notify(self, record: ErrorRecord, error: BaseException | None = None) -> ErrorReport:
        """Log, escalate and dispatch one terminal failure.

        The category handler sees every report of its category. The report
        handler only sees reports that should reach a human.
        """
        report = self.classifier.report(record, error)
        logger.log(
            SEVERITY_LOG_LEVELS[report.severity],
            f"[{record.category.value.upper()}] {record.message}"
        )

        if report.severity == Severity.CRITICAL:
            logger.critical(f"Critical error {record.id}: {record.message}")
            self.telemetry.critical_error(record)

        await self._dispatch(self._handlers.get(record.category), report, "Error handler")

        if report.surface:
            await self._dispatch(self.report_handler, report, "Report handler")
        else:
            logger.debug(f"Suppressed {record.category.value} error {record.id}")
        return report

    async def _dispatch(self, handler: ReportHandler | None, report: ErrorReport, label: str) -> None:
        if handler is None:
            return
        try:
            result = handler(report)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"{label} failed for {report.record.id}: {e}")
