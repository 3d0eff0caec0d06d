"""
Composition root wiring storage, store, strategies, classifier and monitor.
"""
import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from .classification import ErrorClassifier, ErrorReport
from .config import EngineConfig
from .executor import ReportHandler, RecoveryExecutor
from .health import ErrorStats, HealthMonitor, HealthReport
from .persistence import BaseStorage, MemoryStorage, SQLAlchemyStorage
from .store import ErrorRecordStore
from .strategies import RecoveryStrategy, StrategyTable
from .telemetry import TelemetryDispatcher, TelemetrySink
from .types import ErrorCategory, ErrorContext, ErrorRecord, Operation, T

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecoveryEngine:
    """One engine per process, owned by the application's composition root.

    Build it once, ``await engine.start()`` to load persisted records, pass it
    to callers, and ``await engine.close()`` on shutdown.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        storage: BaseStorage | None = None,
        telemetry_sink: TelemetrySink | None = None,
        report_handler: ReportHandler | None = None,
        clock: Callable[[], datetime] = _utcnow,
        **executor_options
    ):
        self.config = (config or EngineConfig()).validate()
        self.storage = storage or self._create_storage()

        self.store = ErrorRecordStore(
            self.storage,
            capacity=self.config.max_records,
            storage_key=self.config.storage_key,
            clock=clock
        )
        self.strategies = StrategyTable(self.storage)
        self.classifier = ErrorClassifier(self.config.silent_categories, clock=clock)
        self.telemetry = TelemetryDispatcher(telemetry_sink)
        self.executor = RecoveryExecutor(
            self.strategies,
            self.store,
            self.classifier,
            telemetry=self.telemetry,
            resolve_limit=self.config.resolve_limit,
            attempt_timeout=self.config.attempt_timeout,
            deadline=self.config.deadline,
            report_handler=report_handler,
            **executor_options
        )
        self.monitor = HealthMonitor(
            self.store,
            rate_window=timedelta(seconds=self.config.rate_window),
            rate_threshold=self.config.rate_threshold,
            unresolved_threshold=self.config.unresolved_threshold,
            dominance_ratio=self.config.dominance_ratio,
            recent_limit=self.config.recent_limit,
            classifier=self.classifier,
            clock=clock
        )
        self._started = False

    def _create_storage(self) -> BaseStorage:
        if self.config.use_memory_storage:
            return MemoryStorage()
        return SQLAlchemyStorage(self.config.database_url)

    async def start(self) -> 'RecoveryEngine':
        if not self._started:
            await self.store.load()
            self._started = True
            logger.info(f"Recovery engine started with {len(self.store)} stored errors")
        return self

    async def close(self) -> None:
        await self.telemetry.drain()
        await self.storage.close()
        self._started = False

    async def __aenter__(self) -> 'RecoveryEngine':
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def execute_with_recovery(
        self,
        category: ErrorCategory | str,
        operation: Operation[T],
        context: ErrorContext | Mapping[str, Any] | None = None,
        **options
    ) -> T:
        """Sole entry point for callers; see ``RecoveryExecutor``."""
        return await self.executor.execute_with_recovery(category, operation, context, **options)

    def register_strategy(self, category: ErrorCategory | str, strategy: RecoveryStrategy) -> None:
        self.strategies.register(category, strategy)

    def register_error_handler(self, category: ErrorCategory | str, handler: ReportHandler) -> None:
        """Replace the handler called with every terminal report of ``category``."""
        self.executor.register_handler(category, handler)

    def unregister_error_handler(self, category: ErrorCategory | str) -> None:
        self.executor.unregister_handler(category)

    async def log_error(
        self,
        category: ErrorCategory | str,
        error: BaseException,
        context: ErrorContext | Mapping[str, Any] | None = None
    ) -> ErrorRecord:
        """Record a failure that happened outside ``execute_with_recovery``.

        Raises:
            TypeError: ``context`` is neither an ErrorContext nor a mapping
            RecoveryStateError: The record cannot be stored

        """
        category = ErrorCategory.coerce(category)
        record = self.classifier.classify(error, category, context)
        await self.store.append(record)
        self.telemetry.error_logged(record)
        await self.executor.notify(record, error)
        return record

    def report(self, record: ErrorRecord) -> ErrorReport:
        return self.classifier.report(record)

    def errors(self, limit: int | None = None) -> list[ErrorRecord]:
        return self.store.list(limit)

    async def purge_older_than(self, duration: timedelta | float) -> int:
        return await self.store.purge_older_than(duration)

    def stats(self) -> ErrorStats:
        return self.monitor.stats()

    def health_check(self) -> HealthReport:
        return self.monitor.health_check()
