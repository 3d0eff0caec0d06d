"""
Fire-and-forget telemetry for classified errors and recoveries.
"""
import asyncio
import logging
from typing import Any, Protocol

from .types import ErrorRecord

logger = logging.getLogger(__name__)

ERROR_EVENT = "app_error"
RECOVERY_SUCCESS_EVENT = "error_recovery_success"
CRITICAL_ERROR_EVENT = "critical_error"


class TelemetrySink(Protocol):
    """Protocol for telemetry sinks."""

    async def emit(self, event: str, params: dict[str, Any]) -> None:
        """Deliver one named event."""
        ...


class NullTelemetrySink:
    """Discards every event."""

    async def emit(self, event: str, params: dict[str, Any]) -> None:
        pass


class LoggingTelemetrySink:
    """Writes events to a logger. Default sink when none is injected."""

    def __init__(self, logger_name: str = "error_recovery.events"):
        self._logger = logging.getLogger(logger_name)

    async def emit(self, event: str, params: dict[str, Any]) -> None:
        self._logger.info(f"Event tracked: {event} {params}")


class TelemetryDispatcher:
    """Schedules sink calls without letting them affect the caller.

    Each event runs as a background task. Sink failures are logged and
    dropped. ``drain()`` waits for pending deliveries.
    """

    def __init__(self, sink: TelemetrySink | None = None):
        self.sink = sink or LoggingTelemetrySink()
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def emit(self, event: str, params: dict[str, Any]) -> None:
        try:
            task = asyncio.get_running_loop().create_task(self._deliver(event, params))
        except Exception as e:
            logger.error(f"Error scheduling telemetry event {event}: {e}")
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, event: str, params: dict[str, Any]) -> None:
        try:
            await self.sink.emit(event, params)
        except Exception as e:
            logger.error(f"Error tracking event {event}: {e}")

    def error_logged(self, record: ErrorRecord) -> None:
        self.emit(ERROR_EVENT, {
            "category": record.category.value,
            "message": record.message,
            "id": record.id,
            "retry_count": record.retry_count,
            "error_type": record.error_type,
        })

    def critical_error(self, record: ErrorRecord) -> None:
        self.emit(CRITICAL_ERROR_EVENT, {
            "category": record.category.value,
            "message": record.message,
            "id": record.id,
            "error_type": record.error_type,
        })

    def recovery_succeeded(self, record_category: str, retry_count: int, resolved_count: int) -> None:
        self.emit(RECOVERY_SUCCESS_EVENT, {
            "category": record_category,
            "retry_count": retry_count,
            "resolved_count": resolved_count,
        })

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
