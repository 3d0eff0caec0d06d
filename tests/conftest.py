"""
Shared fixtures for recovery engine tests.
"""
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from error_recovery import (
    EngineConfig,
    ErrorCategory,
    ErrorClassifier,
    ErrorRecord,
    ErrorRecordStore,
    MemoryStorage,
    RecoveryEngine,
    RecoveryExecutor,
    StrategyTable,
    TelemetryDispatcher,
)


class RecordingSleep:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class RecordingSink:
    """Telemetry sink that keeps every event."""

    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    async def emit(self, event: str, params: dict) -> None:
        self.events.append((event, params))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


class FlakyOperation:
    """Fails with the given errors in order, then returns ``result``."""

    def __init__(self, errors: list[Exception], result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def make_record(
    category: ErrorCategory = ErrorCategory.NETWORK,
    age: timedelta = timedelta(0),
    resolved: bool = False,
    index: int = 0,
    now: datetime | None = None
) -> ErrorRecord:
    now = now or datetime.now(timezone.utc)
    return ErrorRecord(
        id=f"error_test_{category.value}_{index}",
        category=category,
        message=f"failure {index}",
        timestamp=now - age,
        resolved=resolved,
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return ErrorRecordStore(storage)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def executor(storage, store, sleep, sink):
    return RecoveryExecutor(
        StrategyTable(storage),
        store,
        ErrorClassifier(),
        telemetry=TelemetryDispatcher(sink),
        sleep=sleep
    )


@pytest_asyncio.fixture
async def engine(storage, sleep, sink):
    engine = RecoveryEngine(
        EngineConfig(use_memory_storage=True),
        storage=storage,
        telemetry_sink=sink,
        sleep=sleep
    )
    await engine.start()
    yield engine
    await engine.close()


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def flaky():
    return FlakyOperation
