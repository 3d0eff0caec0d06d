"""
Error classification, logging and recovery orchestration.
"""
from .classification import ActionKind, ErrorClassifier, ErrorReport, RecoveryAction
from .config import EngineConfig, configure_logging
from .decorator import recoverable
from .engine import RecoveryEngine
from .exceptions import (
    RecoveryError,
    RecoveryStateError,
    RecoveryTimeoutError,
    StorageError,
    StrategyNotFoundError
)
from .executor import RecoveryExecutor
from .health import ErrorStats, HealthMonitor, HealthReport
from .persistence import BaseStorage, MemoryStorage, SQLAlchemyStorage
from .store import ErrorRecordStore
from .strategies import RecoveryStrategy, StrategyTable, default_strategies
from .telemetry import LoggingTelemetrySink, NullTelemetrySink, TelemetryDispatcher, TelemetrySink
from .types import (
    ComponentContext,
    DataContext,
    ErrorCategory,
    ErrorContext,
    ErrorRecord,
    NavigationContext,
    NetworkContext,
    Severity,
    StorageContext
)


__all__ = [
    # Engine
    'RecoveryEngine',
    'EngineConfig',
    'configure_logging',
    'recoverable',

    # Components
    'ErrorRecordStore',
    'StrategyTable',
    'RecoveryStrategy',
    'default_strategies',
    'RecoveryExecutor',
    'ErrorClassifier',
    'ErrorReport',
    'RecoveryAction',
    'ActionKind',
    'HealthMonitor',
    'ErrorStats',
    'HealthReport',

    # Storage
    'BaseStorage',
    'MemoryStorage',
    'SQLAlchemyStorage',

    # Telemetry
    'TelemetrySink',
    'TelemetryDispatcher',
    'LoggingTelemetrySink',
    'NullTelemetrySink',

    # Types
    'ErrorCategory',
    'Severity',
    'ErrorRecord',
    'ErrorContext',
    'NetworkContext',
    'DataContext',
    'ComponentContext',
    'NavigationContext',
    'StorageContext',

    # Exceptions
    'RecoveryError',
    'StrategyNotFoundError',
    'RecoveryTimeoutError',
    'RecoveryStateError',
    'StorageError',
]
