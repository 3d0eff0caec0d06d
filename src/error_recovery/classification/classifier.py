"""Error classifier and reporter."""
import logging
import traceback
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..types import ErrorCategory, ErrorContext, ErrorRecord, NetworkContext, Severity, generate_record_id
from .messages import SUGGESTED_ACTIONS, USER_MESSAGES, RecoveryAction

logger = logging.getLogger(__name__)

# Medium-severity failures in these categories still reach the user
SURFACED_MEDIUM_CATEGORIES = frozenset({
    ErrorCategory.NETWORK,
    ErrorCategory.DATA,
    ErrorCategory.NAVIGATION,
})

CRITICAL_ERROR_TYPES = (MemoryError, SystemError)

SEVERITY_LOG_LEVELS = {
    Severity.CRITICAL: logging.ERROR,
    Severity.HIGH: logging.ERROR,
    Severity.MEDIUM: logging.WARNING,
    Severity.LOW: logging.INFO,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ErrorReport:
    """Everything the UI needs to present one record."""

    record: ErrorRecord
    severity: Severity
    user_message: str
    actions: list[RecoveryAction] = field(default_factory=list)
    surface: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "record": self.record.to_dict(),
            "severity": self.severity.value,
            "user_message": self.user_message,
            "actions": [action.to_dict() for action in self.actions],
            "surface": self.surface,
        }


def transport_status(error: BaseException | None, context: ErrorContext | None) -> int | None:
    """HTTP-style status attached to a failure, if any."""
    if isinstance(context, NetworkContext) and context.status is not None:
        return context.status
    for attr in ('status', 'status_code'):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


class ErrorClassifier:
    """Turns raw failures into records and decides what reaches a human."""

    def __init__(
        self,
        silent_categories: Iterable[ErrorCategory] = (),
        clock: Callable[[], datetime] = _utcnow
    ):
        """Initialize classifier.

        Args:
            silent_categories: Categories never surfaced to the user
            clock: Source of record timestamps

        """
        self.silent_categories = frozenset(silent_categories)
        self._clock = clock
        self._last_timestamp: datetime | None = None

    def _next_timestamp(self) -> datetime:
        now = self._clock()
        # Keep record order stable if the wall clock steps backwards
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    def classify(
        self,
        error: BaseException,
        category: ErrorCategory,
        context: ErrorContext | Mapping[str, Any] | None = None
    ) -> ErrorRecord:
        """Build a record for ``error``. No side effects beyond construction.

        Raises:
            TypeError: ``context`` is neither an ErrorContext nor a mapping

        """
        context = ErrorContext.coerce(context)
        stack_trace = None
        if error.__traceback__ is not None:
            stack_trace = ''.join(traceback.format_exception(type(error), error, error.__traceback__))

        record = ErrorRecord(
            id=generate_record_id(),
            category=category,
            message=str(error) or type(error).__name__,
            timestamp=self._next_timestamp(),
            stack_trace=stack_trace,
            error_type=type(error).__name__,
            context=context,
        )

        logger.debug(f"Classified '{type(error).__name__}' as {category.value} ({record.id})")
        return record

    def severity_of(
        self,
        category: ErrorCategory,
        error: BaseException | None = None,
        context: ErrorContext | None = None
    ) -> Severity:
        """Fixed severity mapping used for display escalation."""
        if isinstance(error, CRITICAL_ERROR_TYPES):
            return Severity.CRITICAL

        if category == ErrorCategory.COMPONENT:
            return Severity.HIGH

        if category in SURFACED_MEDIUM_CATEGORIES:
            status = transport_status(error, context)
            if status is not None and status >= 500:
                return Severity.HIGH
            return Severity.MEDIUM

        return Severity.MEDIUM

    def record_severity(self, record: ErrorRecord) -> Severity:
        """Severity of a stored record, where the raw exception is gone."""
        if record.error_type in {cls.__name__ for cls in CRITICAL_ERROR_TYPES}:
            return Severity.CRITICAL
        return self.severity_of(record.category, None, record.context)

    def user_message(self, record: ErrorRecord) -> str:
        return USER_MESSAGES[record.category]

    def suggested_actions(self, record: ErrorRecord) -> list[RecoveryAction]:
        return list(SUGGESTED_ACTIONS[record.category])

    def should_surface(self, record: ErrorRecord, severity: Severity | None = None) -> bool:
        """Decide whether a record reaches a human-facing notification."""
        if record.category in self.silent_categories:
            return False

        severity = severity or self.record_severity(record)
        if severity in (Severity.HIGH, Severity.CRITICAL):
            return True

        if severity == Severity.MEDIUM and record.category in SURFACED_MEDIUM_CATEGORIES:
            return True

        return False

    def report(self, record: ErrorRecord, error: BaseException | None = None) -> ErrorReport:
        """Bundle severity, message, actions and the surfacing decision."""
        if error is not None:
            severity = self.severity_of(record.category, error, record.context)
        else:
            severity = self.record_severity(record)
        return ErrorReport(
            record=record,
            severity=severity,
            user_message=self.user_message(record),
            actions=self.suggested_actions(record),
            surface=self.should_surface(record, severity),
        )
