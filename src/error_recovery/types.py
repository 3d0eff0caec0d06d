"""
Shared type definitions for the recovery engine.
"""
import random
import string
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, TypeVar


T = TypeVar('T')

Operation = Callable[[], Awaitable[T]]
FallbackAction = Callable[[], Awaitable[None]]

_ID_ALPHABET = string.ascii_lowercase + string.digits


class ErrorCategory(Enum):
    """Subsystem a failure originated from."""
    NETWORK = "network"
    DATA = "data"
    COMPONENT = "component"
    NAVIGATION = "navigation"
    STORAGE = "storage"
    UNKNOWN = "unknown"

    @classmethod
    def coerce(cls, value: 'ErrorCategory | str') -> 'ErrorCategory':
        """Accept either a member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown error category: {value!r}") from None


class Severity(Enum):
    """Escalation tier, independent of category."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Caller-supplied metadata attached to a record.

    Subclasses add the structured fields relevant to one category. The
    ``kind`` tag selects the subclass when a record is read back from storage.
    """

    kind: ClassVar[str] = "generic"

    screen: str | None = None
    action: str | None = None
    operation: str | None = None
    attempt: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind
        return data

    @classmethod
    def coerce(cls, value: 'ErrorContext | Mapping[str, Any] | None') -> 'ErrorContext | None':
        """Accept a context, a plain mapping of metadata, or None."""
        if value is None or isinstance(value, ErrorContext):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise TypeError(f"context must be an ErrorContext or a mapping, got {type(value).__name__}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ErrorContext':
        data = dict(data)
        context_cls = CONTEXT_TYPES.get(data.pop("kind", "generic"), ErrorContext)
        known = {f.name for f in fields(context_cls)}
        extra = dict(data.pop("extra", None) or {})
        for key in list(data):
            if key not in known:
                extra[key] = data.pop(key)
        return context_cls(extra=extra, **data)


@dataclass
class NetworkContext(ErrorContext):
    kind: ClassVar[str] = "network"

    url: str | None = None
    method: str | None = None
    status: int | None = None


@dataclass
class DataContext(ErrorContext):
    kind: ClassVar[str] = "data"

    source: str | None = None
    expected_format: str | None = None


@dataclass
class ComponentContext(ErrorContext):
    kind: ClassVar[str] = "component"

    component: str | None = None
    component_stack: str | None = None


@dataclass
class NavigationContext(ErrorContext):
    kind: ClassVar[str] = "navigation"

    route: str | None = None
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class StorageContext(ErrorContext):
    kind: ClassVar[str] = "storage"

    key: str | None = None


CONTEXT_TYPES: dict[str, type[ErrorContext]] = {
    cls.kind: cls
    for cls in (
        ErrorContext,
        NetworkContext,
        DataContext,
        ComponentContext,
        NavigationContext,
        StorageContext,
    )
}


def generate_record_id() -> str:
    """Build an id of the form ``error_<epoch-ms>_<9 base36 chars>``."""
    suffix = ''.join(random.choices(_ID_ALPHABET, k=9))
    return f"error_{int(time.time() * 1000)}_{suffix}"


@dataclass
class ErrorRecord:
    """Persisted account of one classified failure."""

    id: str
    category: ErrorCategory
    message: str
    timestamp: datetime
    stack_trace: str | None = None
    error_type: str | None = None
    resolved: bool = False
    retry_count: int = 0
    context: ErrorContext | None = None

    def mark_resolved(self, retry_count: int) -> None:
        self.resolved = True
        self.retry_count = retry_count

    def age(self, now: datetime | None = None) -> float:
        """Seconds elapsed since the record was created."""
        now = now or datetime.now(timezone.utc)
        return (now - self.timestamp).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "category": self.category.value,
            "message": self.message,
            "stack_trace": self.stack_trace,
            "error_type": self.error_type,
            "timestamp": self.timestamp.isoformat(),
            "resolved": self.resolved,
            "retry_count": self.retry_count,
            "context": self.context.to_dict() if self.context else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'ErrorRecord':
        """Create from dictionary."""
        timestamp = datetime.fromisoformat(data["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        context = data.get("context")
        return cls(
            id=str(data["id"]),
            category=ErrorCategory.coerce(data["category"]),
            message=str(data.get("message", "")),
            timestamp=timestamp,
            stack_trace=data.get("stack_trace"),
            error_type=data.get("error_type"),
            resolved=bool(data.get("resolved", False)),
            retry_count=int(data.get("retry_count", 0)),
            context=ErrorContext.from_dict(context) if context else None,
        )
