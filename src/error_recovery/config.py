"""
Engine configuration and logging setup.
"""
import logging
import os
from dataclasses import dataclass, field

from .store import DEFAULT_CAPACITY, DEFAULT_STORAGE_KEY
from .types import ErrorCategory

ENV_PREFIX = "ERROR_RECOVERY_"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _env(name: str) -> str | None:
    value = os.environ.get(ENV_PREFIX + name)
    return value if value not in (None, "") else None


@dataclass
class EngineConfig:
    """Configuration for the recovery engine."""
    database_url: str | None = None
    use_memory_storage: bool = False
    storage_key: str = DEFAULT_STORAGE_KEY
    max_records: int = DEFAULT_CAPACITY
    resolve_limit: int = 5
    recent_limit: int = 10
    rate_window: float = 3600.0
    rate_threshold: int = 10
    unresolved_threshold: int = 20
    dominance_ratio: float = 0.5
    attempt_timeout: float | None = None
    deadline: float | None = None
    silent_categories: frozenset[ErrorCategory] = field(default_factory=frozenset)
    log_level: str = "WARNING"

    def validate(self) -> 'EngineConfig':
        """Raise ValueError on out-of-range settings; returns self."""
        if self.max_records < 1:
            raise ValueError(f"max_records must be positive, got {self.max_records}")
        if self.resolve_limit < 0:
            raise ValueError(f"resolve_limit must be >= 0, got {self.resolve_limit}")
        if self.recent_limit < 0:
            raise ValueError(f"recent_limit must be >= 0, got {self.recent_limit}")
        if self.rate_window <= 0:
            raise ValueError(f"rate_window must be positive, got {self.rate_window}")
        if self.rate_threshold < 0 or self.unresolved_threshold < 0:
            raise ValueError("health thresholds must be >= 0")
        if not 0 < self.dominance_ratio <= 1:
            raise ValueError(f"dominance_ratio must be in (0, 1], got {self.dominance_ratio}")
        for name in ("attempt_timeout", "deadline"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown log level: {self.log_level}")
        if not self.storage_key:
            raise ValueError("storage_key must not be empty")
        return self

    @classmethod
    def from_env(cls, **overrides) -> 'EngineConfig':
        """Build a config from ``ERROR_RECOVERY_*`` environment variables."""
        values = {}
        if _env("DATABASE_URL") is not None:
            values["database_url"] = _env("DATABASE_URL")
        if _env("MEMORY_STORAGE") is not None:
            values["use_memory_storage"] = _env("MEMORY_STORAGE").lower() in ("1", "true", "yes", "on")
        if _env("STORAGE_KEY") is not None:
            values["storage_key"] = _env("STORAGE_KEY")
        for name in ("max_records", "resolve_limit", "recent_limit", "rate_threshold", "unresolved_threshold"):
            raw = _env(name.upper())
            if raw is not None:
                values[name] = int(raw)
        for name in ("rate_window", "dominance_ratio", "attempt_timeout", "deadline"):
            raw = _env(name.upper())
            if raw is not None:
                values[name] = float(raw)
        silent = _env("SILENT_CATEGORIES")
        if silent is not None:
            values["silent_categories"] = frozenset(
                ErrorCategory.coerce(item.strip()) for item in silent.split(",") if item.strip()
            )
        if _env("LOG_LEVEL") is not None:
            values["log_level"] = _env("LOG_LEVEL").upper()

        values.update(overrides)
        return cls(**values).validate()


def configure_logging(level: str | int = "INFO") -> None:
    """Basic root logging setup for applications and the CLI."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
