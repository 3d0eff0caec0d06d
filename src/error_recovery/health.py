"""
Aggregate statistics and health verdicts over the record store.
"""
import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from .classification import ErrorClassifier
from .store import ErrorRecordStore
from .types import ErrorCategory, ErrorRecord, Severity

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ErrorStats:
    total: int
    by_category: dict[ErrorCategory, int]
    resolved_count: int
    unresolved_count: int
    recent_window: int
    recent: list[ErrorRecord] = field(default_factory=list)
    dominant_category: ErrorCategory | None = None
    by_severity: dict[Severity, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "by_category": {category.value: count for category, count in self.by_category.items()},
            "resolved_count": self.resolved_count,
            "unresolved_count": self.unresolved_count,
            "recent_window": self.recent_window,
            "recent": [record.to_dict() for record in self.recent],
            "dominant_category": self.dominant_category.value if self.dominant_category else None,
            "by_severity": {severity.value: count for severity, count in self.by_severity.items()},
        }


@dataclass
class HealthReport:
    healthy: bool
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "issues": list(self.issues),
            "recommendations": list(self.recommendations),
        }


class HealthMonitor:
    """Reads the store on demand; never mutates it."""

    def __init__(
        self,
        store: ErrorRecordStore,
        rate_window: timedelta = timedelta(hours=1),
        rate_threshold: int = 10,
        unresolved_threshold: int = 20,
        dominance_ratio: float = 0.5,
        recent_limit: int = 10,
        classifier: ErrorClassifier | None = None,
        clock: Callable[[], datetime] = _utcnow
    ):
        self.store = store
        self.rate_window = rate_window
        self.rate_threshold = rate_threshold
        self.unresolved_threshold = unresolved_threshold
        self.dominance_ratio = dominance_ratio
        self.recent_limit = recent_limit
        self.classifier = classifier or ErrorClassifier()
        self._clock = clock

    def stats(self) -> ErrorStats:
        records = self.store.list()
        now = self._clock()
        window = self.rate_window.total_seconds()

        by_category: Counter[ErrorCategory] = Counter()
        by_severity = {severity: 0 for severity in Severity}
        resolved_count = 0
        recent_window = 0
        for record in records:
            by_category[record.category] += 1
            by_severity[self.classifier.record_severity(record)] += 1
            if record.resolved:
                resolved_count += 1
            if record.age(now) < window:
                recent_window += 1

        dominant = by_category.most_common(1)
        return ErrorStats(
            total=len(records),
            by_category=dict(by_category),
            resolved_count=resolved_count,
            unresolved_count=len(records) - resolved_count,
            recent_window=recent_window,
            recent=sorted(records[:self.recent_limit], key=lambda r: r.timestamp, reverse=True),
            dominant_category=dominant[0][0] if dominant else None,
            by_severity=by_severity,
        )

    def health_check(self) -> HealthReport:
        stats = self.stats()
        issues: list[str] = []
        recommendations: list[str] = []

        if stats.recent_window > self.rate_threshold:
            issues.append("High error rate in the last hour")
            recommendations.append("Consider investigating recurring issues")

        if stats.unresolved_count > self.unresolved_threshold:
            issues.append("Many unresolved errors")
            recommendations.append("Review error handling strategies")

        if stats.dominant_category is not None:
            dominant_count = stats.by_category[stats.dominant_category]
            if dominant_count > stats.total * self.dominance_ratio:
                name = stats.dominant_category.value
                issues.append(f"Dominant error type: {name}")
                recommendations.append(f"Focus on improving {name} error handling")

        if issues:
            logger.warning(f"Health check found {len(issues)} issue(s): {'; '.join(issues)}")

        return HealthReport(
            healthy=not issues,
            issues=issues,
            recommendations=recommendations,
        )
