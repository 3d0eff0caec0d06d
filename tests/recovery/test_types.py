"""
Tests for records, contexts and categories.
"""
from datetime import datetime, timedelta, timezone

import pytest

from error_recovery import (
    ErrorCategory,
    ErrorContext,
    ErrorRecord,
    NavigationContext,
    NullTelemetrySink,
    StorageContext,
)
from error_recovery.types import generate_record_id


class TestErrorCategory:

    def test_coerce(self):
        assert ErrorCategory.coerce("STORAGE") == ErrorCategory.STORAGE
        assert ErrorCategory.coerce(ErrorCategory.DATA) == ErrorCategory.DATA

    def test_coerce_unknown_value(self):
        with pytest.raises(ValueError, match="Unknown error category"):
            ErrorCategory.coerce("analytics")


class TestErrorContext:
    """Test cases for typed contexts."""

    def test_variant_round_trip(self):
        context = NavigationContext(screen="Home", route="/round/12", params={"hole": 3})

        restored = ErrorContext.from_dict(context.to_dict())

        assert isinstance(restored, NavigationContext)
        assert restored == context

    def test_unknown_keys_folded_into_extra(self):
        restored = ErrorContext.from_dict({"kind": "storage", "key": "settings", "quota": 5})

        assert isinstance(restored, StorageContext)
        assert restored.key == "settings"
        assert restored.extra == {"quota": 5}

    def test_unknown_kind_falls_back_to_generic(self):
        restored = ErrorContext.from_dict({"kind": "sensor", "screen": "Map"})

        assert type(restored) is ErrorContext
        assert restored.screen == "Map"

    def test_coerce(self):
        """Test that contexts pass through and plain mappings are converted."""
        context = StorageContext(key="settings")

        assert ErrorContext.coerce(None) is None
        assert ErrorContext.coerce(context) is context
        assert ErrorContext.coerce({"kind": "storage", "key": "settings"}) == context
        assert ErrorContext.coerce({"screen": "Home"}) == ErrorContext(screen="Home")

    @pytest.mark.parametrize("value", ["Home", 42, ["screen"]])
    def test_coerce_rejects_other_types(self, value):
        with pytest.raises(TypeError):
            ErrorContext.coerce(value)


class TestErrorRecord:
    """Test cases for ErrorRecord."""

    def test_id_format(self):
        prefix, millis, suffix = generate_record_id().split("_")

        assert prefix == "error"
        assert millis.isdigit()
        assert len(suffix) == 9

    def test_naive_timestamp_read_as_utc(self):
        record = ErrorRecord.from_dict({
            "id": "error_1_abcdefghi",
            "category": "data",
            "message": "bad payload",
            "timestamp": "2026-02-01T10:00:00",
        })

        assert record.timestamp == datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)
        assert record.context is None
        assert record.resolved is False

    def test_age_and_mark_resolved(self):
        now = datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)
        record = ErrorRecord("error_1_x", ErrorCategory.NETWORK, "down", now - timedelta(minutes=2))

        record.mark_resolved(3)

        assert record.age(now) == 120.0
        assert record.resolved is True
        assert record.retry_count == 3


@pytest.mark.asyncio
async def test_null_sink_discards_events():
    assert await NullTelemetrySink().emit("app_error", {"id": "error_1"}) is None
