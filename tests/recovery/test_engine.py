"""
Tests for the engine facade, the recoverable decorator and telemetry delivery.
"""
import json
import logging
from datetime import timedelta

import pytest

from error_recovery import (
    ComponentContext,
    EngineConfig,
    ErrorCategory,
    ErrorContext,
    MemoryStorage,
    NetworkContext,
    RecoveryEngine,
    RecoveryStateError,
    RecoveryStrategy,
    TelemetryDispatcher,
    recoverable,
)
from error_recovery.store import DEFAULT_STORAGE_KEY


class TestRecoveryEngine:
    """Test cases for RecoveryEngine."""

    @pytest.mark.asyncio
    async def test_execute_with_recovery(self, engine, sleep, sink, flaky):
        """Test a data failure recovered on the second attempt."""
        operation = flaky([ValueError("empty response")], result={"id": 1})

        result = await engine.execute_with_recovery("data", operation)
        await engine.telemetry.drain()

        assert result == {"id": 1}
        assert sleep.delays == [0.5]
        [record] = engine.errors()
        assert record.category == ErrorCategory.DATA
        assert record.resolved is True
        assert record.retry_count == 1
        assert sink.names() == ["app_error", "error_recovery_success"]

    @pytest.mark.asyncio
    async def test_register_strategy(self, engine, sleep, flaky):
        """Test that a registered strategy replaces the default."""
        engine.register_strategy(
            ErrorCategory.NETWORK,
            RecoveryStrategy(ErrorCategory.NETWORK, max_retries=1, base_delay=0.0)
        )
        operation = flaky([ConnectionError("reset")] * 2)

        with pytest.raises(ConnectionError):
            await engine.execute_with_recovery(ErrorCategory.NETWORK, operation)

        assert operation.calls == 2
        assert sleep.delays == []
        assert len(engine.errors()) == 2

    @pytest.mark.asyncio
    async def test_log_error(self, engine, sink):
        """Test recording a failure outside the retry loop."""
        context = NetworkContext(url="/courses", status=503)

        record = await engine.log_error("network", ConnectionError("unreachable"), context)
        await engine.telemetry.drain()

        assert engine.errors() == [record]
        assert record.context is context
        assert sink.events[0][0] == "app_error"
        assert sink.events[0][1]["id"] == record.id

        report = engine.report(record)
        assert report.surface is True
        assert report.severity.value == "high"

    @pytest.mark.asyncio
    async def test_log_error_accepts_mapping(self, engine, storage):
        """Test that a dict context is stored as a typed context and persisted."""
        record = await engine.log_error("data", ValueError("bad payload"), {"screen": "Home"})

        assert isinstance(record.context, ErrorContext)
        assert record.context.screen == "Home"

        await engine.log_error("data", ValueError("second"))
        payload = json.loads(await storage.get(DEFAULT_STORAGE_KEY))
        assert [item["message"] for item in payload] == ["second", "bad payload"]

    @pytest.mark.asyncio
    async def test_log_error_rejects_bad_context(self, engine):
        """Test that invalid or unserialisable contexts never reach the store."""
        with pytest.raises(TypeError):
            await engine.log_error("data", ValueError("x"), ["Home"])
        with pytest.raises(RecoveryStateError):
            await engine.log_error("data", ValueError("x"), ErrorContext(extra={"handle": object()}))

        assert engine.errors() == []

    @pytest.mark.asyncio
    async def test_log_error_level_follows_severity(self, engine, caplog):
        """Test that logged errors use the level of their severity."""
        caplog.set_level(logging.INFO, logger="error_recovery")

        await engine.log_error("storage", OSError("quota exceeded"))
        await engine.log_error("component", RuntimeError("render failed"))

        levels = {r.getMessage(): r.levelno for r in caplog.records}
        assert levels["[STORAGE] quota exceeded"] == logging.WARNING
        assert levels["[COMPONENT] render failed"] == logging.ERROR

    @pytest.mark.asyncio
    async def test_register_error_handler(self, engine):
        """Test per-category handlers on the engine."""
        received = []
        engine.register_error_handler("navigation", received.append)

        record = await engine.log_error("navigation", RuntimeError("route missing"))
        await engine.log_error("data", ValueError("ignored"))
        engine.unregister_error_handler(ErrorCategory.NAVIGATION)
        await engine.log_error("navigation", RuntimeError("after removal"))

        assert [report.record for report in received] == [record]

    @pytest.mark.asyncio
    async def test_purge_and_stats(self, engine, record_factory):
        await engine.store.append(record_factory(ErrorCategory.DATA, age=timedelta(days=8), index=0))
        await engine.store.append(record_factory(ErrorCategory.DATA, age=timedelta(hours=1), index=1))

        removed = await engine.purge_older_than(timedelta(days=7))

        assert removed == 1
        assert engine.stats().total == 1
        assert engine.health_check().healthy is False

    @pytest.mark.asyncio
    async def test_records_survive_restart(self, record_factory):
        """Test that a new engine over the same storage sees old records."""
        storage = MemoryStorage()
        config = EngineConfig(use_memory_storage=True)

        async with RecoveryEngine(config, storage=storage) as first:
            await first.log_error(ErrorCategory.STORAGE, OSError("disk full"))

        async with RecoveryEngine(config, storage=storage) as second:
            [record] = second.errors()
            assert record.category == ErrorCategory.STORAGE
            assert record.message == "disk full"

    @pytest.mark.asyncio
    async def test_capacity_from_config(self, record_factory):
        async with RecoveryEngine(EngineConfig(use_memory_storage=True, max_records=3)) as engine:
            for i in range(5):
                await engine.store.append(record_factory(ErrorCategory.DATA, index=i))

            assert [r.id for r in engine.errors()] == [
                "error_test_data_4",
                "error_test_data_3",
                "error_test_data_2",
            ]

    @pytest.mark.asyncio
    async def test_report_handler_receives_surfaced_failures(self, sleep, flaky):
        """Test that terminal failures reach the handler when surfaced."""
        reports = []
        engine = RecoveryEngine(
            EngineConfig(use_memory_storage=True),
            report_handler=reports.append,
            sleep=sleep
        )
        await engine.start()
        try:
            with pytest.raises(RuntimeError):
                await engine.execute_with_recovery(
                    ErrorCategory.COMPONENT,
                    flaky([RuntimeError("render failed")]),
                    ComponentContext(component="Scorecard")
                )
        finally:
            await engine.close()

        [report] = reports
        assert report.record.category == ErrorCategory.COMPONENT
        assert report.actions[0].action == "reload_screen"

    @pytest.mark.asyncio
    async def test_silent_categories_skip_handler(self, sleep, flaky):
        reports = []
        config = EngineConfig(use_memory_storage=True, silent_categories=frozenset({ErrorCategory.COMPONENT}))
        async with RecoveryEngine(config, report_handler=reports.append, sleep=sleep) as engine:
            with pytest.raises(RuntimeError):
                await engine.execute_with_recovery(
                    ErrorCategory.COMPONENT,
                    flaky([RuntimeError("render failed")])
                )

            assert len(engine.errors()) == 1
        assert reports == []


class TestRecoverableDecorator:
    """Test cases for the recoverable decorator."""

    @pytest.mark.asyncio
    async def test_retries_through_engine(self, engine, sleep):
        calls = []

        @recoverable(engine, ErrorCategory.DATA)
        async def load_parts(category):
            calls.append(category)
            if len(calls) == 1:
                raise ValueError("empty response")
            return [category]

        result = await load_parts("wedges")

        assert result == ["wedges"]
        assert calls == ["wedges", "wedges"]
        assert sleep.delays == [0.5]
        [record] = engine.errors()
        assert record.context.operation.endswith("load_parts")
        assert record.resolved is True

    @pytest.mark.asyncio
    async def test_preserves_metadata(self, engine):
        @recoverable(engine, "navigation")
        async def open_screen():
            """Open a screen."""
            return True

        assert open_screen.__name__ == "open_screen"
        assert open_screen.__doc__ == "Open a screen."
        assert await open_screen() is True

    @pytest.mark.asyncio
    async def test_explicit_context_operation_kept(self, engine):
        @recoverable(engine, ErrorCategory.COMPONENT, context=ComponentContext(operation="render"))
        async def render():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await render()

        assert engine.errors()[0].context.operation == "render"
        assert engine.errors()[0].context.component is None

    def test_rejects_sync_functions(self, engine):
        with pytest.raises(TypeError):
            @recoverable(engine)
            def not_async():
                return None


class TestTelemetryDispatcher:
    """Test cases for fire-and-forget delivery."""

    @pytest.mark.asyncio
    async def test_sink_failure_is_isolated(self, caplog):
        """Test that a failing sink only produces a log line."""
        class BrokenSink:
            async def emit(self, event, params):
                raise RuntimeError("analytics offline")

        dispatcher = TelemetryDispatcher(BrokenSink())

        with caplog.at_level(logging.ERROR):
            dispatcher.emit("app_error", {"id": "error_1"})
            assert dispatcher.pending == 1
            await dispatcher.drain()

        assert dispatcher.pending == 0
        assert "analytics offline" in caplog.text

    @pytest.mark.asyncio
    async def test_recovery_event_params(self, sink):
        dispatcher = TelemetryDispatcher(sink)

        dispatcher.recovery_succeeded("network", 2, 2)
        await dispatcher.drain()

        assert sink.events == [
            ("error_recovery_success", {"category": "network", "retry_count": 2, "resolved_count": 2})
        ]

    @pytest.mark.asyncio
    async def test_critical_event_params(self, sink, record_factory):
        record = record_factory(ErrorCategory.STORAGE, index=3)
        record.error_type = "MemoryError"
        dispatcher = TelemetryDispatcher(sink)

        dispatcher.critical_error(record)
        await dispatcher.drain()

        assert sink.events == [("critical_error", {
            "category": "storage",
            "message": "failure 3",
            "id": "error_test_storage_3",
            "error_type": "MemoryError",
        })]

    def test_emit_without_loop_is_dropped(self, sink, caplog):
        dispatcher = TelemetryDispatcher(sink)

        with caplog.at_level(logging.ERROR):
            dispatcher.emit("app_error", {})

        assert dispatcher.pending == 0
        assert sink.events == []
