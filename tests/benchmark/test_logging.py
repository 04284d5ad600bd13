"""
Tests for the benchmark log events.
"""

from structlog.testing import capture_logs

from core.logging import (
    SERVICE_NAME,
    add_service_name,
    get_logger,
    log_phase_completed,
    log_result_cache,
    log_run_completed,
)
from services.benchmark import BenchmarkConfig, BenchmarkEngine
from fakes import InstantStore, StepClock


class TestServiceName:
    def test_added_when_missing(self):
        event = add_service_name(None, "info", {"event": "x"})

        assert event["service"] == SERVICE_NAME

    def test_existing_value_kept(self):
        event = add_service_name(None, "info", {"event": "x", "service": "other"})

        assert event["service"] == "other"


class TestBenchmarkEvents:
    def test_phase_event_fields(self):
        with capture_logs() as logs:
            log_phase_completed(get_logger("test"), "write", 600, 3.00004, 200, failures=1)

        assert logs == [{
            "event": "Phase completed",
            "log_level": "debug",
            "phase": "write",
            "count": 600,
            "elapsed_seconds": 3.0,
            "ops_per_second": 200,
            "failures": 1,
        }]

    def test_run_event_carries_duration_and_metrics(self):
        with capture_logs() as logs:
            log_run_completed(get_logger("test"), 1.0, 15.5, total_rows=594)

        assert logs[0]["event"] == "Benchmark run completed"
        assert logs[0]["duration_seconds"] == 14.5
        assert logs[0]["total_rows"] == 594

    def test_cache_event_omits_unknown_hit(self):
        with capture_logs() as logs:
            log_result_cache(get_logger("test"), "set", "benchmark:latest", timestamp=1)

        assert logs[0]["cache_slot"] == "benchmark:latest"
        assert "cache_hit" not in logs[0]

    def test_engine_logs_each_phase_and_the_run(self):
        engine = BenchmarkEngine(
            InstantStore().factory,
            BenchmarkConfig(phase_duration=1.0, chunk_size=10),
            clock=StepClock(0.5),
            session_id_factory=lambda: "test_logged",
        )

        with capture_logs() as logs:
            engine.run()

        phases = [entry["phase"] for entry in logs if entry["event"] == "Phase completed"]
        runs = [entry for entry in logs if entry["event"] == "Benchmark run completed"]
        assert phases == ["write", "read", "update", "delete"]
        assert runs[0]["session_id"] == "test_logged"
        assert runs[0]["total_rows"] == 18
