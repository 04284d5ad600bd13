"""
Unit tests for the time-boxed benchmark engine.

An instrumented clock advancing a fixed tick per reading and an in-memory
store make every phase count exact: each phase runs ceil(D / tick)
iterations.
"""

import random

import pytest

from core.exceptions import StorageError
from services.benchmark import (
    AsciiRandomStrings,
    BenchmarkConfig,
    BenchmarkEngine,
    PhaseStats,
    new_session_id,
)
from fakes import InstantStore, StepClock

SESSION = "test_fixed_session"
RUN_TIMESTAMP = 1_700_000_000


def make_engine(store, clock, **config_overrides):
    config = BenchmarkConfig(**{"phase_duration": 3.0, "chunk_size": 100, **config_overrides})
    return BenchmarkEngine(
        store.factory,
        config,
        clock=clock,
        wall_clock=lambda: float(RUN_TIMESTAMP),
        rng=random.Random(42),
        session_id_factory=lambda: SESSION,
    )


class TestPhaseCounts:
    """Exact counts with a stepping clock."""

    def test_counts_follow_duration_over_tick(self):
        store = InstantStore()
        result = make_engine(store, StepClock(0.5)).run()

        assert result.writes == 600
        assert result.reads == 6
        assert result.updates == 6
        assert result.deletes == 6
        assert store.transactions == 6

    def test_total_counts_rows_left_before_cleanup(self):
        store = InstantStore()
        result = make_engine(store, StepClock(0.5)).run()

        assert result.total_rows == result.writes - result.deletes == 594
        assert store.rows_for(SESSION) == 0

    def test_total_includes_rows_of_other_sessions(self):
        store = InstantStore()
        store.rows[10_000] = ("new", "inflight", "test_other_run", RUN_TIMESTAMP)
        result = make_engine(store, StepClock(0.5)).run()

        assert result.total_rows == 595

    def test_total_is_serialized_as_total(self):
        result = make_engine(InstantStore(), StepClock(0.5)).run()

        assert result.to_dict()["total"] == 594

    def test_rates_use_measured_phase_time(self):
        result = make_engine(InstantStore(), StepClock(0.5)).run()

        assert result.write_time == 3.0
        assert result.writes_per_second == 200
        assert result.reads_per_second == 2
        assert result.updates_per_second == 2
        assert result.deletes_per_second == 2

    def test_aggregate_rate_uses_nominal_run_length(self):
        result = make_engine(InstantStore(), StepClock(0.25)).run()

        assert result.total_operations == result.writes + result.reads + result.updates + result.deletes
        assert result.operations_per_second == round(result.total_operations / (3.0 * 4))

    def test_duration_spans_write_start_to_cleanup_end(self):
        # run start, 4 phases x (1 start + 6 iterations), end reading
        result = make_engine(InstantStore(), StepClock(0.5)).run()

        assert result.duration == 14.5

    def test_db_size_is_rounded(self):
        result = make_engine(InstantStore(size_mb=1.23456), StepClock(0.5)).run()

        assert result.db_size_in_mb == 1.23

    def test_one_second_phase_writes_whole_chunks(self):
        store = InstantStore()
        result = make_engine(store, StepClock(0.1), phase_duration=1.0, chunk_size=10).run()

        assert result.writes >= 10
        assert result.writes % 10 == 0

    def test_slow_clock_still_runs_one_iteration_per_phase(self):
        # Every reading is already past the phase bound
        result = make_engine(InstantStore(), StepClock(10.0)).run()

        assert result.writes == 100
        assert result.reads == 1
        assert result.updates == 1
        assert result.deletes == 1


class TestFailures:
    """Failed operations are dropped from counts, never fatal."""

    def test_failed_inserts_are_not_counted(self):
        store = InstantStore(failing_inserts={2, 3, 4, 5})
        result = make_engine(store, StepClock(0.5), chunk_size=1).run()

        assert result.writes == 2
        assert result.failures == 4
        assert result.failure_rate == 66.67

    def test_delete_phase_stops_when_ids_run_out(self):
        store = InstantStore(failing_inserts={2, 3, 4, 5})
        result = make_engine(store, StepClock(0.5), chunk_size=1).run()

        assert result.deletes == 2
        assert result.deletes <= result.writes
        assert result.total_rows == 0
        # Two deletes took one second of clock
        assert result.deletes_per_second == 2

    def test_empty_workload_yields_zero_phases(self):
        store = InstantStore(failing_inserts=set(range(1000)))
        result = make_engine(store, StepClock(0.5), chunk_size=1).run()

        assert result.writes == 0
        assert result.reads == result.updates == result.deletes == 0
        assert result.reads_per_second == result.updates_per_second == result.deletes_per_second == 0
        assert result.failure_rate == 100.0

    def test_reads_and_updates_nonzero_when_writes_nonzero(self):
        result = make_engine(InstantStore(failing_inserts={0}), StepClock(0.5), chunk_size=1).run()

        assert result.writes > 0
        assert result.reads > 0
        assert result.updates > 0


class TestCleanup:
    """Workload rows never outlive the run."""

    def test_session_rows_removed_after_run(self):
        store = InstantStore()
        make_engine(store, StepClock(0.5)).run()

        assert store.rows_for(SESSION) == 0
        assert store.purges == [(SESSION, RUN_TIMESTAMP - 600)]

    def test_stale_debris_removed(self):
        store = InstantStore()
        store.rows[10_000] = ("old", "debris", "test_crashed_run", RUN_TIMESTAMP - 3600)
        store.rows[10_001] = ("new", "inflight", "test_other_run", RUN_TIMESTAMP)
        make_engine(store, StepClock(0.5)).run()

        assert 10_000 not in store.rows
        assert 10_001 in store.rows

    def test_cleanup_runs_when_phase_fails(self):
        store = InstantStore(fail_on="update")

        with pytest.raises(StorageError, match="disk I/O"):
            make_engine(store, StepClock(0.5)).run()

        assert store.purges == [(SESSION, RUN_TIMESTAMP - 600)]
        assert store.rows_for(SESSION) == 0
        assert store.closed == store.opened == 1

    def test_cleanup_error_does_not_mask_phase_error(self):
        class BrokenPurgeStore(InstantStore):
            def purge(self, session_id, older_than):
                raise StorageError("purge failed")

        store = BrokenPurgeStore(fail_on="read")

        with pytest.raises(StorageError, match="disk I/O"):
            make_engine(store, StepClock(0.5)).run()
        assert store.closed == 1


class TestPayloads:
    """Random payload generation."""

    def test_reads_and_updates_target_written_ids(self):
        store = InstantStore()
        written = set()
        original_insert = store.insert

        def tracking_insert(*args):
            record_id = original_insert(*args)
            written.add(record_id)
            return record_id

        store.insert = tracking_insert
        make_engine(store, StepClock(0.5)).run()

        assert set(store.reads) <= written
        assert {record_id for record_id, _ in store.updates} <= written

    def test_update_content_respects_length_bounds(self):
        store = InstantStore()
        make_engine(store, StepClock(0.25), content_min_length=5, content_max_length=9).run()

        assert store.updates
        assert all(5 <= len(content) <= 9 for _, content in store.updates)

    def test_ascii_strings_are_deterministic_with_seed(self):
        first = AsciiRandomStrings(random.Random(7)).generate(12)
        second = AsciiRandomStrings(random.Random(7)).generate(12)

        assert first == second
        assert len(first) == 12
        assert first.isalpha() and first.islower()

    def test_session_ids_are_unique(self):
        assert new_session_id() != new_session_id()
        assert new_session_id().startswith("test_")


class TestPhaseStats:
    def test_zero_elapsed_rate_is_zero(self):
        assert PhaseStats(count=5, elapsed=0.0).rate == 0

    def test_rate_rounds_to_int(self):
        assert PhaseStats(count=10, elapsed=3.0).rate == 3
