"""Time-boxed four-phase SQLite workload.

Each run executes, strictly in sequence:
    write  -> chunks of inserts, one transaction per chunk
    read   -> point reads of random ids produced by the write phase
    update -> content rewrites of random ids
    delete -> pops ids from the end of the list until time or ids run out

Every phase loop checks the elapsed time before starting an iteration and
always finishes an iteration it has started. With a clock that advances by
``t`` per reading and instant storage, a phase therefore performs exactly
``ceil(D / t)`` iterations.

Usage:
    engine = BenchmarkEngine(database.workload_store, BenchmarkConfig())
    result = engine.run()
"""

import random
import string
import time
import uuid
from typing import Callable, ContextManager, List, Optional, Protocol

from core.exceptions import OperationFailure
from core.logging import get_logger, log_phase_completed, log_run_completed
from .models import BenchmarkConfig, BenchmarkResult, PhaseStats
from .store import WorkloadStore

logger = get_logger(__name__)

Clock = Callable[[], float]
StoreFactory = Callable[[], ContextManager[WorkloadStore]]


class RandomStringSource(Protocol):
    """Produces the random author/content payloads."""

    def generate(self, length: int) -> str:
        ...


class AsciiRandomStrings:
    """Lowercase ascii strings drawn from a seedable generator."""

    alphabet = string.ascii_lowercase

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate(self, length: int) -> str:
        return "".join(self.rng.choices(self.alphabet, k=length))


def new_session_id() -> str:
    return f"test_{uuid.uuid4().hex}"


class BenchmarkEngine:
    """Runs one benchmark against a fresh workload store per call.

    Args:
        store_factory: Callable returning a context manager that yields a
            WorkloadStore and closes it on exit
        config: Phase duration, chunk size and payload sizes
        clock: Monotonic seconds used for phase timing
        wall_clock: Epoch seconds stamped on workload rows
        strings: Source of random author/content strings
        rng: Generator for id selection and content lengths
        session_id_factory: Produces the token tagging this run's rows
    """

    def __init__(
        self,
        store_factory: StoreFactory,
        config: BenchmarkConfig,
        clock: Clock = time.perf_counter,
        wall_clock: Clock = time.time,
        strings: Optional[RandomStringSource] = None,
        rng: Optional[random.Random] = None,
        session_id_factory: Callable[[], str] = new_session_id,
    ):
        self.store_factory = store_factory
        self.config = config
        self.clock = clock
        self.wall_clock = wall_clock
        self.rng = rng or random.Random()
        self.strings = strings or AsciiRandomStrings(self.rng)
        self.session_id_factory = session_id_factory

    def run(self) -> BenchmarkResult:
        """Execute all four phases and return the aggregate metrics.

        Raises:
            StorageError: If the store becomes unusable during the run
        """
        session_id = self.session_id_factory()
        run_timestamp = int(self.wall_clock())
        log = logger.bind(session_id=session_id)
        log.info("Benchmark run started",
                 phase_duration=self.config.phase_duration,
                 chunk_size=self.config.chunk_size)

        with self.store_factory() as store:
            start = self.clock()
            try:
                ids: List[int] = []
                write = self._write_phase(store, ids, session_id, run_timestamp)
                read = self._read_phase(store, ids)
                update = self._update_phase(store, ids)
                delete = self._delete_phase(store, ids)
                total_rows = store.count()
            except Exception as e:
                log.error("Benchmark run failed", error=str(e))
                try:
                    self._cleanup(store, session_id, run_timestamp, log)
                except Exception as cleanup_error:
                    log.error("Cleanup after failed run failed", error=str(cleanup_error))
                raise
            self._cleanup(store, session_id, run_timestamp, log)
            end = self.clock()
            db_size = store.size_mb()

        result = BenchmarkResult.from_phases(
            write, read, update, delete,
            phase_duration=self.config.phase_duration,
            db_size_in_mb=db_size,
            duration=end - start,
            total_rows=total_rows,
        )
        log_run_completed(log, start, end,
                          total_operations=result.total_operations,
                          operations_per_second=result.operations_per_second,
                          total_rows=total_rows,
                          failures=result.failures)
        return result

    def _random_content(self) -> str:
        length = self.rng.randint(self.config.content_min_length, self.config.content_max_length)
        return self.strings.generate(length)

    def _write_phase(self, store: WorkloadStore, ids: List[int],
                     session_id: str, run_timestamp: int) -> PhaseStats:
        writes = failures = 0
        start = now = self.clock()
        while now - start < self.config.phase_duration:
            chunk = [
                (self.strings.generate(self.config.author_length), self._random_content())
                for _ in range(self.config.chunk_size)
            ]
            with store.transaction():
                for author, content in chunk:
                    try:
                        ids.append(store.insert(author, content, session_id, run_timestamp))
                        writes += 1
                    except OperationFailure as e:
                        failures += 1
                        logger.debug("Insert failed", error=str(e))
            now = self.clock()
        return self._finish("write", PhaseStats(writes, now - start, failures))

    def _read_phase(self, store: WorkloadStore, ids: List[int]) -> PhaseStats:
        if not ids:
            return self._finish("read", PhaseStats(0, 0.0))
        reads = failures = 0
        start = now = self.clock()
        while now - start < self.config.phase_duration:
            try:
                store.fetch(self.rng.choice(ids))
                reads += 1
            except OperationFailure as e:
                failures += 1
                logger.debug("Read failed", error=str(e))
            now = self.clock()
        return self._finish("read", PhaseStats(reads, now - start, failures))

    def _update_phase(self, store: WorkloadStore, ids: List[int]) -> PhaseStats:
        if not ids:
            return self._finish("update", PhaseStats(0, 0.0))
        updates = failures = 0
        start = now = self.clock()
        while now - start < self.config.phase_duration:
            try:
                store.update_content(self.rng.choice(ids), self._random_content())
                updates += 1
            except OperationFailure as e:
                failures += 1
                logger.debug("Update failed", error=str(e))
            now = self.clock()
        return self._finish("update", PhaseStats(updates, now - start, failures))

    def _delete_phase(self, store: WorkloadStore, ids: List[int]) -> PhaseStats:
        if not ids:
            return self._finish("delete", PhaseStats(0, 0.0))
        deletes = failures = 0
        start = now = self.clock()
        while ids and now - start < self.config.phase_duration:
            try:
                store.delete(ids.pop())
                deletes += 1
            except OperationFailure as e:
                failures += 1
                logger.debug("Delete failed", error=str(e))
            now = self.clock()
        return self._finish("delete", PhaseStats(deletes, now - start, failures))

    def _finish(self, phase: str, stats: PhaseStats) -> PhaseStats:
        log_phase_completed(logger, phase, stats.count, stats.elapsed,
                            stats.rate, stats.failures)
        return stats

    def _cleanup(self, store: WorkloadStore, session_id: str, run_timestamp: int, log) -> None:
        removed = store.purge(session_id, run_timestamp - self.config.stale_record_age)
        log.debug("Workload cleaned up", removed=removed)
