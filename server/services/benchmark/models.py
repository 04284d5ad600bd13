"""Benchmark value objects.

All results are JSON-serializable so they can be stored in the result cache
table and returned to the browser client unchanged.
"""

import json
from dataclasses import dataclass
from typing import Dict, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from core.config import Settings


@dataclass(frozen=True)
class BenchmarkConfig:
    """Tunables for one benchmark run and for the result cache.

    Every phase runs for ``phase_duration`` seconds, so a full run takes
    roughly four times that plus cleanup.
    """
    phase_duration: float = 3.0      # seconds, per phase
    chunk_size: int = 100            # rows per write transaction
    cache_window: int = 300          # seconds a stored result stays fresh
    author_length: int = 7
    content_min_length: int = 7
    content_max_length: int = 64
    stale_record_age: int = 600      # seconds; older workload rows are debris
    single_flight: bool = True

    @classmethod
    def from_settings(cls, settings: "Settings") -> "BenchmarkConfig":
        return cls(
            phase_duration=settings.benchmark_phase_duration,
            chunk_size=settings.benchmark_chunk_size,
            cache_window=settings.benchmark_cache_window,
            author_length=settings.benchmark_author_length,
            content_min_length=settings.benchmark_content_min_length,
            content_max_length=settings.benchmark_content_max_length,
            stale_record_age=settings.benchmark_stale_record_age,
            single_flight=settings.benchmark_single_flight,
        )


@dataclass(frozen=True)
class PhaseStats:
    """Outcome of one time-boxed phase."""
    count: int
    elapsed: float
    failures: int = 0

    @property
    def rate(self) -> int:
        """Operations per second, zero when no time elapsed."""
        if self.elapsed <= 0:
            return 0
        return round(self.count / self.elapsed)


@dataclass(frozen=True)
class BenchmarkResult:
    """Aggregate metrics of a single benchmark run."""
    db_size_in_mb: float
    total_operations: int
    operations_per_second: int
    total_rows: int
    writes: int
    writes_per_second: int
    reads: int
    reads_per_second: int
    updates: int
    updates_per_second: int
    deletes: int
    deletes_per_second: int
    failures: int
    failure_rate: float
    write_time: float
    duration: float

    @classmethod
    def from_phases(cls, write: PhaseStats, read: PhaseStats, update: PhaseStats,
                    delete: PhaseStats, phase_duration: float,
                    db_size_in_mb: float, duration: float,
                    total_rows: int = 0) -> "BenchmarkResult":
        """Assemble a result from the four phase outcomes.

        The aggregate rate divides by the nominal run length (four equal
        phases), not by the measured wall time. The failure rate is taken over
        attempted writes rather than successful ones, so a run where every
        insert failed reports 100% instead of dividing by zero.

        Args:
            total_rows: Rows in the workload table just before cleanup
        """
        total = write.count + read.count + update.count + delete.count
        failures = write.failures + read.failures + update.failures + delete.failures
        attempted_writes = write.count + write.failures
        failure_rate = round(write.failures / attempted_writes * 100, 2) if attempted_writes else 0.0
        return cls(
            db_size_in_mb=round(db_size_in_mb, 2),
            total_operations=total,
            operations_per_second=round(total / (phase_duration * 4)),
            total_rows=total_rows,
            writes=write.count,
            writes_per_second=write.rate,
            reads=read.count,
            reads_per_second=read.rate,
            updates=update.count,
            updates_per_second=update.rate,
            deletes=delete.count,
            deletes_per_second=delete.rate,
            failures=failures,
            failure_rate=failure_rate,
            write_time=round(write.elapsed, 2),
            duration=round(duration, 2),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape served to clients."""
        return {
            "dbSizeInMb": self.db_size_in_mb,
            "totalOperations": self.total_operations,
            "operationsPerSecond": self.operations_per_second,
            "total": self.total_rows,
            "writes": self.writes,
            "writesPerSecond": self.writes_per_second,
            "reads": self.reads,
            "readsPerSecond": self.reads_per_second,
            "updates": self.updates,
            "updatesPerSecond": self.updates_per_second,
            "deletes": self.deletes,
            "deletesPerSecond": self.deletes_per_second,
            "failures": self.failures,
            "failureRate": self.failure_rate,
            "writeTime": self.write_time,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BenchmarkResult":
        """Create from the client JSON shape."""
        return cls(
            db_size_in_mb=float(data["dbSizeInMb"]),
            total_operations=int(data["totalOperations"]),
            operations_per_second=int(data["operationsPerSecond"]),
            total_rows=int(data.get("total", 0)),
            writes=int(data["writes"]),
            writes_per_second=int(data["writesPerSecond"]),
            reads=int(data["reads"]),
            reads_per_second=int(data["readsPerSecond"]),
            updates=int(data["updates"]),
            updates_per_second=int(data["updatesPerSecond"]),
            deletes=int(data["deletes"]),
            deletes_per_second=int(data["deletesPerSecond"]),
            failures=int(data.get("failures", 0)),
            failure_rate=float(data.get("failureRate", 0.0)),
            write_time=float(data.get("writeTime", 0.0)),
            duration=float(data["duration"]),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, payload: str) -> "BenchmarkResult":
        return cls.from_dict(json.loads(payload))
