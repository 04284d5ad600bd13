"""SQLite throughput benchmark package.

- Four time-boxed phases (write, read, update, delete) against one table
- Chunked write transactions, random point reads and updates
- Single-row result cache with a freshness window
"""

from .models import (
    BenchmarkConfig,
    BenchmarkResult,
    PhaseStats,
)
from .store import WorkloadStore, SQLiteWorkloadStore
from .engine import (
    BenchmarkEngine,
    RandomStringSource,
    AsciiRandomStrings,
    new_session_id,
)
from .cache import ResultCache, CACHE_SLOT

__all__ = [
    # Models
    "BenchmarkConfig",
    "BenchmarkResult",
    "PhaseStats",
    # Store
    "WorkloadStore",
    "SQLiteWorkloadStore",
    # Engine
    "BenchmarkEngine",
    "RandomStringSource",
    "AsciiRandomStrings",
    "new_session_id",
    # Cache
    "ResultCache",
    "CACHE_SLOT",
]
