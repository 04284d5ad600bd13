"""Result cache for benchmark runs.

Serves the stored result while it is younger than the cache window and runs
a new benchmark otherwise. The stored row is replaced atomically, so the table
never holds more than one result.

Concurrent misses within one process share a single run when single-flight is
enabled: the first caller runs the benchmark while holding the slot lock, and
later callers re-check the table after acquiring it. Separate worker
processes are not coordinated.
"""

import asyncio
import time
from typing import Callable, Optional, TYPE_CHECKING

from core.logging import get_logger, log_result_cache
from .models import BenchmarkConfig, BenchmarkResult

if TYPE_CHECKING:
    from core.database import Database
    from .engine import BenchmarkEngine

logger = get_logger(__name__)

CACHE_SLOT = "benchmark:latest"


class ResultCache:
    """Cache-or-run policy around the BenchmarkEngine."""

    def __init__(
        self,
        database: "Database",
        engine: "BenchmarkEngine",
        config: BenchmarkConfig,
        clock: Callable[[], float] = time.time,
    ):
        self.database = database
        self.engine = engine
        self.config = config
        self.clock = clock
        self._slot_lock = asyncio.Lock()

    async def get_fresh(self, max_age_seconds: int) -> Optional[BenchmarkResult]:
        """Return the stored result if it is younger than max_age_seconds."""
        entry = await self.database.get_latest_result()
        if entry is None:
            log_result_cache(logger, "get", CACHE_SLOT, hit=False, reason="empty")
            return None

        age = int(self.clock()) - entry.timestamp
        if age >= max_age_seconds:
            log_result_cache(logger, "get", CACHE_SLOT, hit=False, reason="expired", age=age)
            return None

        try:
            result = BenchmarkResult.from_json(entry.result)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable cached result", error=str(e))
            return None

        log_result_cache(logger, "get", CACHE_SLOT, hit=True, age=age)
        return result

    async def get_or_run(self, max_age_seconds: Optional[int] = None) -> BenchmarkResult:
        """Return a fresh cached result or run the benchmark and store it.

        Args:
            max_age_seconds: Freshness threshold, defaults to the cache window

        Raises:
            StorageError: If the database is unreachable
        """
        max_age = self.config.cache_window if max_age_seconds is None else max_age_seconds

        cached = await self.get_fresh(max_age)
        if cached is not None:
            return cached

        if not self.config.single_flight:
            return await self._run_and_store()

        async with self._slot_lock:
            # Another request may have finished a run while we waited.
            cached = await self.get_fresh(max_age)
            if cached is not None:
                return cached
            return await self._run_and_store()

    async def _run_and_store(self) -> BenchmarkResult:
        result = await asyncio.to_thread(self.engine.run)
        timestamp = int(self.clock())
        await self.database.replace_result(result.to_json(), timestamp)
        log_result_cache(logger, "set", CACHE_SLOT, timestamp=timestamp,
                            operations_per_second=result.operations_per_second)
        return result
