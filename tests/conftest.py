"""
Shared fixtures: isolated settings, a started Database on a temporary SQLite
file, and a manually advanced wall clock.
"""

import pytest

from core.config import Settings
from core.database import Database
from services.benchmark import BenchmarkConfig


class ManualClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_path=str(tmp_path / "bench.sqlite"),
        benchmark_phase_duration=0.05,
        benchmark_chunk_size=10,
        benchmark_cache_window=300,
        log_format="console",
    )


@pytest.fixture
def config(settings):
    return BenchmarkConfig.from_settings(settings)


@pytest.fixture
async def database(settings):
    db = Database(settings)
    await db.startup()
    try:
        yield db
    finally:
        await db.shutdown()


@pytest.fixture
def wall_clock():
    return ManualClock()
