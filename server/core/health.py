"""Health check utilities.

Provides uptime tracking and health status for the /health endpoint.
"""
import time
from typing import Dict, Any, TYPE_CHECKING

import psutil

if TYPE_CHECKING:
    from core.database import Database
    from services.benchmark import BenchmarkConfig

# Module-level startup time tracking
_startup_time: float = 0.0


def set_startup_time() -> None:
    """Record the application startup time. Call once during lifespan startup."""
    global _startup_time
    _startup_time = time.time()


def get_uptime() -> float:
    """Get uptime in seconds since startup."""
    return time.time() - _startup_time if _startup_time else 0.0


def get_memory_mb() -> float:
    """Get current process memory usage in MB."""
    try:
        return psutil.Process().memory_info().rss / (1024 * 1024)
    except psutil.Error:
        return 0.0


def get_disk_percent(path: str = ".") -> float:
    """Get disk usage percentage for given path."""
    try:
        return psutil.disk_usage(path).percent
    except OSError:
        return 0.0


async def get_health_status(database: "Database", config: "BenchmarkConfig") -> Dict[str, Any]:
    """Get health status for /health endpoint.

    Returns:
        Dict containing status, uptime, resource usage and benchmark settings.
    """
    db_healthy = await database.ping()
    # Rows left behind by runs in progress or by crashed runs
    workload_rows = await database.count_workload_records() if db_healthy else None

    return {
        "status": "healthy" if db_healthy else "degraded",
        "uptime_seconds": round(get_uptime(), 1),
        "memory_mb": round(get_memory_mb(), 1),
        "disk_percent": round(get_disk_percent(), 1),
        "checks": {
            "database": db_healthy,
        },
        "workload_rows": workload_rows,
        "benchmark": {
            "phase_duration": config.phase_duration,
            "chunk_size": config.chunk_size,
            "cache_window": config.cache_window,
            "single_flight": config.single_flight,
        },
    }
