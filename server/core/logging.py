"""Structured logging for the benchmark service.

Every event carries ``service`` so JSON lines from several deployments can
share one sink. Benchmark code logs through the helpers at the bottom of this
module, which keep the field names of phase, run and cache events stable for
anyone parsing them.
"""

import sys
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from core.config import Settings

SERVICE_NAME = "sqlite-benchmark"


def add_service_name(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _handlers(settings: Settings, level: int) -> list:
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def configure_logging(settings: Settings) -> None:
    """Route structlog through stdlib logging with the configured renderer."""
    level = getattr(logging, settings.log_level.upper())
    logging.basicConfig(level=level, handlers=_handlers(settings, level),
                        format="%(message)s", force=True)

    processors = [
        structlog.stdlib.filter_by_level,
        add_service_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.log_format == "json":
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))
        processors.insert(0, structlog.stdlib.add_logger_name)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.insert(0, structlog.processors.TimeStamper(fmt="%H:%M:%S"))
        processors.append(structlog.dev.ConsoleRenderer(colors=False, pad_event=30))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def log_phase_completed(logger: structlog.BoundLogger, phase: str, count: int,
                        elapsed: float, rate: int, failures: int = 0) -> None:
    """One line per finished workload phase."""
    logger.debug("Phase completed", phase=phase, count=count,
                 elapsed_seconds=round(elapsed, 4), ops_per_second=rate,
                 failures=failures)


def log_run_completed(logger: structlog.BoundLogger, start_time: float,
                      end_time: float, **metrics) -> None:
    """Summary of a full benchmark run, including cleanup."""
    logger.info("Benchmark run completed",
                duration_seconds=round(end_time - start_time, 4), **metrics)


def log_result_cache(logger: structlog.BoundLogger, operation: str, slot: str,
                     hit: Optional[bool] = None, **kwargs) -> None:
    """Lookups and writes of the stored benchmark result."""
    log_data = {"operation": operation, "cache_slot": slot, **kwargs}
    if hit is not None:
        log_data["cache_hit"] = hit
    logger.debug("Result cache", **log_data)
