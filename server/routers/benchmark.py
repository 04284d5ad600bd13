"""Benchmark action routes (query-parameter dispatch)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from core.container import container
from core.logging import get_logger
from services.benchmark import ResultCache
from services.host_specs import get_server_specs

logger = get_logger(__name__)
router = APIRouter(tags=["benchmark"])


async def run_test(result_cache: ResultCache):
    """Return the cached benchmark result or run a new one."""
    try:
        result = await result_cache.get_or_run()
        return result.to_dict()
    except Exception as e:
        logger.error("Benchmark request failed", error=str(e))
        return {"error": str(e)}


async def get_specs():
    """Return host hardware and load figures."""
    return await run_in_threadpool(get_server_specs)


@router.get("/")
async def dispatch(
    action: Optional[str] = Query(default=None),
    result_cache: ResultCache = Depends(lambda: container.result_cache())
):
    """Dispatch on ?action=runTest|getSpecs."""
    if action == "runTest":
        return await run_test(result_cache)
    if action == "getSpecs":
        return await get_specs()
    logger.debug("Invalid action requested", action=action)
    return {"error": "Invalid action"}
