"""Host hardware and load figures for the getSpecs action.

Every field falls back to "Unknown" when the platform cannot report it.
"""

import os
import platform
import re
from pathlib import Path
from typing import Any, Dict, Optional

import psutil

from core.logging import get_logger

logger = get_logger(__name__)

UNKNOWN = "Unknown"
CPUINFO_PATH = Path("/proc/cpuinfo")


def get_cpu_model(cpuinfo_path: Path = CPUINFO_PATH) -> str:
    """Read the CPU model name, preferring /proc/cpuinfo."""
    try:
        cpuinfo = cpuinfo_path.read_text()
    except OSError:
        cpuinfo = ""
    match = re.search(r"^model name\s*:\s*(.+)$", cpuinfo, re.MULTILINE)
    if match:
        return match.group(1).strip()
    return platform.processor() or UNKNOWN


def get_platform() -> str:
    uname = platform.uname()
    return f"{uname.system}, {uname.machine}, {uname.release}"


def get_total_ram_bytes() -> Optional[int]:
    try:
        return psutil.virtual_memory().total
    except (OSError, RuntimeError) as e:
        logger.debug("Total RAM unavailable", error=str(e))
        return None


def get_cpu_usage(cpu_count: int) -> Optional[float]:
    """One-minute load average as a percentage of available CPUs."""
    try:
        load_1m = psutil.getloadavg()[0]
    except (OSError, AttributeError) as e:
        logger.debug("Load average unavailable", error=str(e))
        return None
    return round(load_1m / cpu_count * 100, 1)


def get_memory_usage() -> Optional[float]:
    """Resident memory of this process as a percentage of total RAM."""
    try:
        return round(psutil.Process(os.getpid()).memory_percent(), 1)
    except (psutil.Error, OSError) as e:
        logger.debug("Process memory unavailable", error=str(e))
        return None


def get_server_specs() -> Dict[str, Any]:
    """Collect the specs payload served to the client."""
    cpu_count = psutil.cpu_count(logical=True) or 1
    total_ram = get_total_ram_bytes()
    cpu_usage = get_cpu_usage(cpu_count)
    memory_usage = get_memory_usage()

    return {
        "vCPUs": cpu_count,
        "CPU model": get_cpu_model(),
        "Platform": get_platform(),
        "Total RAM": f"{round(total_ram / 1024 ** 3, 1)}GB" if total_ram else UNKNOWN,
        "CPU usage": f"{cpu_usage}%" if cpu_usage is not None else UNKNOWN,
        "Memory usage": f"{memory_usage}%" if memory_usage is not None and total_ram else UNKNOWN,
    }
