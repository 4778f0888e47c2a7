"""Container-aware resource detection for sizing the browser pool.

Reads CPU and memory limits from Linux cgroups (Docker ``--cpus`` /
``--memory``, Kubernetes limits) and falls back to ``os.cpu_count()``
and ``psutil`` on hosts without a cgroup limit.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import psutil
import structlog

from cineresolver.infrastructure.constants import (
    BROWSER_SESSION_MEMORY_BYTES,
    MAX_AUTO_BROWSER_SESSIONS,
)

log = structlog.get_logger(__name__)

# cgroup v2 paths (unified hierarchy)
_CGROUP_V2_CPU = Path("/sys/fs/cgroup/cpu.max")
_CGROUP_V2_MEM = Path("/sys/fs/cgroup/memory.max")

# cgroup v1 paths (legacy hierarchy)
_CGROUP_V1_CPU_QUOTA = Path("/sys/fs/cgroup/cpu/cpu.cfs_quota_us")
_CGROUP_V1_CPU_PERIOD = Path("/sys/fs/cgroup/cpu/cpu.cfs_period_us")
_CGROUP_V1_MEM = Path("/sys/fs/cgroup/memory/memory.limit_in_bytes")

# Memory values above 1 TB are treated as "unlimited" (host value leaked)
_MEM_UNLIMITED_THRESHOLD = 1024**4

ResourceSource = Literal["cgroup_v2", "cgroup_v1", "os_fallback"]


@dataclass(frozen=True)
class DetectedResources:
    """Detected CPU and memory resources (container-aware)."""

    cpu_cores: int  # >= 1
    memory_bytes: int
    cpu_source: ResourceSource
    mem_source: ResourceSource

    @property
    def cgroup_limited(self) -> bool:
        return "os_fallback" not in (self.cpu_source, self.mem_source)


def _read_file(path: Path) -> str | None:
    """Read a cgroup pseudo-file, returning None on any error."""
    try:
        return path.read_text().strip()
    except OSError:
        return None


def _parse_cpu_quota(quota_str: str, period_str: str) -> int | None:
    try:
        quota = int(quota_str)
        period = int(period_str)
    except ValueError:
        return None
    if quota <= 0 or period <= 0:
        return None  # unlimited (-1) or invalid
    return max(1, math.ceil(quota / period))


def _parse_mem_limit(content: str | None) -> int | None:
    if content is None or content == "max":
        return None
    try:
        limit = int(content)
    except ValueError:
        return None
    if limit <= 0 or limit >= _MEM_UNLIMITED_THRESHOLD:
        return None
    return limit


def _detect_cpu() -> tuple[int, ResourceSource]:
    content = _read_file(_CGROUP_V2_CPU)
    if content is not None:
        parts = content.split()
        # "max PERIOD" means unlimited
        if len(parts) == 2 and parts[0] != "max":
            cores = _parse_cpu_quota(parts[0], parts[1])
            if cores is not None:
                return cores, "cgroup_v2"

    quota = _read_file(_CGROUP_V1_CPU_QUOTA)
    period = _read_file(_CGROUP_V1_CPU_PERIOD)
    if quota is not None and period is not None:
        cores = _parse_cpu_quota(quota, period)
        if cores is not None:
            return cores, "cgroup_v1"

    return os.cpu_count() or 2, "os_fallback"


def _detect_memory() -> tuple[int, ResourceSource]:
    limit = _parse_mem_limit(_read_file(_CGROUP_V2_MEM))
    if limit is not None:
        return limit, "cgroup_v2"

    limit = _parse_mem_limit(_read_file(_CGROUP_V1_MEM))
    if limit is not None:
        return limit, "cgroup_v1"

    return psutil.virtual_memory().total, "os_fallback"


def detect_resources() -> DetectedResources:
    """Detect CPU and memory from cgroup v2, then v1, then the OS."""
    cpu_cores, cpu_source = _detect_cpu()
    memory_bytes, mem_source = _detect_memory()
    return DetectedResources(
        cpu_cores=cpu_cores,
        memory_bytes=memory_bytes,
        cpu_source=cpu_source,
        mem_source=mem_source,
    )


def recommend_browser_sessions(resources: DetectedResources | None = None) -> int:
    """Number of concurrent Chromium sessions the host can afford.

    Half of the memory budget is reserved for the rest of the process;
    one session per CPU core at most; clamped to ``[1, 8]``.
    """
    resources = resources or detect_resources()
    by_memory = (resources.memory_bytes // 2) // BROWSER_SESSION_MEMORY_BYTES
    sessions = max(1, min(resources.cpu_cores, by_memory, MAX_AUTO_BROWSER_SESSIONS))
    log.info(
        "browser_sessions_auto",
        cpu=resources.cpu_cores,
        memory_mb=resources.memory_bytes // 1024**2,
        cpu_source=resources.cpu_source,
        mem_source=resources.mem_source,
        cgroup_limited=resources.cgroup_limited,
        result=sessions,
    )
    return sessions
