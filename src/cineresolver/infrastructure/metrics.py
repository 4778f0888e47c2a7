"""Zero-impact in-memory resolver metrics.

All counters are plain Python integers manipulated inside the single-threaded
async event loop; no locks and no I/O.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from cineresolver.domain.entities.resolution import ResolutionStrategy


@dataclass
class StrategyStats:
    """Accumulated statistics for one resolution outcome."""

    count: int = 0
    total_duration_ns: int = 0

    def snapshot(self) -> dict[str, object]:
        avg_ms = (
            round(self.total_duration_ns / self.count / 1_000_000, 1)
            if self.count
            else 0.0
        )
        return {"count": self.count, "avg_duration_ms": avg_ms}


@dataclass
class MetricsCollector:
    """Central in-memory metrics collector."""

    _strategies: dict[ResolutionStrategy, StrategyStats] = field(
        default_factory=lambda: {s: StrategyStats() for s in ResolutionStrategy}
    )
    cache_hits: int = 0
    cache_misses: int = 0
    inflight_joins: int = 0
    errors: int = 0
    _start_ns: int = field(default_factory=time.perf_counter_ns)

    def record_resolution(
        self, strategy: ResolutionStrategy, duration_ns: int
    ) -> None:
        stats = self._strategies[strategy]
        stats.count += 1
        stats.total_duration_ns += duration_ns

    def record_cache(self, *, hit: bool) -> None:
        if hit:
            self.cache_hits += 1
        else:
            self.cache_misses += 1

    def record_inflight_join(self) -> None:
        self.inflight_joins += 1

    def record_error(self) -> None:
        self.errors += 1

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable summary."""
        uptime_s = round((time.perf_counter_ns() - self._start_ns) / 1e9, 1)
        return {
            "uptime_seconds": uptime_s,
            "strategies": {
                s.value: st.snapshot() for s, st in self._strategies.items()
            },
            "cache": {"hits": self.cache_hits, "misses": self.cache_misses},
            "inflight_joins": self.inflight_joins,
            "errors": self.errors,
        }
