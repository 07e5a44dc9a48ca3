"""
astroview/core/metrics.py
In-memory, best-effort counters for upstream fetches and cache lookups.
  • record_fetch()        → latency / failure / timeout per upstream name
  • record_cache_event()  → hit / miss per cache key, under "cache.<key>"
  • snapshot()            → copies only, never the live buckets
Recording never raises: metrics are diagnostics, not behaviour.
"""

import logging
import math
from dataclasses import asdict, dataclass

log = logging.getLogger("metrics")

CACHE_PREFIX = "cache."


@dataclass
class MetricBucket:
    count:             int   = 0
    failures:          int   = 0
    timeouts:          int   = 0
    total_duration_ms: float = 0.0
    last_sample_ms:    float = 0.0


class MetricsRecorder:
    def __init__(self) -> None:
        self._buckets: dict[str, MetricBucket] = {}

    def _bucket(self, name: str) -> MetricBucket:
        b = self._buckets.get(name)
        if b is None:
            b = self._buckets[name] = MetricBucket()
        return b

    def record_fetch(
        self,
        name: str,
        duration_ms: float,
        success: bool = True,
        timeout: bool = False,
    ) -> None:
        try:
            b = self._bucket(name)
            b.count += 1
            if not success:
                b.failures += 1
            if timeout:
                b.timeouts += 1
            b.total_duration_ms += duration_ms
            b.last_sample_ms = duration_ms
        except Exception as ex:
            log.debug(f"record_fetch({name}) dropped: {ex}")

    def record_cache_event(self, name: str, hit: bool) -> None:
        """`failures` doubles as the miss counter for cache buckets."""
        try:
            b = self._bucket(f"{CACHE_PREFIX}{name}")
            b.count += 1
            if not hit:
                b.failures += 1
            b.last_sample_ms = 0.0
        except Exception as ex:
            log.debug(f"record_cache_event({name}) dropped: {ex}")

    def snapshot(self) -> dict[str, dict]:
        out: dict[str, dict] = {}
        try:
            for name, b in list(self._buckets.items()):
                row = asdict(b)
                # half-up, so 2.5 ms reports as 3
                row["avg_ms"] = math.floor(b.total_duration_ms / b.count + 0.5) if b.count else 0
                out[name] = row
        except Exception as ex:
            log.debug(f"snapshot truncated: {ex}")
        return out

    def reset(self) -> None:
        self._buckets.clear()
