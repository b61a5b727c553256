# src/tracking/performance_monitor.py — v1
"""Rolling-window latency recorder.

Diagnostics only: nothing in the analysis flow branches on these numbers.
One instance is created by the composition root and passed to the
components that measure themselves.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator

from careerlens.tracking.models import LatencyStats

logger = logging.getLogger(__name__)


@dataclass
class _Series:
    samples: deque[float]
    last_update: float = field(default=0.0)


class PerformanceMonitor:
    """Keeps the last ``max_samples`` durations (ms) per key.

    Keys not updated for ``stale_after_s`` seconds are dropped by
    cleanup_stale(), which also runs opportunistically on every record.

    Args:
        max_samples: Rolling window size per key.
        stale_after_s: Idle time after which a key is discarded.
        clock: Monotonic time source for durations.
        wall_clock: Time source for staleness.
    """

    def __init__(
        self,
        max_samples: int = 100,
        stale_after_s: float = 60 * 5,
        clock: Callable[[], float] = time.perf_counter,
        wall_clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_samples < 1:
            raise ValueError("max_samples must be >= 1")
        self._max_samples = max_samples
        self._stale_after_s = stale_after_s
        self._clock = clock
        self._wall_clock = wall_clock
        self._series: dict[str, _Series] = {}
        self._last_cleanup = wall_clock()

    def start_measurement(self, key: str) -> Callable[[], float]:
        """Start timing ``key``. Call the returned function to stop.

        The stop function records the duration and returns it in ms.
        """
        started = self._clock()

        def stop() -> float:
            duration_ms = (self._clock() - started) * 1000.0
            self.record(key, duration_ms)
            return duration_ms

        return stop

    @contextmanager
    def measure(self, key: str) -> Iterator[None]:
        """Time the enclosed block, whether it completes or raises."""
        stop = self.start_measurement(key)
        try:
            yield
        finally:
            stop()

    def record(self, key: str, duration_ms: float) -> None:
        now = self._wall_clock()
        series = self._series.get(key)
        if series is None:
            series = _Series(samples=deque(maxlen=self._max_samples))
            self._series[key] = series
        series.samples.append(duration_ms)
        series.last_update = now
        if now - self._last_cleanup > self._stale_after_s:
            self.cleanup_stale()

    def average(self, key: str) -> float:
        """Mean duration in ms, 0.0 for an unknown key."""
        series = self._series.get(key)
        if series is None or not series.samples:
            return 0.0
        return sum(series.samples) / len(series.samples)

    def stats(self, key: str) -> LatencyStats | None:
        series = self._series.get(key)
        if series is None or not series.samples:
            return None
        samples = series.samples
        return LatencyStats(
            key=key,
            count=len(samples),
            avg_ms=sum(samples) / len(samples),
            min_ms=min(samples),
            max_ms=max(samples),
            last_ms=samples[-1],
            last_update=series.last_update,
        )

    def cleanup_stale(self) -> int:
        """Drop keys idle longer than ``stale_after_s``. Returns count dropped."""
        now = self._wall_clock()
        self._last_cleanup = now
        stale = [
            key for key, s in self._series.items()
            if now - s.last_update > self._stale_after_s
        ]
        for key in stale:
            del self._series[key]
        if stale:
            logger.debug("Dropped %d stale latency series", len(stale))
        return len(stale)

    def snapshot(self) -> dict[str, LatencyStats]:
        """Serializable view of every key."""
        result: dict[str, LatencyStats] = {}
        for key in list(self._series):
            stats = self.stats(key)
            if stats is not None:
                result[key] = stats
        return result

    def clear(self) -> None:
        self._series.clear()

    def __len__(self) -> int:
        return len(self._series)
