"""Metrics collection for simulation and sweep calls."""

from contextlib import contextmanager
from typing import Dict, Iterator, List
import threading
import time


def _summarise(values_ms: List[float]) -> Dict[str, float]:
    ordered = sorted(values_ms)
    return {
        "count": len(ordered),
        "total_ms": sum(ordered),
        "avg_ms": sum(ordered) / len(ordered),
        "p50_ms": ordered[len(ordered) // 2],
        "max_ms": ordered[-1],
    }


class MetricsRecorder:
    """Counters (``simulate.calls``, ``sweep.points``...) and wall-time samples."""

    def increment(self, key: str, value: int = 1) -> None:
        raise NotImplementedError

    def timing(self, key: str, value_ms: float) -> None:
        raise NotImplementedError

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        raise NotImplementedError

    @contextmanager
    def timed(self, key: str) -> Iterator[None]:
        """Record the wall time of the ``with`` block under ``key``, even on failure."""
        started = time.perf_counter()
        try:
            yield
        finally:
            self.timing(key, (time.perf_counter() - started) * 1000.0)


class InMemoryMetricsRecorder(MetricsRecorder):
    """Lock-protected recorder; the only mutable state engines share."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {}
        self._samples: Dict[str, List[float]] = {}

    def increment(self, key: str, value: int = 1) -> None:
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + int(value)

    def timing(self, key: str, value_ms: float) -> None:
        with self._lock:
            self._samples.setdefault(key, []).append(float(value_ms))

    def counter(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._samples.clear()

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "timings": {key: _summarise(values) for key, values in self._samples.items() if values},
            }


_DEFAULT_RECORDER = InMemoryMetricsRecorder()


def get_metrics_recorder() -> MetricsRecorder:
    """Process-wide recorder used when an engine is not given its own."""
    return _DEFAULT_RECORDER
