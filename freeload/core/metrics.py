from __future__ import annotations

import time
from threading import Lock
from typing import Awaitable, Dict, List, TypeVar

T = TypeVar("T")

# Latency histogram labels: under 1ms, [2^k, 2^(k+1)) ms up to 16384ms, then everything from 32768ms on
LATENCY_BUCKETS: List[str] = ["<1ms"] + [f"{2 ** k}ms" for k in range(15)] + [">32s"]


def latency_bucket(elapsed_ms: float) -> str:
    """Return the histogram label for a duration in milliseconds."""
    if elapsed_ms < 1:
        return "<1ms"
    if elapsed_ms >= 32768:
        return ">32s"
    bound = 1
    while bound * 2 <= elapsed_ms:
        bound *= 2
    return f"{bound}ms"


class Counters:
    """Thread-safe counters for origin requests and aggregate responses.

    One instance is owned by each application (``app.state.metrics``) and
    passed into the aggregation engine; nothing here affects results."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.total_requests = 0
        self.pending_requests = 0
        self.success_requests = 0
        self.responses = 0
        self.latencies: Dict[str, int] = {label: 0 for label in LATENCY_BUCKETS}

    def record_response(self) -> None:
        """Count one aggregate request served."""
        with self._lock:
            self.responses += 1

    def record_success(self) -> None:
        """Count one origin result that arrived before its deadline."""
        with self._lock:
            self.success_requests += 1

    def record_latency(self, elapsed_ms: float) -> None:
        with self._lock:
            self.latencies[latency_bucket(elapsed_ms)] += 1

    async def instrument(self, call: Awaitable[T]) -> T:
        """Await one origin request while tracking totals, pending and latency."""
        with self._lock:
            self.total_requests += 1
            self.pending_requests += 1
        start = time.perf_counter()
        try:
            return await call
        finally:
            with self._lock:
                self.pending_requests -= 1
            self.record_latency((time.perf_counter() - start) * 1000)

    def snapshot(self) -> Dict[str, object]:
        """Return a copy of every counter, suitable for JSON export."""
        with self._lock:
            return {
                "total_requests": self.total_requests,
                "pending_requests": self.pending_requests,
                "success_requests": self.success_requests,
                "responses": self.responses,
                "latencies": dict(self.latencies),
            }
