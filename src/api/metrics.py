"""Metrics service for tracking recommendation requests.

Singleton service counting requests, empty and degraded responses, and
end-to-end latency.
"""

import threading
from typing import Dict


class RecommendationMetrics:
    """Singleton service for tracking recommendation metrics.

    Thread-safe counters; FastAPI runs sync endpoints in a thread pool.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(RecommendationMetrics, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize metrics counters."""
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._reset_counters()
        self._initialized = True

    def _reset_counters(self) -> None:
        self._request_count = 0
        self._empty_count = 0
        self._degraded_count = 0
        self._total_latency_ms = 0.0
        self._min_latency_ms = float('inf')
        self._max_latency_ms = 0.0

    def record_request(self, latency_ms: float, num_results: int, degraded: bool = False) -> None:
        """Record one recommendation request.

        Args:
            latency_ms: Latency in milliseconds
            num_results: Number of products returned
            degraded: True if a failure was turned into an empty response
        """
        with self._lock:
            self._request_count += 1
            self._total_latency_ms += latency_ms
            if num_results == 0:
                self._empty_count += 1
            if degraded:
                self._degraded_count += 1

            self._min_latency_ms = min(self._min_latency_ms, latency_ms)
            self._max_latency_ms = max(self._max_latency_ms, latency_ms)

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with metrics including:
            - request_count: Total number of recommendation requests
            - empty_count: Requests that returned no products
            - degraded_count: Requests that hit a failure and returned nothing
            - average_latency_ms / min_latency_ms / max_latency_ms
        """
        with self._lock:
            avg_latency = (
                self._total_latency_ms / self._request_count
                if self._request_count > 0
                else 0.0
            )

            return {
                "request_count": self._request_count,
                "empty_count": self._empty_count,
                "degraded_count": self._degraded_count,
                "average_latency_ms": round(avg_latency, 2),
                "min_latency_ms": round(self._min_latency_ms, 2) if self._request_count else 0.0,
                "max_latency_ms": round(self._max_latency_ms, 2),
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._reset_counters()


# Global singleton instance
metrics_service = RecommendationMetrics()
