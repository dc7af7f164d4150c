"""Metrics service for tracking API performance.

Singleton service to track recommendation calls, fallbacks, result sizes
and latency.
"""

import threading
from typing import Dict


class MetricsService:
    """Singleton service for tracking API metrics.

    Thread-safe counters and latency tracking for recommendation calls.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
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
        self._fallback_count = 0
        self._items_served = 0
        self._total_latency_ms = 0.0
        self._min_latency_ms = float("inf")
        self._max_latency_ms = 0.0

    def record_request(
        self,
        latency_ms: float,
        fallback: bool = False,
        num_items: int = 0,
    ) -> None:
        """Record a recommendation call with its latency and result size.

        Args:
            latency_ms: Latency in milliseconds
            fallback: Whether the popularity fallback was served
            num_items: Number of items returned to the caller
        """
        with self._lock:
            self._request_count += 1
            if fallback:
                self._fallback_count += 1
            self._items_served += num_items
            self._total_latency_ms += latency_ms
            self._min_latency_ms = min(self._min_latency_ms, latency_ms)
            self._max_latency_ms = max(self._max_latency_ms, latency_ms)

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with metrics including:
            - request_count: Total number of recommendation calls
            - fallback_count: Calls answered with popular items
            - fallback_rate: fallback_count / request_count
            - items_served, average_items_per_request
            - average_latency_ms, min_latency_ms, max_latency_ms
        """
        with self._lock:
            count = self._request_count
            avg_latency = self._total_latency_ms / count if count > 0 else 0.0
            min_latency = (
                self._min_latency_ms if self._min_latency_ms != float("inf") else 0.0
            )

            return {
                "request_count": count,
                "fallback_count": self._fallback_count,
                "fallback_rate": round(self._fallback_count / count, 4) if count else 0.0,
                "items_served": self._items_served,
                "average_items_per_request": (
                    round(self._items_served / count, 2) if count else 0.0
                ),
                "average_latency_ms": round(avg_latency, 2),
                "min_latency_ms": round(min_latency, 2),
                "max_latency_ms": round(self._max_latency_ms, 2),
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._reset_counters()


# Global singleton instance
metrics_service = MetricsService()
