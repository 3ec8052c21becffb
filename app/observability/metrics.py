from __future__ import annotations

from dataclasses import asdict, dataclass
from threading import Lock
from typing import Any


@dataclass
class _LatencyAgg:
    count: int = 0
    sum_ms: float = 0.0
    max_ms: float = 0.0

    def observe(self, elapsed_ms: float) -> None:
        self.count += 1
        self.sum_ms += float(elapsed_ms)
        if elapsed_ms > self.max_ms:
            self.max_ms = float(elapsed_ms)


@dataclass
class _TransactionAgg(_LatencyAgg):
    errors: int = 0


class InMemoryMetrics:
    """Thread-safe, process-local metrics (resets on restart)."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.http_requests_total: int = 0
        self.http_request_ms = _LatencyAgg()
        self.transactions: dict[str, _TransactionAgg] = {}

    def observe_http_request(self, elapsed_ms: float) -> None:
        with self._lock:
            self.http_requests_total += 1
            self.http_request_ms.observe(elapsed_ms)

    def observe_transaction(self, name: str, elapsed_ms: float, error: bool = False) -> None:
        with self._lock:
            agg = self.transactions.setdefault(name, _TransactionAgg())
            agg.observe(elapsed_ms)
            if error:
                agg.errors += 1

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": {
                    "http_requests_total": self.http_requests_total,
                },
                "latency_ms": {
                    "http_request_ms": asdict(self.http_request_ms),
                },
                "transactions": {name: asdict(agg) for name, agg in self.transactions.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self.http_requests_total = 0
            self.http_request_ms = _LatencyAgg()
            self.transactions = {}


_METRICS: InMemoryMetrics | None = None


def get_metrics() -> InMemoryMetrics:
    global _METRICS
    if _METRICS is None:
        _METRICS = InMemoryMetrics()
    return _METRICS


def reset_metrics() -> None:
    """Reset metrics counters/aggregates (used by tests)."""

    get_metrics().reset()
