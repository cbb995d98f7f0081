"""Per-request capability traces and aggregate provider metrics."""

from __future__ import annotations

import re
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone

from ai_gateway.types import ProviderAttempt

_TOKEN_PATTERN = re.compile(r"\w+|[^\w\s]", flags=re.UNICODE)


@dataclass(slots=True)
class TraceRecord:
    trace_id: str
    timestamp_utc: str
    capability: str
    provider: str | None
    success: bool
    error: str | None
    attempts: list[ProviderAttempt]
    latency_ms: float


class TraceStore:
    """In-memory, bounded trace storage for API-level observability."""

    def __init__(self, *, max_records: int = 1000) -> None:
        self._records: dict[str, TraceRecord] = {}
        self._order: deque[str] = deque()
        self._max_records = max_records
        self._lock = threading.Lock()

    def create_record(
        self,
        *,
        capability: str,
        provider: str | None,
        attempts: list[ProviderAttempt],
        latency_ms: float,
        error: str | None = None,
    ) -> TraceRecord:
        record = TraceRecord(
            trace_id=str(uuid.uuid4()),
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            capability=capability,
            provider=provider,
            success=error is None,
            error=error,
            attempts=list(attempts),
            latency_ms=latency_ms,
        )
        with self._lock:
            self._records[record.trace_id] = record
            self._order.append(record.trace_id)
            while len(self._order) > self._max_records:
                self._records.pop(self._order.popleft(), None)
        return record

    def get(self, trace_id: str) -> TraceRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[TraceRecord]:
        if limit <= 0:
            return []
        with self._lock:
            ids = list(self._order)[-limit:]
        return [self._records[trace_id] for trace_id in ids if trace_id in self._records]

    def summary(self) -> dict[str, object]:
        """Aggregate request and per-provider attempt metrics."""
        with self._lock:
            records = list(self._records.values())

        total = len(records)
        failures = sum(1 for record in records if not record.success)
        providers: dict[str, dict[str, float | int]] = {}
        for record in records:
            for attempt in record.attempts:
                stats = providers.setdefault(
                    attempt.provider,
                    {"attempts": 0, "successes": 0, "failures": 0, "total_latency_ms": 0.0},
                )
                stats["attempts"] += 1
                stats["successes" if attempt.ok else "failures"] += 1
                stats["total_latency_ms"] += attempt.latency_ms

        for stats in providers.values():
            stats["avg_latency_ms"] = stats.pop("total_latency_ms") / max(1, stats["attempts"])

        latencies = sorted(record.latency_ms for record in records)
        return {
            "total_requests": total,
            "failed_requests": failures,
            "avg_latency_ms": sum(latencies) / total if total else 0.0,
            "p95_latency_ms": latencies[max(0, int(total * 0.95) - 1)] if total else 0.0,
            "fallback_requests": sum(1 for record in records if len(record.attempts) > 1),
            "providers": providers,
        }


class Timer:
    """Simple context timer."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def estimate_token_count(text: str) -> int:
    return len(_TOKEN_PATTERN.findall(text))
