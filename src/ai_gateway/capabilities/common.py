"""Helpers shared by the capability services."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ai_gateway.errors import GatewayError
from ai_gateway.obs.logging import get_logger, log_with_context
from ai_gateway.obs.tracing import Timer, TraceRecord, TraceStore
from ai_gateway.orchestration.orchestrator import FallbackOrchestrator, FallbackOutcome

logger = get_logger(__name__)


def model_order(selected: str, defaults: Iterable[str], models: Mapping[str, str]) -> list[str]:
    """Selected model first, then the defaults; duplicates and unknown keys dropped."""
    order: list[str] = []
    for key in (selected, *defaults):
        if key in models and key not in order:
            order.append(key)
    return order


def run_traced(
    orchestrator: FallbackOrchestrator[Any, Any],
    request: Any,
    trace_store: TraceStore,
) -> FallbackOutcome[Any]:
    """Run the orchestrator and store one trace record for the request."""
    timer = Timer()
    try:
        with timer:
            outcome = orchestrator.run(request)
    except GatewayError as exc:
        log_request(
            trace_store.create_record(
                capability=orchestrator.capability,
                provider=None,
                attempts=getattr(exc, "attempts", []),
                latency_ms=timer.elapsed_ms,
                error=str(exc),
            )
        )
        raise

    log_request(
        trace_store.create_record(
            capability=orchestrator.capability,
            provider=outcome.provider,
            attempts=outcome.attempts,
            latency_ms=timer.elapsed_ms,
        )
    )
    return outcome


def log_request(record: TraceRecord) -> None:
    log_with_context(
        logger,
        logging.INFO if record.success else logging.WARNING,
        "capability request finished",
        trace_id=record.trace_id,
        capability=record.capability,
        provider=record.provider or "-",
        attempts=len(record.attempts),
        latency_ms=round(record.latency_ms, 1),
    )
