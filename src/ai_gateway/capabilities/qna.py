"""General question answering through OpenRouter."""

from __future__ import annotations

from typing import Any

from ai_gateway.capabilities.common import run_traced
from ai_gateway.obs.tracing import TraceStore
from ai_gateway.orchestration.normalizer import extract_answer_text
from ai_gateway.orchestration.orchestrator import FallbackOrchestrator
from ai_gateway.providers.openrouter import OpenRouterAnswerAdapter
from ai_gateway.schemas import QnaRequest, QnaResult

ANSWER_CONFIDENCE = 95


class QnaService:
    """Single-provider Q&A; the orchestrator still supplies config checks and traces."""

    capability = "qna"

    def __init__(self, llm: Any, *, credential: str | None, trace_store: TraceStore) -> None:
        self.trace_store = trace_store
        self.orchestrator = FallbackOrchestrator(
            self.capability,
            [OpenRouterAnswerAdapter(llm, credential=credential)],
            normalize=extract_answer_text,
            not_configured_status=400,
            unavailable_status=500,
        )

    def answer(self, request: QnaRequest) -> QnaResult:
        outcome = run_traced(self.orchestrator, request, self.trace_store)
        return QnaResult(
            question=request.question,
            answer=outcome.value,
            context=request.context,
            confidence=ANSWER_CONFIDENCE,
        )
