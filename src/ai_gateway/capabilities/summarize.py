"""Text summarization: Hugging Face seq2seq models, then Gemini."""

from __future__ import annotations

import time
from collections.abc import Callable

from ai_gateway.capabilities.common import model_order, run_traced
from ai_gateway.config import WarmupConfig
from ai_gateway.obs.tracing import TraceStore
from ai_gateway.orchestration.normalizer import summarization_normalizer
from ai_gateway.orchestration.orchestrator import FallbackOrchestrator
from ai_gateway.providers.base import ProviderAdapter
from ai_gateway.providers.gemini import GeminiClient, GeminiSummarizationAdapter
from ai_gateway.providers.huggingface import HuggingFaceClient, HuggingFaceSummarizationAdapter
from ai_gateway.schemas import SummarizationResult, SummarizeRequest

SUMMARIZATION_MODELS: dict[str, str] = {
    "bart-cnn": "facebook/bart-large-cnn",
    "t5-small": "google/flan-t5-small",
    "pegasus": "google/pegasus-xsum",
}
DEFAULT_MODEL_ORDER = ("bart-cnn", "t5-small")


class SummarizationService:
    capability = "summarization"

    def __init__(
        self,
        huggingface: HuggingFaceClient,
        gemini: GeminiClient,
        trace_store: TraceStore,
        *,
        warmup: WarmupConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.huggingface = huggingface
        self.gemini = gemini
        self.trace_store = trace_store
        self.warmup = warmup or WarmupConfig()
        self._sleep = sleep

    def adapters_for(self, selected: str) -> list[ProviderAdapter[SummarizeRequest]]:
        adapters: list[ProviderAdapter[SummarizeRequest]] = [
            HuggingFaceSummarizationAdapter(
                self.huggingface,
                model_key=key,
                model_id=SUMMARIZATION_MODELS[key],
                warmup=self.warmup,
                sleep=self._sleep,
            )
            for key in model_order(selected, DEFAULT_MODEL_ORDER, SUMMARIZATION_MODELS)
        ]
        adapters.append(GeminiSummarizationAdapter(self.gemini))
        return adapters

    def summarize(self, request: SummarizeRequest) -> SummarizationResult:
        orchestrator = FallbackOrchestrator(
            self.capability,
            self.adapters_for(request.model),
            normalize=summarization_normalizer(request.text),
        )
        return run_traced(orchestrator, request, self.trace_store).value
