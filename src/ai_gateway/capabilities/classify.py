"""Text classification: one Hugging Face model per task, then Gemini."""

from __future__ import annotations

from ai_gateway.capabilities.common import run_traced
from ai_gateway.obs.tracing import TraceStore
from ai_gateway.orchestration.normalizer import classification_normalizer
from ai_gateway.orchestration.orchestrator import FallbackOrchestrator
from ai_gateway.providers.gemini import GeminiClassificationAdapter, GeminiClient
from ai_gateway.providers.huggingface import HuggingFaceClassificationAdapter, HuggingFaceClient
from ai_gateway.schemas import ClassificationResult, ClassifyRequest

CLASSIFICATION_MODELS: dict[str, str] = {
    "sentiment-analysis": "cardiffnlp/twitter-roberta-base-sentiment",
    "topic-classification": "facebook/bart-large-mnli",
    "emotion-detection": "SamLowe/roberta-base-go_emotions",
}


class ClassificationService:
    capability = "classification"

    def __init__(
        self,
        huggingface: HuggingFaceClient,
        gemini: GeminiClient,
        trace_store: TraceStore,
    ) -> None:
        self.huggingface = huggingface
        self.gemini = gemini
        self.trace_store = trace_store

    def classify(self, request: ClassifyRequest) -> ClassificationResult:
        orchestrator = FallbackOrchestrator(
            self.capability,
            [
                HuggingFaceClassificationAdapter(
                    self.huggingface, model_id=CLASSIFICATION_MODELS[request.model]
                ),
                GeminiClassificationAdapter(self.gemini),
            ],
            normalize=classification_normalizer(request.model),
        )
        return run_traced(orchestrator, request, self.trace_store).value
