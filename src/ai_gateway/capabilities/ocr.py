"""Image text extraction: TrOCR/Nougat models, then Gemini Vision."""

from __future__ import annotations

from ai_gateway.capabilities.common import model_order, run_traced
from ai_gateway.obs.tracing import TraceStore
from ai_gateway.orchestration.normalizer import normalize_ocr
from ai_gateway.orchestration.orchestrator import FallbackOrchestrator
from ai_gateway.providers.base import ProviderAdapter
from ai_gateway.providers.gemini import GeminiClient, GeminiOcrAdapter
from ai_gateway.providers.huggingface import HuggingFaceClient, HuggingFaceOcrAdapter
from ai_gateway.schemas import OcrRequest, OcrResult

OCR_MODELS: dict[str, str] = {
    "trocr-base": "microsoft/trocr-base-printed",
    "trocr-large": "microsoft/trocr-large-printed",
    "nougat": "facebook/nougat-small",
}
DEFAULT_MODEL_ORDER = ("trocr-base", "trocr-large")


class OcrService:
    capability = "ocr"

    def __init__(
        self,
        huggingface: HuggingFaceClient,
        gemini: GeminiClient,
        trace_store: TraceStore,
    ) -> None:
        self.huggingface = huggingface
        self.gemini = gemini
        self.trace_store = trace_store

    def adapters_for(self, selected: str) -> list[ProviderAdapter[OcrRequest]]:
        adapters: list[ProviderAdapter[OcrRequest]] = [
            HuggingFaceOcrAdapter(self.huggingface, model_key=key, model_id=OCR_MODELS[key])
            for key in model_order(selected, DEFAULT_MODEL_ORDER, OCR_MODELS)
        ]
        adapters.append(GeminiOcrAdapter(self.gemini))
        return adapters

    def extract_text(self, request: OcrRequest) -> OcrResult:
        orchestrator = FallbackOrchestrator(
            self.capability,
            self.adapters_for(request.model),
            normalize=normalize_ocr,
        )
        return run_traced(orchestrator, request, self.trace_store).value
