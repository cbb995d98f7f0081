"""Hugging Face Inference API adapters (summarization, classification, OCR)."""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from typing import Any

import httpx

from ai_gateway.config import WarmupConfig
from ai_gateway.errors import ProviderError
from ai_gateway.obs.logging import get_logger
from ai_gateway.providers.base import ProviderAdapter
from ai_gateway.schemas import ClassifyRequest, OcrRequest, SummarizeRequest

logger = get_logger(__name__)

DEFAULT_TOPIC_LABELS = ("business", "politics", "sports")


class HuggingFaceClient:
    """Thin HTTP wrapper around `POST/GET {base_url}/models/{model}`."""

    def __init__(
        self,
        token: str | None,
        *,
        http_client: httpx.Client,
        base_url: str = "https://api-inference.huggingface.co",
    ) -> None:
        self.token = token
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    def model_url(self, model_id: str) -> str:
        return f"{self._base_url}/models/{model_id}"

    def check_available(self, model_id: str) -> None:
        response = self._http.get(self.model_url(model_id), headers=self._auth_headers())
        if response.is_error:
            raise ProviderError(f"Model {model_id} not available: {_error_text(response)}")

    def post_json(self, model_id: str, payload: dict[str, Any]) -> Any:
        response = self._http.post(
            self.model_url(model_id),
            headers=self._auth_headers(),
            json=payload,
        )
        return self._parse(model_id, response)

    def post_bytes(self, model_id: str, data: bytes, content_type: str) -> Any:
        response = self._http.post(
            self.model_url(model_id),
            headers={**self._auth_headers(), "Content-Type": content_type},
            content=data,
        )
        return self._parse(model_id, response)

    def is_loading(self, model_id: str) -> bool:
        """Send a tiny probe and report whether the model is still loading."""
        response = self._http.post(
            self.model_url(model_id),
            headers=self._auth_headers(),
            json={"inputs": "Test"},
        )
        try:
            body = response.json()
        except ValueError:
            return False
        error = body.get("error") if isinstance(body, dict) else None
        return isinstance(error, str) and "loading" in error.lower()

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    @staticmethod
    def _parse(model_id: str, response: httpx.Response) -> Any:
        if response.is_error:
            raise ProviderError(f"Hugging Face API error for {model_id}: {_error_text(response)}")
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"Hugging Face returned non-JSON body for {model_id}") from exc


class HuggingFaceSummarizationAdapter(ProviderAdapter[SummarizeRequest]):
    """Summarization through a seq2seq model with a model warm-up wait.

    Before the real call the model status is checked, then a probe request is
    sent up to `warmup.attempts` times, sleeping `warmup.delay_seconds` while
    the API reports that the model is loading.
    """

    def __init__(
        self,
        client: HuggingFaceClient,
        *,
        model_key: str,
        model_id: str,
        warmup: WarmupConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(name=f"huggingface:{model_key}", credential=client.token)
        self.client = client
        self.model_id = model_id
        self.warmup = warmup or WarmupConfig()
        self._sleep = sleep

    def _invoke(self, request: SummarizeRequest) -> Any:
        self.client.check_available(self.model_id)
        for _ in range(self.warmup.attempts):
            if not self.client.is_loading(self.model_id):
                break
            logger.info("model loading, waiting model=%s", self.model_id)
            self._sleep(self.warmup.delay_seconds)

        text_length = len(request.text)
        return self.client.post_json(
            self.model_id,
            {
                "inputs": request.text,
                "parameters": {
                    "max_length": min(150, math.floor(text_length * 0.4)),
                    "min_length": min(30, math.floor(text_length * 0.1)),
                    "do_sample": False,
                    "early_stopping": True,
                    "num_beams": 4,
                    "length_penalty": 2.0,
                    "no_repeat_ngram_size": 3,
                },
            },
        )


class HuggingFaceClassificationAdapter(ProviderAdapter[ClassifyRequest]):
    """Task-specific text classification; zero-shot for topic classification."""

    def __init__(self, client: HuggingFaceClient, *, model_id: str) -> None:
        super().__init__(name="huggingface", credential=client.token)
        self.client = client
        self.model_id = model_id

    def _invoke(self, request: ClassifyRequest) -> Any:
        payload: dict[str, Any] = {"inputs": request.text}
        if request.model == "topic-classification":
            labels = request.custom_labels or DEFAULT_TOPIC_LABELS
            payload["parameters"] = {"candidate_labels": list(labels)}
        return self.client.post_json(self.model_id, payload)


class HuggingFaceOcrAdapter(ProviderAdapter[OcrRequest]):
    """Image-to-text through a TrOCR/Nougat style model."""

    def __init__(self, client: HuggingFaceClient, *, model_key: str, model_id: str) -> None:
        super().__init__(name=f"huggingface:{model_key}", credential=client.token)
        self.client = client
        self.model_id = model_id

    def _invoke(self, request: OcrRequest) -> Any:
        return self.client.post_bytes(self.model_id, request.image, request.mime_type)


def _error_text(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:200]}"
    if isinstance(body, dict) and body.get("error"):
        return f"HTTP {response.status_code}: {body['error']}"
    return f"HTTP {response.status_code}"
