"""Google Gemini REST adapters used as the generic fallback provider."""

from __future__ import annotations

import base64
import json
import re
from collections.abc import Iterator
from typing import Any

import httpx

from ai_gateway.errors import ProviderError
from ai_gateway.providers.base import ProviderAdapter, StreamingProviderAdapter
from ai_gateway.providers.huggingface import DEFAULT_TOPIC_LABELS
from ai_gateway.schemas import ClassifyRequest, OcrRequest, SummarizeRequest
from ai_gateway.types import ChatPrompt

_CODE_FENCE = re.compile(r"```(?:json)?\s*|```", flags=re.IGNORECASE)

OCR_PROMPT = "Extract all text from this image, preserving the original formatting as much as possible."


class GeminiClient:
    """Calls `generateContent` / `streamGenerateContent` on one Gemini model."""

    def __init__(
        self,
        api_key: str | None,
        *,
        http_client: httpx.Client,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        model: str = "gemini-1.5-flash",
    ) -> None:
        self.api_key = api_key
        self.model = model
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    def generate(
        self,
        contents: list[dict[str, Any]],
        *,
        system_prompt: str | None = None,
    ) -> str:
        response = self._http.post(
            f"{self._base_url}/models/{self.model}:generateContent",
            headers=self._headers(),
            json=_build_body(contents, system_prompt),
        )
        if response.is_error:
            raise ProviderError(f"Gemini API error: HTTP {response.status_code}: {response.text[:200]}")
        return _extract_text(response.json())

    def stream(
        self,
        contents: list[dict[str, Any]],
        *,
        system_prompt: str | None = None,
    ) -> Iterator[str]:
        with self._http.stream(
            "POST",
            f"{self._base_url}/models/{self.model}:streamGenerateContent",
            params={"alt": "sse"},
            headers=self._headers(),
            json=_build_body(contents, system_prompt),
        ) as response:
            if response.is_error:
                response.read()
                raise ProviderError(
                    f"Gemini API error: HTTP {response.status_code}: {response.text[:200]}"
                )
            for line in response.iter_lines():
                if not line.startswith("data:"):
                    continue
                data = line[len("data:") :].strip()
                if not data:
                    continue
                yield _extract_text(json.loads(data), allow_empty=True)

    def generate_text(self, prompt: str) -> str:
        return self.generate([_user_content(prompt)])

    def _headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self.api_key or "", "Content-Type": "application/json"}


class GeminiSummarizationAdapter(ProviderAdapter[SummarizeRequest]):
    def __init__(self, client: GeminiClient) -> None:
        super().__init__(name="gemini", credential=client.api_key)
        self.client = client

    def _invoke(self, request: SummarizeRequest) -> Any:
        prompt = (
            f"Please provide a {request.summary_type} summary of the following text. "
            "The summary should be concise, informative, and capture the main points:\n\n"
            f"Text to summarize:\n{request.text}\n\nSummary:"
        )
        return self.client.generate_text(prompt)


class GeminiClassificationAdapter(ProviderAdapter[ClassifyRequest]):
    """Prompts Gemini for a JSON classification matching one of the known shapes."""

    def __init__(self, client: GeminiClient) -> None:
        super().__init__(name="gemini", credential=client.api_key)
        self.client = client

    def _invoke(self, request: ClassifyRequest) -> Any:
        prompt = f'Analyze the following text: "{request.text}".\n\n'
        if request.model == "sentiment-analysis":
            prompt += (
                "Classify the sentiment as positive, negative, or neutral. "
                'Provide the result in JSON format: {"label": "sentiment", "score": 0.99}'
            )
        elif request.model == "topic-classification":
            labels = request.custom_labels or DEFAULT_TOPIC_LABELS
            prompt += (
                f"Classify the text into one of these categories: {', '.join(labels)}. "
                'Provide the result in JSON format: {"labels": ["..."], "scores": [...]}'
            )
        else:
            prompt += (
                "Detect the primary emotion. "
                'Provide the result in JSON format: {"label": "emotion", "score": 0.99}'
            )
        return parse_json_reply(self.client.generate_text(prompt))


class GeminiOcrAdapter(ProviderAdapter[OcrRequest]):
    """Gemini Vision with the image sent inline."""

    def __init__(self, client: GeminiClient) -> None:
        super().__init__(name="gemini", credential=client.api_key)
        self.client = client

    def _invoke(self, request: OcrRequest) -> Any:
        parts = [
            {"text": OCR_PROMPT},
            {
                "inline_data": {
                    "mime_type": request.mime_type,
                    "data": base64.b64encode(request.image).decode("ascii"),
                }
            },
        ]
        return self.client.generate([{"role": "user", "parts": parts}])


class GeminiChatAdapter(StreamingProviderAdapter[ChatPrompt]):
    def __init__(self, client: GeminiClient) -> None:
        super().__init__(name="gemini", credential=client.api_key)
        self.client = client

    def _stream(self, request: ChatPrompt) -> Iterator[str]:
        system_parts = [request.system_prompt]
        if request.summary:
            system_parts.append(f"Summary of the earlier conversation:\n{request.summary}")
        contents: list[dict[str, Any]] = []
        for turn in request.turns:
            if turn.role == "system":
                system_parts.append(turn.content)
                continue
            role = "model" if turn.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": turn.content}]})
        yield from self.client.stream(contents, system_prompt="\n\n".join(system_parts))


def parse_json_reply(text: str) -> Any:
    """Parse a model reply that may wrap its JSON in markdown code fences."""
    cleaned = _CODE_FENCE.sub("", text).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", cleaned, flags=re.DOTALL)
        if match is None:
            raise ProviderError(f"Gemini reply is not JSON: {cleaned[:120]}") from None
        return json.loads(match.group(0))


def _user_content(text: str) -> dict[str, Any]:
    return {"role": "user", "parts": [{"text": text}]}


def _build_body(contents: list[dict[str, Any]], system_prompt: str | None) -> dict[str, Any]:
    body: dict[str, Any] = {"contents": contents}
    if system_prompt:
        body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
    return body


def _extract_text(payload: Any, *, allow_empty: bool = False) -> str:
    if not isinstance(payload, dict):
        raise ProviderError("Unexpected Gemini response shape")
    candidates = payload.get("candidates")
    if not candidates:
        feedback = payload.get("promptFeedback") or {}
        if feedback.get("blockReason"):
            raise ProviderError(f"Gemini blocked the prompt: {feedback['blockReason']}")
        if allow_empty:
            return ""
        raise ProviderError("Gemini response had no candidates")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(str(part.get("text", "")) for part in parts if isinstance(part, dict))
    if not text and not allow_empty:
        raise ProviderError("Gemini response had no text")
    return text
