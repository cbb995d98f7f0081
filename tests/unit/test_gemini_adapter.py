import json

import httpx

from ai_gateway.providers.base import Failure, Success
from ai_gateway.providers.gemini import (
    GeminiChatAdapter,
    GeminiClassificationAdapter,
    GeminiClient,
    GeminiOcrAdapter,
    GeminiSummarizationAdapter,
    parse_json_reply,
)
from ai_gateway.schemas import ClassifyRequest, OcrRequest, SummarizeRequest
from ai_gateway.types import ChatPrompt, ChatTurn


def _client(handler, api_key: str | None = "gm-test") -> GeminiClient:
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return GeminiClient(api_key, http_client=http_client, base_url="https://gemini.test/v1beta")


def _reply(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def test_summarization_uses_generate_content() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply("Gemini summary."))

    result = GeminiSummarizationAdapter(_client(handler)).call(SummarizeRequest(text="word " * 20))

    assert result == Success(provider="gemini", payload="Gemini summary.")
    assert seen["path"] == "/v1beta/models/gemini-1.5-flash:generateContent"
    assert seen["key"] == "gm-test"
    assert "concise summary" in seen["body"]["contents"][0]["parts"][0]["text"]


def test_classification_reply_in_code_fence_is_parsed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_reply('```json\n{"label": "positive", "score": 0.9}\n```'))

    result = GeminiClassificationAdapter(_client(handler)).call(
        ClassifyRequest(text="I love it", model="sentiment-analysis")
    )

    assert result == Success(provider="gemini", payload={"label": "positive", "score": 0.9})


def test_parse_json_reply_finds_object_inside_prose() -> None:
    assert parse_json_reply('Sure! {"labels": ["sports"], "scores": [0.8]} Hope it helps.') == {
        "labels": ["sports"],
        "scores": [0.8],
    }


def test_blocked_prompt_is_a_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    result = GeminiSummarizationAdapter(_client(handler)).call(SummarizeRequest(text="word " * 20))

    assert isinstance(result, Failure)
    assert "SAFETY" in result.reason


def test_ocr_sends_inline_image() -> None:
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=_reply("INVOICE 42"))

    result = GeminiOcrAdapter(_client(handler)).call(OcrRequest(image=b"abc", mime_type="image/jpeg"))

    assert result == Success(provider="gemini", payload="INVOICE 42")
    inline = bodies[0]["contents"][0]["parts"][1]["inline_data"]
    assert inline == {"mime_type": "image/jpeg", "data": "YWJj"}


def test_chat_streams_server_sent_events() -> None:
    bodies = []
    events = "".join(f"data: {json.dumps(_reply(text))}\n\n" for text in ("Hel", "lo"))

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append((request.url.params.get("alt"), json.loads(request.content)))
        return httpx.Response(200, content=events.encode(), headers={"Content-Type": "text/event-stream"})

    prompt = ChatPrompt(
        system_prompt="Be brief.",
        turns=(
            ChatTurn(role="user", content="Hi"),
            ChatTurn(role="assistant", content="Hello!"),
            ChatTurn(role="user", content="Say hello again"),
        ),
        summary="User greeted the assistant.",
    )

    chunks = list(GeminiChatAdapter(_client(handler)).stream(prompt))

    assert chunks == ["Hel", "lo"]
    alt, body = bodies[0]
    assert alt == "sse"
    assert [content["role"] for content in body["contents"]] == ["user", "model", "user"]
    system_text = body["systemInstruction"]["parts"][0]["text"]
    assert system_text.startswith("Be brief.")
    assert "User greeted the assistant." in system_text


def test_missing_key_never_calls_gemini() -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=_reply("x"))

    adapter = GeminiSummarizationAdapter(_client(handler, api_key="your_gemini_api_key_here"))

    assert adapter.call(SummarizeRequest(text="word " * 20)) == Failure(
        provider="gemini", reason="credential not configured"
    )
    assert requests == []
