from typing import Any

import pytest

from ai_gateway.errors import NormalizationError, NotConfiguredError, ProvidersUnavailableError
from ai_gateway.orchestration.orchestrator import FallbackOrchestrator
from ai_gateway.providers.base import Failure, ProviderAdapter, Success


class FakeAdapter(ProviderAdapter[str]):
    def __init__(
        self,
        name: str,
        *,
        payload: Any = None,
        error: Exception | None = None,
        credential: str | None = "test-key",
    ) -> None:
        super().__init__(name=name, credential=credential)
        self.payload = payload
        self.error = error
        self.calls = 0

    def _invoke(self, request: str) -> Any:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payload


def _upper(raw: Any) -> str:
    if not isinstance(raw, str):
        raise NormalizationError("expected text")
    return raw.upper()


def test_adapter_converts_exceptions_into_failures() -> None:
    adapter = FakeAdapter("flaky", error=TimeoutError("read timed out"))

    result = adapter.call("hello")

    assert isinstance(result, Failure)
    assert result.provider == "flaky"
    assert result.reason == "TimeoutError: read timed out"


def test_unconfigured_adapter_fails_without_invoking() -> None:
    adapter = FakeAdapter("missing", payload="ok", credential="your_api_key_here")

    assert adapter.call("hello") == Failure(provider="missing", reason="credential not configured")
    assert adapter.calls == 0
    assert isinstance(FakeAdapter("ok", payload="x").call("hello"), Success)


def test_stops_after_first_usable_result() -> None:
    first = FakeAdapter("first", error=RuntimeError("boom"))
    second = FakeAdapter("second", payload="hello")
    third = FakeAdapter("third", payload="never")
    orchestrator = FallbackOrchestrator("demo", [first, second, third], normalize=_upper)

    outcome = orchestrator.run("request")

    assert outcome.value == "HELLO"
    assert outcome.provider == "second"
    assert (first.calls, second.calls, third.calls) == (1, 1, 0)
    assert [(a.provider, a.ok) for a in outcome.attempts] == [("first", False), ("second", True)]


def test_unparseable_payload_falls_through_to_next_provider() -> None:
    first = FakeAdapter("first", payload={"unexpected": True})
    second = FakeAdapter("second", payload="fine")
    orchestrator = FallbackOrchestrator("demo", [first, second], normalize=_upper)

    outcome = orchestrator.run("request")

    assert outcome.provider == "second"
    assert outcome.attempts[0].reason.startswith("unparseable response")


def test_exhaustion_reports_every_attempt_in_order() -> None:
    adapters = [
        FakeAdapter("first", error=RuntimeError("boom")),
        FakeAdapter("second", error=ValueError("bad gateway")),
    ]
    orchestrator = FallbackOrchestrator("demo", adapters, normalize=_upper)

    with pytest.raises(ProvidersUnavailableError) as exc_info:
        orchestrator.run("request")

    message = str(exc_info.value)
    assert message.startswith("All demo providers are currently unavailable")
    assert message.index("first: RuntimeError: boom") < message.index("second: ValueError: bad gateway")
    assert exc_info.value.status_code == 503
    assert [a.provider for a in exc_info.value.attempts] == ["first", "second"]


def test_exhaustion_status_is_configurable_per_capability() -> None:
    orchestrator = FallbackOrchestrator(
        "qna",
        [FakeAdapter("only", error=RuntimeError("down"))],
        normalize=_upper,
        unavailable_status=500,
    )

    with pytest.raises(ProvidersUnavailableError) as exc_info:
        orchestrator.run("request")
    assert exc_info.value.status_code == 500


def test_no_configured_adapter_short_circuits() -> None:
    adapters = [FakeAdapter("a", payload="x", credential=None), FakeAdapter("b", payload="y", credential="")]
    orchestrator = FallbackOrchestrator("demo", adapters, normalize=_upper, not_configured_status=400)

    with pytest.raises(NotConfiguredError) as exc_info:
        orchestrator.run("request")

    assert exc_info.value.status_code == 400
    assert all(adapter.calls == 0 for adapter in adapters)


def test_unconfigured_adapters_are_skipped_in_order() -> None:
    missing = FakeAdapter("missing", payload="x", credential=None)
    ready = FakeAdapter("ready", payload="y")
    orchestrator = FallbackOrchestrator("demo", [missing, ready], normalize=_upper)

    outcome = orchestrator.run("request")

    assert outcome.value == "Y"
    assert missing.calls == 0
    assert outcome.attempts[0].reason == "credential not configured"


def test_observer_sees_each_attempt() -> None:
    observed = []
    orchestrator = FallbackOrchestrator(
        "demo",
        [FakeAdapter("first", error=RuntimeError("boom")), FakeAdapter("second", payload="ok")],
        normalize=_upper,
        observer=observed.append,
    )

    orchestrator.run("request")

    assert [(a.provider, a.ok) for a in observed] == [("first", False), ("second", True)]
    assert all(a.latency_ms >= 0.0 for a in observed)


def test_adapter_list_must_not_be_empty() -> None:
    with pytest.raises(ValueError):
        FallbackOrchestrator("demo", [], normalize=_upper)
