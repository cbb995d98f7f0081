"""Ordered provider fallback shared by every capability."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ai_gateway.errors import (
    NormalizationError,
    NotConfiguredError,
    ProviderError,
    ProvidersUnavailableError,
    StreamInterruptedError,
)
from ai_gateway.obs.logging import get_logger
from ai_gateway.obs.tracing import Timer
from ai_gateway.providers.base import Failure, ProviderAdapter, StreamingProviderAdapter, close_stream
from ai_gateway.types import ProviderAttempt

logger = get_logger(__name__)

RequestT = TypeVar("RequestT")
ResultT = TypeVar("ResultT")

AttemptObserver = Callable[[ProviderAttempt], None]


@dataclass(slots=True)
class FallbackOutcome(Generic[ResultT]):
    value: ResultT
    provider: str
    attempts: list[ProviderAttempt]


@dataclass(slots=True)
class StreamOutcome:
    """An opened stream; `attempts` keeps growing if the stream is interrupted."""

    chunks: Iterator[str]
    provider: str
    attempts: list[ProviderAttempt] = field(default_factory=list)


class FallbackOrchestrator(Generic[RequestT, ResultT]):
    """Tries adapters strictly in order and returns the first usable result.

    One attempt per adapter, no retries. A payload that the normalizer cannot
    reshape counts as that attempt's failure. When every adapter fails the
    caller gets a `ProvidersUnavailableError` listing each attempt, not only
    the last one. Each attempt is reported to `observer`; the observer cannot
    influence the result.
    """

    def __init__(
        self,
        capability: str,
        adapters: Sequence[ProviderAdapter[RequestT]],
        *,
        normalize: Callable[[Any], ResultT],
        observer: AttemptObserver | None = None,
        not_configured_status: int = 503,
        unavailable_status: int = 503,
    ) -> None:
        if not adapters:
            raise ValueError(f"{capability}: at least one adapter is required")
        self.capability = capability
        self.adapters = list(adapters)
        self.normalize = normalize
        self.observer = observer
        self.not_configured_status = not_configured_status
        self.unavailable_status = unavailable_status

    def ensure_configured(self) -> None:
        _ensure_configured(self.capability, self.adapters, self.not_configured_status)

    def run(self, request: RequestT) -> FallbackOutcome[ResultT]:
        self.ensure_configured()
        attempts: list[ProviderAttempt] = []

        for index, adapter in enumerate(self.adapters):
            if index:
                logger.info("falling back capability=%s provider=%s", self.capability, adapter.name)
            with Timer() as timer:
                result = adapter.call(request)
                value: ResultT | None = None
                reason = ""
                if isinstance(result, Failure):
                    reason = result.reason
                else:
                    try:
                        value = self.normalize(result.payload)
                    except NormalizationError as exc:
                        reason = f"unparseable response: {exc}"

            attempt = ProviderAttempt(
                capability=self.capability,
                provider=adapter.name,
                ok=not reason,
                reason=reason,
                latency_ms=timer.elapsed_ms,
            )
            self._record(attempt, attempts)
            if attempt.ok:
                return FallbackOutcome(value=value, provider=adapter.name, attempts=attempts)

        raise _unavailable(self.capability, attempts, self.unavailable_status)

    def _record(self, attempt: ProviderAttempt, attempts: list[ProviderAttempt]) -> None:
        _record_attempt(attempt, attempts, self.observer)


class StreamingFallbackOrchestrator(Generic[RequestT]):
    """Streaming variant: falls back only until the first fragment arrives.

    `open_stream` runs eagerly up to the first fragment so configuration and
    exhaustion errors surface before any output is sent. After that, a provider
    failure is raised from the iterator as `StreamInterruptedError`; fragments
    already delivered are never retracted and no other provider is tried.
    """

    def __init__(
        self,
        capability: str,
        adapters: Sequence[StreamingProviderAdapter[RequestT]],
        *,
        observer: AttemptObserver | None = None,
        not_configured_status: int = 400,
        unavailable_status: int = 503,
    ) -> None:
        if not adapters:
            raise ValueError(f"{capability}: at least one adapter is required")
        self.capability = capability
        self.adapters = list(adapters)
        self.observer = observer
        self.not_configured_status = not_configured_status
        self.unavailable_status = unavailable_status

    def ensure_configured(self) -> None:
        _ensure_configured(self.capability, self.adapters, self.not_configured_status)

    def open_stream(self, request: RequestT) -> StreamOutcome:
        self.ensure_configured()
        attempts: list[ProviderAttempt] = []

        for adapter in self.adapters:
            chunks = adapter.stream(request)
            with Timer() as timer:
                try:
                    first = next(chunks)
                except StopIteration:
                    reason = "empty response"
                except ProviderError as exc:
                    reason = str(exc)
                else:
                    reason = ""

            attempt = ProviderAttempt(
                capability=self.capability,
                provider=adapter.name,
                ok=not reason,
                reason=reason,
                latency_ms=timer.elapsed_ms,
            )
            _record_attempt(attempt, attempts, self.observer)
            if attempt.ok:
                return StreamOutcome(
                    chunks=self._forward(adapter.name, first, chunks, attempts),
                    provider=adapter.name,
                    attempts=attempts,
                )

        raise _unavailable(self.capability, attempts, self.unavailable_status)

    def _forward(
        self,
        provider: str,
        first: str,
        chunks: Iterator[str],
        attempts: list[ProviderAttempt],
    ) -> Iterator[str]:
        try:
            yield first
            yield from chunks
        except ProviderError as exc:
            attempt = ProviderAttempt(
                capability=self.capability,
                provider=provider,
                ok=False,
                reason=f"stream interrupted: {exc}",
                latency_ms=0.0,
            )
            _record_attempt(attempt, attempts, self.observer)
            raise StreamInterruptedError(
                f"The {self.capability} stream from {provider} failed mid-response: {exc}"
            ) from exc
        finally:
            close_stream(chunks)


def _ensure_configured(capability: str, adapters: Sequence[Any], status_code: int) -> None:
    credentialed = [adapter for adapter in adapters if adapter.requires_credential]
    if credentialed and not any(adapter.is_configured for adapter in credentialed):
        names = ", ".join(sorted({adapter.name.split(":", 1)[0] for adapter in credentialed}))
        raise NotConfiguredError(
            f"No providers configured for {capability}. Set an API credential for one of: {names}.",
            status_code=status_code,
        )


def _record_attempt(
    attempt: ProviderAttempt,
    attempts: list[ProviderAttempt],
    observer: AttemptObserver | None,
) -> None:
    attempts.append(attempt)
    if attempt.ok:
        logger.info(
            "provider succeeded capability=%s provider=%s latency_ms=%.1f",
            attempt.capability,
            attempt.provider,
            attempt.latency_ms,
        )
    else:
        logger.warning(
            "provider failed capability=%s provider=%s reason=%s",
            attempt.capability,
            attempt.provider,
            attempt.reason,
        )
    if observer is not None:
        observer(attempt)


def _unavailable(
    capability: str, attempts: list[ProviderAttempt], status_code: int
) -> ProvidersUnavailableError:
    details = "; ".join(f"{attempt.provider}: {attempt.reason}" for attempt in attempts)
    logger.error("all providers failed capability=%s attempts=%d", capability, len(attempts))
    return ProvidersUnavailableError(
        f"All {capability} providers are currently unavailable ({details}).",
        attempts=attempts,
        status_code=status_code,
    )
