"""Provider adapter contracts and the provider result union."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ai_gateway.config import credential_is_set
from ai_gateway.errors import ProviderError
from ai_gateway.obs.logging import get_logger

logger = get_logger(__name__)

RequestT = TypeVar("RequestT")


@dataclass(slots=True, frozen=True)
class Success:
    """Raw payload returned by one provider call."""

    provider: str
    payload: Any


@dataclass(slots=True, frozen=True)
class Failure:
    """Reason a provider call did not produce a payload."""

    provider: str
    reason: str


ProviderResult = Success | Failure


class ProviderAdapter(ABC, Generic[RequestT]):
    """Wraps one external provider behind `call(request) -> ProviderResult`.

    Subclasses implement `_invoke` and may raise anything; `call` turns every
    exception into a `Failure` so no provider-specific error reaches the
    orchestrator. A missing credential fails without touching the network.
    """

    requires_credential: bool = True

    def __init__(self, *, name: str, credential: str | None = None) -> None:
        self.name = name
        self._credential = credential

    @property
    def is_configured(self) -> bool:
        return not self.requires_credential or credential_is_set(self._credential)

    def call(self, request: RequestT) -> ProviderResult:
        if not self.is_configured:
            return Failure(provider=self.name, reason="credential not configured")
        try:
            payload = self._invoke(request)
        except Exception as exc:
            reason = _describe(exc)
            logger.warning("provider call failed provider=%s reason=%s", self.name, reason)
            return Failure(provider=self.name, reason=reason)
        return Success(provider=self.name, payload=payload)

    @abstractmethod
    def _invoke(self, request: RequestT) -> Any:
        """Perform exactly one provider call and return its raw payload."""


class StreamingProviderAdapter(ABC, Generic[RequestT]):
    """Streaming counterpart of `ProviderAdapter`.

    `stream` yields text fragments as the provider produces them. Any failure,
    before or after the first fragment, is re-raised as `ProviderError`.
    """

    requires_credential: bool = True

    def __init__(self, *, name: str, credential: str | None = None) -> None:
        self.name = name
        self._credential = credential

    @property
    def is_configured(self) -> bool:
        return not self.requires_credential or credential_is_set(self._credential)

    def stream(self, request: RequestT) -> Iterator[str]:
        if not self.is_configured:
            raise ProviderError(f"{self.name}: credential not configured")
        fragments = self._stream(request)
        try:
            for fragment in fragments:
                if fragment:
                    yield fragment
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"{self.name}: {_describe(exc)}") from exc
        finally:
            close_stream(fragments)

    @abstractmethod
    def _stream(self, request: RequestT) -> Iterator[str]:
        """Yield raw text fragments from one provider call."""


def close_stream(chunks: Any) -> None:
    """Close a generator-backed stream so its upstream connection is released."""
    close = getattr(chunks, "close", None)
    if close is not None:
        close()


def _describe(exc: Exception) -> str:
    message = str(exc).strip()
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__
