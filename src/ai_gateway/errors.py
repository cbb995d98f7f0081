"""Exception taxonomy shared by adapters, orchestration and the HTTP layer."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ai_gateway.types import ProviderAttempt


class GatewayError(Exception):
    """Base error; `status_code` is the HTTP status the API maps it to."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class InputValidationError(GatewayError):
    """Request rejected before any provider is contacted."""

    status_code = 400


class UnsupportedDocumentError(InputValidationError):
    """Uploaded document type cannot be parsed or yields no text."""


class NoDocumentsError(InputValidationError):
    """A retrieval query was issued before any document was uploaded."""


class NotConfiguredError(GatewayError):
    """Every provider of a capability lacks a usable credential."""

    status_code = 503


class ProviderError(GatewayError):
    """A single provider call failed; never escapes an adapter boundary."""

    status_code = 502


class NormalizationError(GatewayError):
    """A provider payload did not match any known response shape."""

    status_code = 502


class ProvidersUnavailableError(GatewayError):
    """All providers of a capability were tried and failed."""

    status_code = 503

    def __init__(
        self,
        message: str,
        *,
        attempts: Sequence[ProviderAttempt] = (),
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.attempts = list(attempts)


class StreamInterruptedError(GatewayError):
    """A streaming provider failed after output was already delivered."""
