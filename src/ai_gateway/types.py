"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["user", "assistant", "system"]


@dataclass(slots=True, frozen=True)
class ChatTurn:
    """One message of a conversation."""

    role: Role
    content: str


@dataclass(slots=True, frozen=True)
class ChatPrompt:
    """Provider-independent chat input: persona instructions plus ordered turns."""

    system_prompt: str
    turns: tuple[ChatTurn, ...]
    summary: str = ""


@dataclass(slots=True)
class ParsedDocument:
    """An uploaded document after text extraction, before chunking."""

    source_id: str
    text: str
    metadata: dict[str, Any]


@dataclass(slots=True, frozen=True)
class DocumentChunk:
    """A chunk of an uploaded document with its placeholder vector."""

    chunk_id: str
    source_id: str
    text: str
    vector: tuple[float, ...]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ScoredChunk:
    """A retrieval result with its similarity score and rank."""

    chunk: DocumentChunk
    score: float
    rank: int = 0


@dataclass(slots=True)
class ProviderAttempt:
    """Record of one adapter invocation made by the orchestrator."""

    capability: str
    provider: str
    ok: bool
    reason: str
    latency_ms: float
