"""In-process document store with a linear top-k scan."""

from __future__ import annotations

import threading
from math import sqrt

from ai_gateway.ingest.embedder import Embedder
from ai_gateway.types import DocumentChunk, ScoredChunk


class InMemoryDocumentStore:
    """Copy-on-write chunk list.

    Writers replace the whole tuple under a lock; readers scan whichever
    snapshot they picked up, so a scan never observes a half-applied upload or
    clear. Nothing is persisted.
    """

    def __init__(self, embedder: Embedder) -> None:
        self.embedder = embedder
        self._chunks: tuple[DocumentChunk, ...] = ()
        self._sources: tuple[str, ...] = ()
        self._lock = threading.Lock()

    @property
    def document_count(self) -> int:
        return len(self._sources)

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    @property
    def is_empty(self) -> bool:
        return not self._chunks

    def add(self, chunks: list[DocumentChunk], *, source_id: str | None = None) -> None:
        """Append chunks; `source_id` counts as one uploaded document."""
        with self._lock:
            self._chunks = self._chunks + tuple(chunks)
            if source_id is not None:
                self._sources = self._sources + (source_id,)

    def top_k(self, query: str, k: int) -> list[DocumentChunk]:
        return [hit.chunk for hit in self.search(query, k)]

    def search(self, query: str, k: int) -> list[ScoredChunk]:
        snapshot = self._chunks
        if not snapshot or k <= 0:
            return []
        query_vector = self.embedder.embed_query(query)
        scored = [
            ScoredChunk(chunk=chunk, score=_cosine_similarity(query_vector, chunk.vector))
            for chunk in snapshot
        ]
        # sorted() is stable, so ties keep upload order.
        ranked = sorted(scored, key=lambda item: item.score, reverse=True)
        return [
            ScoredChunk(chunk=item.chunk, score=item.score, rank=i + 1)
            for i, item in enumerate(ranked[:k])
        ]

    def clear(self) -> None:
        with self._lock:
            self._chunks = ()
            self._sources = ()


def _cosine_similarity(a: list[float] | tuple[float, ...], b: list[float] | tuple[float, ...]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)
