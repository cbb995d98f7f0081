"""Embedding abstractions and the deterministic placeholder implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from math import sqrt
from typing import Any


class Embedder(ABC):
    """`text -> vector` interface used by upload and retrieval."""

    @abstractmethod
    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed many documents."""

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Embed one query."""


class CharSumEmbedder(Embedder):
    """Bag-of-words vector bucketed by each word's character-code sum.

    Carries no semantic meaning. Two texts score as similar only when they
    share words (or words whose code points happen to sum into the same
    bucket). It keeps retrieval deterministic and offline.
    """

    def __init__(self, dimension: int = 128) -> None:
        self.dimension = dimension

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._embed(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._embed(text)

    def _embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for word in text.lower().split():
            vector[sum(ord(char) for char in word) % self.dimension] += 1.0

        norm = sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]


class LangChainEmbedder(Embedder):
    """Adapts any LangChain `Embeddings` object (e.g. `OpenAIEmbeddings`)."""

    def __init__(self, embeddings: Any) -> None:
        self._embeddings = embeddings

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [list(vector) for vector in self._embeddings.embed_documents(texts)]

    def embed_query(self, text: str) -> list[float]:
        return list(self._embeddings.embed_query(text))
