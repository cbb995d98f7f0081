"""Upload pipeline: extract -> split -> embed -> add to the document store."""

from __future__ import annotations

from langchain_text_splitters import RecursiveCharacterTextSplitter

from ai_gateway.config import ChunkingConfig
from ai_gateway.ingest.embedder import Embedder
from ai_gateway.ingest.parser import ParserRegistry
from ai_gateway.retrieval.document_store import InMemoryDocumentStore
from ai_gateway.types import DocumentChunk


class UploadPipeline:
    """Coordinates parser, splitter, embedder and document store stages."""

    def __init__(
        self,
        parser_registry: ParserRegistry,
        embedder: Embedder,
        store: InMemoryDocumentStore,
        config: ChunkingConfig | None = None,
    ) -> None:
        self.config = config or ChunkingConfig()
        if self.config.chunk_overlap >= self.config.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")
        self._parser_registry = parser_registry
        self._embedder = embedder
        self._store = store
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=self.config.chunk_size,
            chunk_overlap=self.config.chunk_overlap,
        )

    def ingest_upload(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str | None,
    ) -> list[DocumentChunk]:
        """Index one uploaded file and return the chunks created for it."""

        parsed = self._parser_registry.parse_upload(
            data, filename=filename, content_type=content_type
        )
        texts = self._splitter.split_text(parsed.text)
        vectors = self._embedder.embed_documents(texts)
        chunks = [
            DocumentChunk(
                chunk_id=f"{parsed.source_id}-chunk-{index:04d}",
                source_id=parsed.source_id,
                text=text,
                vector=tuple(vector),
                metadata={**parsed.metadata, "chunk_index": index},
            )
            for index, (text, vector) in enumerate(zip(texts, vectors, strict=True))
        ]
        self._store.add(chunks, source_id=parsed.source_id)
        return chunks
