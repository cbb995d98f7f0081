"""Document upload and retrieval-augmented answers over the uploaded set."""

from __future__ import annotations

from typing import Any

from ai_gateway.capabilities.common import run_traced
from ai_gateway.config import RetrievalConfig
from ai_gateway.errors import NoDocumentsError
from ai_gateway.ingest.pipeline import UploadPipeline
from ai_gateway.obs.logging import get_logger
from ai_gateway.obs.tracing import TraceStore
from ai_gateway.orchestration.normalizer import extract_answer_text
from ai_gateway.orchestration.orchestrator import FallbackOrchestrator
from ai_gateway.providers.openrouter import RAG_PROMPT, OpenRouterAnswerAdapter
from ai_gateway.retrieval.document_store import InMemoryDocumentStore
from ai_gateway.schemas import QnaRequest, RagQueryRequest, RagQueryResult, RagUploadResult

logger = get_logger(__name__)

STATUS_READY = "Ready to answer questions"
STATUS_EMPTY = "No documents uploaded"


class RagService:
    capability = "rag"

    def __init__(
        self,
        pipeline: UploadPipeline,
        store: InMemoryDocumentStore,
        llm: Any,
        *,
        credential: str | None,
        trace_store: TraceStore,
        config: RetrievalConfig | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.store = store
        self.trace_store = trace_store
        self.config = config or RetrievalConfig()
        self.orchestrator = FallbackOrchestrator(
            self.capability,
            [OpenRouterAnswerAdapter(llm, credential=credential, prompt=RAG_PROMPT)],
            normalize=extract_answer_text,
            not_configured_status=400,
            unavailable_status=500,
        )

    def upload(self, data: bytes, *, filename: str, content_type: str | None) -> RagUploadResult:
        chunks = self.pipeline.ingest_upload(data, filename=filename, content_type=content_type)
        logger.info("indexed upload filename=%s chunks=%d", filename, len(chunks))
        return RagUploadResult(
            filename=filename,
            chunk_count=len(chunks),
            total_documents=self.store.document_count,
            message=f"Successfully processed {filename} into {len(chunks)} chunks.",
        )

    def query(self, request: RagQueryRequest) -> RagQueryResult:
        if self.store.is_empty:
            raise NoDocumentsError("No documents uploaded. Please upload documents first.")
        self.orchestrator.ensure_configured()

        hits = self.store.top_k(request.question, self.config.top_k)
        context = "\n\n".join(chunk.text for chunk in hits)
        outcome = run_traced(
            self.orchestrator,
            QnaRequest(question=request.question, context=context),
            self.trace_store,
        )
        return RagQueryResult(
            question=request.question,
            answer=outcome.value,
            total_documents=self.store.document_count,
        )

    def clear(self) -> dict[str, str]:
        self.store.clear()
        logger.info("cleared document store")
        return {"message": "All documents cleared from memory."}

    def status(self) -> dict[str, Any]:
        has_documents = not self.store.is_empty
        return {
            "totalDocuments": self.store.document_count,
            "hasDocuments": has_documents,
            "status": STATUS_READY if has_documents else STATUS_EMPTY,
        }
