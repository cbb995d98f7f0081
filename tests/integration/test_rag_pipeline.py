import pytest
from langchain_core.messages import AIMessage

from ai_gateway.capabilities.rag import STATUS_EMPTY, STATUS_READY, RagService
from ai_gateway.config import RetrievalConfig
from ai_gateway.errors import NoDocumentsError, NotConfiguredError, ProvidersUnavailableError
from ai_gateway.ingest.embedder import CharSumEmbedder
from ai_gateway.ingest.parser import ParserRegistry
from ai_gateway.ingest.pipeline import UploadPipeline
from ai_gateway.obs.tracing import TraceStore
from ai_gateway.retrieval.document_store import InMemoryDocumentStore
from ai_gateway.schemas import RagQueryRequest


def _service(llm, *, credential: str | None = "or-test", top_k: int = 1) -> RagService:
    store = InMemoryDocumentStore(CharSumEmbedder())
    pipeline = UploadPipeline(ParserRegistry(), store.embedder, store)
    return RagService(
        pipeline,
        store,
        llm,
        credential=credential,
        trace_store=TraceStore(),
        config=RetrievalConfig(top_k=top_k),
    )


def test_query_answers_from_retrieved_context() -> None:
    prompts = []

    def llm(prompt_value):
        prompts.append(prompt_value.to_string())
        return AIMessage(content="Customer data must be encrypted at rest.")

    service = _service(llm)
    service.upload(
        b"Company policy states all employees must encrypt customer data at rest.",
        filename="policy.txt",
        content_type="text/plain",
    )
    service.upload(
        b"Holiday arrangements are documented in the employee handbook.",
        filename="faq.txt",
        content_type="text/plain",
    )

    result = service.query(RagQueryRequest(question="What does policy require for customer data?"))

    assert result.answer == "Customer data must be encrypted at rest."
    assert result.total_documents == 2
    assert "encrypt customer data at rest" in prompts[0]
    assert "Holiday arrangements" not in prompts[0]
    assert "I don't have enough information in the provided documents" in prompts[0]
    trace = service.trace_store.list_recent(1)[0]
    assert trace.capability == "rag"
    assert trace.provider == "openrouter"


def test_upload_status_and_clear() -> None:
    service = _service(lambda prompt_value: AIMessage(content="unused"))

    assert service.status() == {"totalDocuments": 0, "hasDocuments": False, "status": STATUS_EMPTY}

    uploaded = service.upload(b"Onboarding takes two weeks.", filename="guide.txt", content_type="text/plain")

    assert uploaded.chunk_count == 1
    assert uploaded.message == "Successfully processed guide.txt into 1 chunks."
    assert service.status()["status"] == STATUS_READY

    assert service.clear() == {"message": "All documents cleared from memory."}
    assert service.status()["hasDocuments"] is False


def test_query_before_upload_is_rejected() -> None:
    service = _service(lambda prompt_value: AIMessage(content="unused"))

    with pytest.raises(NoDocumentsError):
        service.query(RagQueryRequest(question="Anything?"))


def test_missing_openrouter_key_is_a_client_error() -> None:
    service = _service(None, credential=None)
    service.upload(b"Some content.", filename="a.txt", content_type="text/plain")

    with pytest.raises(NotConfiguredError) as exc_info:
        service.query(RagQueryRequest(question="Anything?"))

    assert exc_info.value.status_code == 400


def test_provider_failure_is_a_server_error() -> None:
    def llm(prompt_value):
        raise RuntimeError("model overloaded")

    service = _service(llm)
    service.upload(b"Some content.", filename="a.txt", content_type="text/plain")

    with pytest.raises(ProvidersUnavailableError) as exc_info:
        service.query(RagQueryRequest(question="Anything?"))

    assert exc_info.value.status_code == 500
    assert "model overloaded" in str(exc_info.value)
