"""Wires settings, HTTP clients, stores and capability services together."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from ai_gateway.capabilities.chat import ChatService
from ai_gateway.capabilities.classify import ClassificationService
from ai_gateway.capabilities.ocr import OcrService
from ai_gateway.capabilities.qna import QnaService
from ai_gateway.capabilities.rag import RagService
from ai_gateway.capabilities.summarize import SummarizationService
from ai_gateway.config import ChunkingConfig, RetrievalConfig, Settings, credential_is_set, get_settings
from ai_gateway.ingest.embedder import CharSumEmbedder, Embedder, LangChainEmbedder
from ai_gateway.ingest.parser import ParserRegistry
from ai_gateway.ingest.pipeline import UploadPipeline
from ai_gateway.memory.session_store import LLMSummarizer, SessionMemoryStore, Summarizer
from ai_gateway.obs.logging import get_logger
from ai_gateway.obs.tracing import TraceStore
from ai_gateway.providers.gemini import GeminiClient
from ai_gateway.providers.huggingface import HuggingFaceClient
from ai_gateway.providers.openrouter import create_openrouter_llm
from ai_gateway.retrieval.document_store import InMemoryDocumentStore

logger = get_logger(__name__)


@dataclass(slots=True)
class GatewayServices:
    settings: Settings
    trace_store: TraceStore
    sessions: SessionMemoryStore
    documents: InMemoryDocumentStore
    summarization: SummarizationService
    classification: ClassificationService
    ocr: OcrService
    qna: QnaService
    chat: ChatService
    rag: RagService

    def provider_status(self) -> dict[str, bool]:
        return {
            "huggingface": credential_is_set(self.settings.HUGGINGFACE_API_TOKEN),
            "gemini": credential_is_set(self.settings.GOOGLE_GEMINI_API_KEY),
            "openrouter": credential_is_set(self.settings.OPENROUTER_API_KEY),
        }


def build_services(
    settings: Settings | None = None,
    *,
    http_client: httpx.Client | None = None,
    chat_llm: Any = None,
    qa_llm: Any = None,
    embedder: Embedder | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> GatewayServices:
    """Build the service container.

    Chat models are created from settings only when OpenRouter is configured;
    tests pass fakes through `chat_llm`/`qa_llm` and an `httpx.Client` with a
    mock transport through `http_client`.
    """
    settings = settings or get_settings()
    http_client = http_client or httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)
    openrouter_ready = credential_is_set(settings.OPENROUTER_API_KEY)

    if chat_llm is None and openrouter_ready:
        chat_llm = create_openrouter_llm(
            settings, model=settings.OPENROUTER_CHAT_MODEL, temperature=0.7, streaming=True
        )
    if qa_llm is None and openrouter_ready:
        qa_llm = create_openrouter_llm(settings, model=settings.OPENROUTER_QA_MODEL, temperature=0.2)

    huggingface = HuggingFaceClient(
        settings.HUGGINGFACE_API_TOKEN,
        http_client=http_client,
        base_url=settings.HUGGINGFACE_BASE_URL,
    )
    gemini = GeminiClient(
        settings.GOOGLE_GEMINI_API_KEY,
        http_client=http_client,
        base_url=settings.GEMINI_BASE_URL,
        model=settings.GEMINI_MODEL,
    )

    trace_store = TraceStore()
    summarizer: Summarizer | None = LLMSummarizer(qa_llm) if qa_llm is not None else None
    sessions = SessionMemoryStore(settings.memory_config(), summarizer=summarizer)
    embedder = embedder or _create_embedder(settings)
    documents = InMemoryDocumentStore(embedder)
    pipeline = UploadPipeline(ParserRegistry(), embedder, documents, ChunkingConfig())

    logger.info(
        "services ready huggingface=%s gemini=%s openrouter=%s embedder=%s",
        credential_is_set(settings.HUGGINGFACE_API_TOKEN),
        credential_is_set(settings.GOOGLE_GEMINI_API_KEY),
        openrouter_ready,
        type(embedder).__name__,
    )

    return GatewayServices(
        settings=settings,
        trace_store=trace_store,
        sessions=sessions,
        documents=documents,
        summarization=SummarizationService(huggingface, gemini, trace_store, sleep=sleep),
        classification=ClassificationService(huggingface, gemini, trace_store),
        ocr=OcrService(huggingface, gemini, trace_store),
        qna=QnaService(qa_llm, credential=settings.OPENROUTER_API_KEY, trace_store=trace_store),
        chat=ChatService(
            chat_llm,
            gemini,
            sessions,
            trace_store,
            credential=settings.OPENROUTER_API_KEY,
        ),
        rag=RagService(
            pipeline,
            documents,
            qa_llm,
            credential=settings.OPENROUTER_API_KEY,
            trace_store=trace_store,
            config=RetrievalConfig(),
        ),
    )


def _create_embedder(settings: Settings) -> Embedder:
    if settings.EMBEDDING_PROVIDER == "openai" and credential_is_set(settings.OPENAI_API_KEY):
        from langchain_openai import OpenAIEmbeddings

        return LangChainEmbedder(OpenAIEmbeddings(api_key=settings.OPENAI_API_KEY))
    return CharSumEmbedder()
