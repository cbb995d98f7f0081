"""FastAPI entrypoint for the capability, document and trace endpoints."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from ai_gateway.errors import GatewayError, StreamInterruptedError
from ai_gateway.obs.logging import get_logger
from ai_gateway.schemas import (
    ChatRequest,
    ClassificationResult,
    ClassifyRequest,
    OcrRequest,
    OcrResult,
    QnaRequest,
    QnaResult,
    RagQueryRequest,
    RagQueryResult,
    RagUploadResult,
    SummarizationResult,
    SummarizeRequest,
)
from ai_gateway.services import GatewayServices, build_services

logger = get_logger(__name__)


def create_app(services: GatewayServices | None = None) -> FastAPI:
    services = services or build_services()
    app = FastAPI(title="AI Applications Gateway", version="0.1.0")
    app.state.services = services

    @app.exception_handler(RequestValidationError)
    def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": _validation_detail(exc.errors())})

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "providers": services.provider_status(),
            "sessions": len(services.sessions),
            "documents": services.documents.document_count,
            "trace_count": len(services.trace_store.list_recent(limit=1000)),
        }

    @app.post("/chat")
    def chat(request: ChatRequest) -> StreamingResponse:
        try:
            stream = services.chat.stream(request)
        except Exception as exc:
            raise _http_error(exc) from exc

        return StreamingResponse(
            _stream_text(stream.chunks),
            media_type="text/plain; charset=utf-8",
            headers={
                "Cache-Control": "no-cache",
                "X-AI-Persona": stream.persona.name,
                "X-Provider": stream.provider,
            },
        )

    @app.post("/summarize", response_model=SummarizationResult)
    def summarize(request: SummarizeRequest) -> SummarizationResult:
        try:
            return services.summarization.summarize(request)
        except Exception as exc:
            raise _http_error(exc) from exc

    @app.post("/classify", response_model=ClassificationResult)
    def classify(request: ClassifyRequest) -> ClassificationResult:
        try:
            return services.classification.classify(request)
        except Exception as exc:
            raise _http_error(exc) from exc

    @app.post("/ocr", response_model=OcrResult)
    def ocr(
        file: UploadFile | None = File(default=None),
        model: str = Form(default="trocr-base"),
    ) -> OcrResult:
        if file is None:
            raise HTTPException(status_code=400, detail="No image file provided")
        try:
            request = OcrRequest(
                image=file.file.read(),
                mime_type=file.content_type or "",
                model=model,
            )
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=_validation_detail(exc.errors())) from exc

        try:
            return services.ocr.extract_text(request)
        except Exception as exc:
            raise _http_error(exc) from exc

    @app.post("/qna", response_model=QnaResult)
    def qna(request: QnaRequest) -> QnaResult:
        try:
            return services.qna.answer(request)
        except Exception as exc:
            raise _http_error(exc) from exc

    @app.post("/rag/upload", response_model=RagUploadResult)
    def rag_upload(file: UploadFile | None = File(default=None)) -> RagUploadResult:
        if file is None:
            raise HTTPException(status_code=400, detail="No file uploaded")
        try:
            return services.rag.upload(
                file.file.read(),
                filename=file.filename or "upload",
                content_type=file.content_type,
            )
        except Exception as exc:
            raise _http_error(exc) from exc

    @app.post("/rag/query", response_model=RagQueryResult)
    def rag_query(request: RagQueryRequest) -> RagQueryResult:
        try:
            return services.rag.query(request)
        except Exception as exc:
            raise _http_error(exc) from exc

    @app.post("/rag/clear")
    def rag_clear() -> dict[str, str]:
        return services.rag.clear()

    @app.get("/rag/status")
    def rag_status() -> dict[str, Any]:
        return services.rag.status()

    @app.get("/traces")
    def traces(limit: int = Query(20, ge=1, le=1000)) -> dict[str, Any]:
        records = [asdict(record) for record in services.trace_store.list_recent(limit=limit)]
        return {"items": records}

    @app.get("/traces/{trace_id}")
    def trace_detail(trace_id: str) -> dict[str, Any]:
        try:
            record = services.trace_store.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return services.trace_store.summary()

    return app


def _stream_text(chunks: Iterator[str]) -> Iterator[str]:
    try:
        yield from chunks
    except StreamInterruptedError as exc:
        # Headers are already sent; re-raising aborts the body without its terminating chunk.
        logger.error("chat stream aborted: %s", exc)
        raise


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, GatewayError):
        return HTTPException(status_code=exc.status_code, detail=str(exc))
    logger.exception("unhandled error: %s", exc)
    return HTTPException(status_code=500, detail=f"Server error: {exc}")


def _validation_detail(errors: Any) -> str:
    messages = []
    for error in errors:
        message = str(error.get("msg", "Invalid request")).removeprefix("Value error, ")
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{field}: {message}" if field else message)
    return "; ".join(messages) or "Invalid request"


app = create_app()
