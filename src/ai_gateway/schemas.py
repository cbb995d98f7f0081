"""Request and normalized result models for every capability."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MIN_SUMMARY_TEXT_CHARS = 50
MAX_SUMMARY_TEXT_CHARS = 10_000

ClassificationTask = Literal["sentiment-analysis", "topic-classification", "emotion-detection"]
Persona = Literal["developer", "creative", "analyst", "general"]

SUPPORTED_IMAGE_TYPES = frozenset(
    {"image/png", "image/jpeg", "image/jpg", "image/webp", "image/gif", "image/bmp", "image/tiff"}
)


class ApiModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestModel(ApiModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# --- Requests ---


class SummarizeRequest(RequestModel):
    text: str
    model: str = "bart-cnn"
    summary_type: str = "concise"

    @field_validator("text")
    @classmethod
    def _check_length(cls, value: str) -> str:
        if len(value) < MIN_SUMMARY_TEXT_CHARS:
            raise ValueError(f"Text must be at least {MIN_SUMMARY_TEXT_CHARS} characters long")
        if len(value) > MAX_SUMMARY_TEXT_CHARS:
            raise ValueError("Text is too long. Maximum 10,000 characters allowed.")
        return value


class ClassifyRequest(RequestModel):
    text: str = Field(min_length=1)
    model: ClassificationTask
    custom_labels: tuple[str, ...] | None = None

    @field_validator("text")
    @classmethod
    def _check_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Text is required")
        return value

    @field_validator("custom_labels")
    @classmethod
    def _clean_labels(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        cleaned = tuple(label.strip() for label in value if label.strip())
        return cleaned or None


class OcrRequest(RequestModel):
    image: bytes
    mime_type: str
    model: str = "trocr-base"

    @field_validator("image")
    @classmethod
    def _check_image(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("Uploaded file is empty")
        return value

    @field_validator("mime_type")
    @classmethod
    def _check_mime_type(cls, value: str) -> str:
        normalized = value.split(";", 1)[0].strip().lower()
        if normalized not in SUPPORTED_IMAGE_TYPES:
            raise ValueError(f"Unsupported image type: {value or 'unknown'}")
        return normalized


class QnaRequest(RequestModel):
    question: str
    context: str = ""

    @field_validator("question")
    @classmethod
    def _check_question(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Question is required")
        return value


class ChatMessage(RequestModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(RequestModel):
    messages: tuple[ChatMessage, ...] = Field(min_length=1)
    persona: Persona = "general"
    session_id: str | None = None

    @field_validator("messages")
    @classmethod
    def _check_last_message(cls, value: tuple[ChatMessage, ...]) -> tuple[ChatMessage, ...]:
        if not value[-1].content.strip():
            raise ValueError("The last message must have content")
        return value


class RagQueryRequest(RequestModel):
    question: str

    @field_validator("question")
    @classmethod
    def _check_question(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Question is required")
        return value


# --- Normalized results ---


class ClassificationCategory(ApiModel):
    name: str
    score: int = Field(ge=0, le=100)


class ClassificationResult(ApiModel):
    label: str
    confidence: int = Field(ge=0, le=100)
    categories: list[ClassificationCategory]


class SummarizationResult(ApiModel):
    original_text: str
    summary: str
    word_count: int
    compression_ratio: int


class OcrResult(ApiModel):
    text: str
    confidence: int = Field(ge=0, le=100)
    language: str | None = None


class QnaResult(ApiModel):
    question: str
    answer: str
    context: str = ""
    confidence: int = Field(ge=0, le=100)


class RagUploadResult(ApiModel):
    filename: str
    chunk_count: int
    total_documents: int
    message: str


class RagQueryResult(ApiModel):
    question: str
    answer: str
    total_documents: int
