"""Configuration models and environment settings for the gateway."""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingConfig(BaseModel):
    """Configures recursive character splitting of uploaded documents."""

    chunk_size: int = Field(default=1000, ge=100)
    chunk_overlap: int = Field(default=200, ge=0)


class RetrievalConfig(BaseModel):
    """Configures top-k retrieval for document Q&A."""

    top_k: int = Field(default=4, ge=1)


class MemoryConfig(BaseModel):
    """Configures session memory bounds."""

    max_sessions: int = Field(default=256, ge=1)
    max_token_limit: int = Field(default=2000, ge=50)
    summary_token_limit: int = Field(default=400, ge=20)


class WarmupConfig(BaseModel):
    """Model warm-up polling used by the Hugging Face summarization adapter."""

    attempts: int = Field(default=3, ge=1)
    delay_seconds: float = Field(default=2.0, ge=0.0)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Provider credentials
    HUGGINGFACE_API_TOKEN: str | None = Field(default=None)
    GOOGLE_GEMINI_API_KEY: str | None = Field(default=None)
    OPENROUTER_API_KEY: str | None = Field(default=None)
    OPENAI_API_KEY: str | None = Field(default=None)

    # Provider endpoints and models
    HUGGINGFACE_BASE_URL: str = Field(default="https://api-inference.huggingface.co")
    GEMINI_BASE_URL: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    GEMINI_MODEL: str = Field(default="gemini-1.5-flash")
    OPENROUTER_BASE_URL: str = Field(default="https://openrouter.ai/api/v1")
    OPENROUTER_CHAT_MODEL: str = Field(default="openai/gpt-3.5-turbo")
    OPENROUTER_QA_MODEL: str = Field(default="openai/gpt-3.5-turbo")
    APP_URL: str = Field(default="http://localhost:8000", description="Sent as HTTP-Referer to OpenRouter.")
    APP_TITLE: str = Field(default="AI Applications Demo")

    # Runtime
    HTTP_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0.0)
    SESSION_MAX_COUNT: int = Field(default=256, ge=1)
    SESSION_TOKEN_LIMIT: int = Field(default=2000, ge=50)
    EMBEDDING_PROVIDER: str = Field(default="hash", description="hash or openai")
    LOG_LEVEL: str = Field(default="INFO")

    def memory_config(self) -> MemoryConfig:
        return MemoryConfig(
            max_sessions=self.SESSION_MAX_COUNT,
            max_token_limit=self.SESSION_TOKEN_LIMIT,
        )


def credential_is_set(value: str | None) -> bool:
    """Return False for empty values and for `your_..._here` template placeholders."""
    if not value or not value.strip():
        return False
    lowered = value.strip().lower()
    return not (lowered.startswith("your_") and lowered.endswith("_here"))


@lru_cache
def get_settings() -> Settings:
    return Settings()
