"""OpenRouter adapters built on LangChain's OpenAI-compatible chat model."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.prompts import ChatPromptTemplate

from ai_gateway.config import Settings
from ai_gateway.errors import ProviderError
from ai_gateway.providers.base import ProviderAdapter, StreamingProviderAdapter, close_stream
from ai_gateway.schemas import QnaRequest
from ai_gateway.types import ChatPrompt

QA_SYSTEM_PROMPT = """
You are a highly knowledgeable Q&A assistant. Your goal is to provide accurate, concise, and well-structured answers to the user's questions. If you don't know the answer, say so.

Here are your instructions:
1. Analyze the question: understand the user's intent and what they are asking.
2. Provide a direct answer: start with a direct answer to the question.
3. Elaborate with details: provide additional context, examples, or explanations to support your answer.
4. Structure your response: use lists, bullet points, and bolding to make the information easy to digest.
5. Be concise: do not provide irrelevant information.
6. Maintain a professional tone: be helpful, polite, and respectful.
""".strip()

QA_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", QA_SYSTEM_PROMPT),
        ("human", "Question: {question}\n\nContext (if any):\n{context}"),
    ]
)

RAG_REFUSAL = "I don't have enough information in the provided documents to answer this question."

RAG_PROMPT = ChatPromptTemplate.from_template(
    "Answer the question based only on the following context. If you cannot answer "
    f'the question based on the context, say "{RAG_REFUSAL}"\n\n'
    "Context: {context}\n\n"
    "Question: {question}\n\n"
    "Answer:"
)


def create_openrouter_llm(
    settings: Settings,
    *,
    model: str,
    temperature: float,
    streaming: bool = False,
) -> Any:
    """Build a ChatOpenAI client pointed at OpenRouter; one attempt per call."""
    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=model,
        api_key=settings.OPENROUTER_API_KEY,
        base_url=settings.OPENROUTER_BASE_URL,
        temperature=temperature,
        streaming=streaming,
        max_retries=0,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        default_headers={"HTTP-Referer": settings.APP_URL, "X-Title": settings.APP_TITLE},
    )


class OpenRouterChatAdapter(StreamingProviderAdapter[ChatPrompt]):
    """Streams chat completions token by token."""

    def __init__(self, llm: Any, *, credential: str | None) -> None:
        super().__init__(name="openrouter", credential=credential)
        self.llm = llm

    def _stream(self, request: ChatPrompt) -> Iterator[str]:
        if self.llm is None:
            raise ProviderError(f"{self.name}: no chat model available")
        chunks = self.llm.stream(to_langchain_messages(request))
        try:
            for chunk in chunks:
                yield message_text(chunk)
        finally:
            close_stream(chunks)


class OpenRouterAnswerAdapter(ProviderAdapter[QnaRequest]):
    """Answers a question with optional context through a prompt template."""

    def __init__(
        self,
        llm: Any,
        *,
        credential: str | None,
        prompt: ChatPromptTemplate = QA_PROMPT,
    ) -> None:
        super().__init__(name="openrouter", credential=credential)
        self.llm = llm
        self.chain = prompt | llm if llm is not None else None

    def _invoke(self, request: QnaRequest) -> Any:
        if self.chain is None:
            raise ProviderError(f"{self.name}: no chat model available")
        result = self.chain.invoke({"question": request.question, "context": request.context})
        return message_text(result)


def to_langchain_messages(prompt: ChatPrompt) -> list[BaseMessage]:
    messages: list[BaseMessage] = [SystemMessage(content=prompt.system_prompt)]
    if prompt.summary:
        messages.append(
            SystemMessage(content=f"Summary of the earlier conversation:\n{prompt.summary}")
        )
    for turn in prompt.turns:
        if turn.role == "assistant":
            messages.append(AIMessage(content=turn.content))
        elif turn.role == "system":
            messages.append(SystemMessage(content=turn.content))
        else:
            messages.append(HumanMessage(content=turn.content))
    return messages


def message_text(message: Any) -> str:
    content = getattr(message, "content", message)
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            elif isinstance(item, str):
                parts.append(item)
        return "".join(parts)
    return str(content)
