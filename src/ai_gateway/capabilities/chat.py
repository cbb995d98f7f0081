"""Persona chat streamed from OpenRouter, then Gemini, then a canned reply."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from ai_gateway.capabilities.common import log_request
from ai_gateway.errors import GatewayError, StreamInterruptedError
from ai_gateway.memory.session_store import SessionMemoryStore
from ai_gateway.obs.logging import get_logger
from ai_gateway.obs.tracing import Timer, TraceStore
from ai_gateway.orchestration.orchestrator import StreamingFallbackOrchestrator, StreamOutcome
from ai_gateway.providers.base import StreamingProviderAdapter, close_stream
from ai_gateway.providers.gemini import GeminiChatAdapter, GeminiClient
from ai_gateway.providers.openrouter import OpenRouterChatAdapter
from ai_gateway.schemas import ChatRequest
from ai_gateway.types import ChatPrompt, ChatTurn

logger = get_logger(__name__)

ABANDONED_ERROR = "stream abandoned by caller"

FALLBACK_REPLY = (
    "I'm sorry, but I'm currently experiencing technical difficulties with all AI providers. "
    "Please check that your API keys are properly configured in the .env.local file and try again later."
)


@dataclass(slots=True, frozen=True)
class Persona:
    name: str
    system_prompt: str


PERSONAS: dict[str, Persona] = {
    "developer": Persona(
        name="Developer Assistant",
        system_prompt="""
You are an expert software developer with 10+ years of experience across multiple programming languages and frameworks.

Your expertise includes:
- Full-stack development (Frontend: React, Vue, Angular | Backend: Node.js, Python, Java)
- Database design and optimization
- System architecture and design patterns
- DevOps and deployment strategies
- Code review and best practices

Always provide:
1. Clear, actionable solutions
2. Code examples with comments
3. Best practices and potential pitfalls
4. Performance considerations
5. Testing recommendations

Communicate in a professional yet friendly manner. Ask clarifying questions when needed.
""".strip(),
    ),
    "creative": Persona(
        name="Creative Assistant",
        system_prompt="""
You are a creative professional with expertise in writing, design, and content creation.

Your specialties include:
- Creative writing (stories, scripts, poetry)
- Content marketing and copywriting
- Brand strategy and messaging
- Design thinking and user experience
- Social media content creation

Always provide:
1. Original, engaging content
2. Multiple creative options when possible
3. Reasoning behind creative decisions
4. Actionable next steps
5. Industry best practices

Be inspiring, innovative, and help users think outside the box.
""".strip(),
    ),
    "analyst": Persona(
        name="Business Analyst",
        system_prompt="""
You are a senior business analyst with expertise in data analysis, strategy, and business intelligence.

Your core competencies:
- Data analysis and interpretation
- Business process optimization
- Strategic planning and market analysis
- Financial modeling and projections
- Risk assessment and mitigation

Always provide:
1. Data-driven insights
2. Clear recommendations with rationale
3. Risk-benefit analysis
4. Implementation roadmaps
5. Key performance indicators (KPIs)

Communicate with precision, clarity, and business acumen.
""".strip(),
    ),
    "general": Persona(
        name="AI Assistant",
        system_prompt="""
You are a knowledgeable and helpful AI assistant designed to provide accurate, well-structured responses across various topics.

Your approach:
- Provide comprehensive yet concise answers
- Structure information clearly with headers, lists, and examples
- Admit when you don't know something
- Ask clarifying questions when needed
- Maintain a friendly and professional tone

Always strive to be helpful, accurate, and educational in your responses.
""".strip(),
    ),
}


class CannedReplyAdapter(StreamingProviderAdapter[ChatPrompt]):
    """Last resort: a fixed apology so the user always gets a reply."""

    requires_credential = False

    def __init__(self, text: str = FALLBACK_REPLY) -> None:
        super().__init__(name="fallback")
        self.text = text

    def _stream(self, request: ChatPrompt) -> Iterator[str]:
        yield self.text


@dataclass(slots=True)
class ChatStream:
    persona: Persona
    provider: str
    chunks: Iterator[str]


class ChatService:
    """Builds the persona prompt, opens the stream and records the exchange.

    With a session id, the latest user message is appended to that session's
    memory and the prompt is built from the stored turns and rolling summary;
    the assistant reply is stored once the stream completes. Without one, the
    request's own messages are the whole history.
    """

    capability = "chat"

    def __init__(
        self,
        llm: Any,
        gemini: GeminiClient,
        sessions: SessionMemoryStore,
        trace_store: TraceStore,
        *,
        credential: str | None,
    ) -> None:
        self.sessions = sessions
        self.trace_store = trace_store
        self.orchestrator: StreamingFallbackOrchestrator[ChatPrompt] = StreamingFallbackOrchestrator(
            self.capability,
            [
                OpenRouterChatAdapter(llm, credential=credential),
                GeminiChatAdapter(gemini),
                CannedReplyAdapter(),
            ],
        )

    def stream(self, request: ChatRequest) -> ChatStream:
        persona = PERSONAS[request.persona]
        self.orchestrator.ensure_configured()

        memory = None
        if request.session_id:
            memory = self.sessions.get_or_create(request.session_id)
            latest = request.messages[-1]
            self.sessions.append_turn(memory, latest.role, latest.content)
            summary, turns = self.sessions.snapshot(memory)
        else:
            summary = ""
            turns = tuple(ChatTurn(role=m.role, content=m.content) for m in request.messages)

        prompt = ChatPrompt(system_prompt=persona.system_prompt, turns=turns, summary=summary)
        logger.info(
            "chat request persona=%s session_id=%s turns=%d",
            request.persona,
            request.session_id or "-",
            len(turns),
        )

        timer = Timer()
        try:
            with timer:
                outcome = self.orchestrator.open_stream(prompt)
        except GatewayError as exc:
            log_request(
                self.trace_store.create_record(
                    capability=self.capability,
                    provider=None,
                    attempts=getattr(exc, "attempts", []),
                    latency_ms=timer.elapsed_ms,
                    error=str(exc),
                )
            )
            raise

        return ChatStream(
            persona=persona,
            provider=outcome.provider,
            chunks=self._relay(outcome, memory, timer.elapsed_ms),
        )

    def _relay(self, outcome: StreamOutcome, memory: Any, open_ms: float) -> Iterator[str]:
        parts: list[str] = []
        error: str | None = None
        timer = Timer()
        try:
            with timer:
                for chunk in outcome.chunks:
                    parts.append(chunk)
                    yield chunk
        except StreamInterruptedError as exc:
            error = str(exc)
            raise
        except GeneratorExit:
            error = ABANDONED_ERROR
            logger.info("chat stream abandoned by caller provider=%s", outcome.provider)
            raise
        finally:
            close_stream(outcome.chunks)
            log_request(
                self.trace_store.create_record(
                    capability=self.capability,
                    provider=outcome.provider,
                    attempts=outcome.attempts,
                    latency_ms=open_ms + timer.elapsed_ms,
                    error=error,
                )
            )

        if memory is not None:
            self.sessions.append_turn(memory, "assistant", "".join(parts))
            self.sessions.summarize_if_over_budget(memory)
