"""Per-session conversation memory with a rolling summary and LRU eviction."""

from __future__ import annotations

import re
import threading
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ai_gateway.config import MemoryConfig
from ai_gateway.obs.logging import get_logger
from ai_gateway.obs.tracing import estimate_token_count
from ai_gateway.types import ChatTurn, Role

logger = get_logger(__name__)

Summarizer = Callable[[str, list[ChatTurn]], str]

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?。！？])\s+")

SUMMARY_PROMPT = """
Progressively summarize the lines of conversation provided, adding onto the previous summary and returning a new summary.

Current summary:
{summary}

New lines of conversation:
{new_lines}

New summary:
""".strip()


@dataclass(slots=True)
class ConversationMemory:
    session_id: str
    turns: list[ChatTurn] = field(default_factory=list)
    summary: str = ""
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def token_count(self) -> int:
        return estimate_token_count(self.summary) + sum(
            estimate_token_count(turn.content) for turn in self.turns
        )


class ExtractiveSummarizer:
    """Deterministic summarizer keeping the first sentence of each folded turn."""

    def __init__(self, max_tokens: int = 400) -> None:
        self.max_tokens = max_tokens

    def __call__(self, summary: str, turns: list[ChatTurn]) -> str:
        lines = [summary] if summary else []
        for turn in turns:
            sentences = [s for s in _SENTENCE_SPLIT.split(turn.content.strip()) if s]
            if sentences:
                lines.append(f"{turn.role.capitalize()}: {sentences[0]}")
        text = "\n".join(lines)
        words = text.split(" ")
        while len(words) > 1 and estimate_token_count(" ".join(words)) > self.max_tokens:
            words = words[len(words) // 4 or 1 :]
        return " ".join(words)


class LLMSummarizer:
    """Asks a chat model for a progressive summary; falls back when it fails."""

    def __init__(self, llm: Any, *, fallback: Summarizer | None = None) -> None:
        self.llm = llm
        self.fallback = fallback or ExtractiveSummarizer()

    def __call__(self, summary: str, turns: list[ChatTurn]) -> str:
        new_lines = "\n".join(f"{turn.role.capitalize()}: {turn.content}" for turn in turns)
        try:
            result = self.llm.invoke(
                SUMMARY_PROMPT.format(summary=summary or "(none)", new_lines=new_lines)
            )
        except Exception as exc:
            logger.warning("llm summarization failed, using extractive summary: %s", exc)
            return self.fallback(summary, turns)
        text = str(getattr(result, "content", result)).strip()
        return text or self.fallback(summary, turns)


class SessionMemoryStore:
    """Keyed store from session id to `ConversationMemory`.

    The store lock guards the LRU map only. Each memory has its own lock, so
    updates to one session are serialized without blocking other sessions.
    When more than `max_sessions` sessions exist, the least recently used one
    is evicted.
    """

    def __init__(
        self,
        config: MemoryConfig | None = None,
        *,
        summarizer: Summarizer | None = None,
    ) -> None:
        self.config = config or MemoryConfig()
        self.summarizer = summarizer or ExtractiveSummarizer(self.config.summary_token_limit)
        self._sessions: OrderedDict[str, ConversationMemory] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get_or_create(self, session_id: str) -> ConversationMemory:
        with self._lock:
            memory = self._sessions.get(session_id)
            if memory is None:
                memory = ConversationMemory(session_id=session_id)
                self._sessions[session_id] = memory
                logger.info("created session memory session_id=%s", session_id)
            else:
                self._sessions.move_to_end(session_id)
            while len(self._sessions) > self.config.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("evicted session memory session_id=%s", evicted)
            return memory

    def append_turn(self, memory: ConversationMemory, role: Role, content: str) -> None:
        with memory.lock:
            memory.turns.append(ChatTurn(role=role, content=content))

    def snapshot(self, memory: ConversationMemory) -> tuple[str, tuple[ChatTurn, ...]]:
        with memory.lock:
            return memory.summary, tuple(memory.turns)

    def summarize_if_over_budget(self, memory: ConversationMemory) -> bool:
        """Fold the oldest turns into the summary until the budget is met.

        The two most recent turns are always kept verbatim. Returns True when
        a summarization happened.
        """
        with memory.lock:
            if memory.token_count() <= self.config.max_token_limit:
                return False

            pruned: list[ChatTurn] = []
            while len(memory.turns) > 2 and memory.token_count() > self.config.max_token_limit:
                pruned.append(memory.turns.pop(0))
            if not pruned:
                return False

            memory.summary = self.summarizer(memory.summary, pruned)
            logger.info(
                "summarized session memory session_id=%s folded_turns=%d",
                memory.session_id,
                len(pruned),
            )
            return True
