"""Deterministic planner used when no chat model is configured."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from cover_agent.config import AgentConfig, RetrievalConfig
from cover_agent.obs.tracing import Timer, TraceStore, estimate_token_count
from cover_agent.retrieval.context import ContextBlock, build_context
from cover_agent.retrieval.corpus import Corpus
from cover_agent.types import ConversationTurn

_NOT_FOUND = (
    "I could not find this in the NYVO knowledge base. "
    "Would you like to book a free consultation with an advisor?"
)
_SNIPPET_CHARS = 280


class DeterministicPlanner:
    """Planner that answers straight from the assembled context.

    It keeps the same response contract as `InsurancePlanner` and is useful
    for local or offline environments where `OPENAI_API_KEY` is not set. No
    tools are called.
    """

    def __init__(
        self,
        *,
        corpus: Corpus,
        trace_store: TraceStore,
        config: AgentConfig | None = None,
        retrieval_config: RetrievalConfig | None = None,
    ) -> None:
        self.corpus = corpus
        self.trace_store = trace_store
        self.config = config or AgentConfig()
        self.retrieval_config = retrieval_config or RetrievalConfig()

    async def ainvoke(
        self,
        question: str,
        *,
        chat_history: Sequence[ConversationTurn | dict[str, Any]] | None = None,
        language: str = "en",
    ) -> dict[str, Any]:
        del chat_history  # answers depend on the current question only.
        with Timer() as timer:
            context = build_context(self.corpus, question, self.retrieval_config)
            answer = _build_answer(context)

        record = self.trace_store.create_record(
            question=question,
            answer=answer,
            language=language,
            tool_traces=[],
            rounds=0,
            stop_reason="offline",
            context_sections=context.sections(),
            input_tokens=estimate_token_count(question),
            output_tokens=estimate_token_count(answer),
            latency_ms=timer.elapsed_ms,
        )
        return {
            "answer": answer,
            "booking_url": None,
            "tools_used": [],
            "rounds": 0,
            "stop_reason": "offline",
            "trace_id": record.trace_id,
            "latency_ms": record.latency_ms,
        }


def _build_answer(context: ContextBlock) -> str:
    if not context:
        return _NOT_FOUND
    lines: list[str] = []
    for excerpt in context.excerpts[:2]:
        snippet = " ".join(excerpt.text.split())
        if len(snippet) > _SNIPPET_CHARS:
            snippet = snippet[: _SNIPPET_CHARS - 3] + "..."
        lines.append(f"{excerpt.title}: {snippet}")
    return "\n".join(lines)
