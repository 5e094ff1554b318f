"""LLM-backed planner: prompt assembly, tool loop and trace recording."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from cover_agent.agent.loop import LoopResult, ToolCallingLoop
from cover_agent.agent.registry import ToolRegistry
from cover_agent.config import AgentConfig, RetrievalConfig
from cover_agent.obs.tracing import Timer, TraceStore, estimate_token_count
from cover_agent.retrieval.context import build_context
from cover_agent.retrieval.corpus import Corpus
from cover_agent.types import ConversationTurn, ToolTrace

SYSTEM_PROMPT = """
You are NYVO Insurance Assistant, a voice agent for NYVO Insurance Services LLP (nyvo.in),
an IRDAI Certified Corporate Agent based in Bengaluru, India.

You help Indian consumers make better Health Insurance and Term Life Insurance decisions.
You can answer insurance questions, compare policies, calculate recommended coverage,
guide claims, look up insurers and their renewal portals, and book free consultations.

Voice rules:
1) THIS IS A VOICE CONVERSATION. Keep every response under 60 words (2-3 sentences max).
2) Give ONE key point per response, in simple language, with no bullet points or lists.
3) Give specific numbers when available; if you don't know, say so in one sentence.
4) Respond in the same language the user speaks (English or Hindi).

Important:
- You are NOT a licensed insurance advisor. Never guarantee claim outcomes or premiums.
- Always use the available tools to fetch accurate information from the knowledge base.
- When the user wants personalized advice or is ready to buy, offer to book a consultation.

Contact: +91 99000 91495 | hello@nyvo.in | HSR Layout, Bengaluru
""".strip()

_NO_CONTEXT = "No specific context found. Use your general insurance knowledge and available tools."


def language_directive(language: str) -> str:
    if language == "hi":
        return (
            "The user is speaking in: Hindi. Respond in the same language.\n"
            "Respond in Hindi (Devanagari script). Use simple Hindi that is easy to understand."
        )
    return "The user is speaking in: English. Respond in the same language."


def build_system_prompt(context_text: str, language: str = "en") -> str:
    return (
        f"{SYSTEM_PROMPT}\n\n"
        f"## CURRENT LANGUAGE\n{language_directive(language)}\n\n"
        "## RELEVANT KNOWLEDGE BASE CONTEXT\n"
        "The following information from NYVO's knowledge base may be relevant to the "
        "user's query. Use this to provide accurate answers:\n\n"
        f"{context_text or _NO_CONTEXT}"
    )


def history_messages(
    chat_history: Sequence[ConversationTurn | dict[str, Any]] | None, window: int
) -> list[BaseMessage]:
    """Convert the last `window` caller turns into chat messages."""

    if not chat_history or window == 0:
        return []
    messages: list[BaseMessage] = []
    for turn in list(chat_history)[-window:]:
        if isinstance(turn, dict):
            role, content = str(turn.get("role", "user")), str(turn.get("content", ""))
        else:
            role, content = turn.role, turn.content
        messages.append(AIMessage(content=content) if role == "assistant" else HumanMessage(content=content))
    return messages


class InsurancePlanner:
    """Answers one question per call using context, tools and the chat model."""

    def __init__(
        self,
        *,
        llm: Any,
        corpus: Corpus,
        tool_registry: ToolRegistry,
        trace_store: TraceStore,
        config: AgentConfig | None = None,
        retrieval_config: RetrievalConfig | None = None,
    ) -> None:
        self.corpus = corpus
        self.tool_registry = tool_registry
        self.trace_store = trace_store
        self.config = config or AgentConfig()
        self.retrieval_config = retrieval_config or RetrievalConfig()
        self.loop = ToolCallingLoop(
            llm, tool_registry, max_iterations=self.config.max_iterations
        )

    async def ainvoke(
        self,
        question: str,
        *,
        chat_history: Sequence[ConversationTurn | dict[str, Any]] | None = None,
        language: str = "en",
    ) -> dict[str, Any]:
        """Run one question through the tool loop and persist a trace.

        Raises:
            UpstreamError: the chat model call failed; nothing is recorded.
        """

        observed_tools: list[ToolTrace] = []
        context = build_context(self.corpus, question, self.retrieval_config)
        system_text = build_system_prompt(
            context.render(self.config.context_char_budget), language
        )
        messages: list[BaseMessage] = [SystemMessage(content=system_text)]
        messages.extend(history_messages(chat_history, self.config.history_window))
        messages.append(HumanMessage(content=question))

        with Timer() as timer:
            result = await self.loop.run(messages, observer=observed_tools.append)

        record = self.trace_store.create_record(
            question=question,
            answer=result.answer,
            language=language,
            tool_traces=observed_tools,
            rounds=result.rounds,
            stop_reason=result.stop_reason.value,
            context_sections=context.sections(),
            input_tokens=estimate_token_count(system_text) + estimate_token_count(question),
            output_tokens=estimate_token_count(result.answer),
            latency_ms=timer.elapsed_ms,
        )

        return {
            "answer": result.answer,
            "booking_url": extract_booking_url(result),
            "tools_used": result.tools_used,
            "rounds": result.rounds,
            "stop_reason": result.stop_reason.value,
            "trace_id": record.trace_id,
            "latency_ms": record.latency_ms,
        }


def extract_booking_url(result: LoopResult) -> str | None:
    for tool_result in result.tool_results:
        outcome = tool_result.outcome
        if outcome.name != "book_consultation" or not outcome.ok:
            continue
        try:
            payload = json.loads(outcome.content)
        except json.JSONDecodeError:
            continue
        url = payload.get("bookingUrl")
        if url:
            return str(url)
    return None
