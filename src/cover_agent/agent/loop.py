"""Bounded tool-calling loop between the chat model and the tool registry."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, ToolMessage
from loguru import logger

from cover_agent.agent.registry import ToolObserver, ToolRegistry
from cover_agent.errors import UpstreamError
from cover_agent.types import ToolInvocation, ToolOutcome, ToolResult, ToolStatus


class LoopState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    AWAITING_TOOL_RESULTS = "awaiting_tool_results"
    DONE = "done"


class StopReason(str, Enum):
    COMPLETED = "completed"
    ITERATION_CAP = "iteration_cap"


@dataclass(slots=True)
class LoopResult:
    answer: str
    stop_reason: StopReason
    rounds: int
    tool_results: list[ToolResult] = field(default_factory=list)
    invocations: list[ToolInvocation] = field(default_factory=list)
    messages: list[BaseMessage] = field(default_factory=list)

    @property
    def tools_used(self) -> list[str]:
        return [invocation.name for invocation in self.invocations]


class ToolCallingLoop:
    """Drives one question through model calls and tool dispatch rounds.

    States: AWAITING_MODEL -> DONE when the reply is text only, or
    AWAITING_MODEL -> AWAITING_TOOL_RESULTS -> AWAITING_MODEL when the model
    asks for tools. At most `max_iterations` dispatch rounds run; a model that
    keeps asking after that gets its last text returned as a partial answer.

    The caller's message list is copied, never mutated. Model calls are
    sequential; tool calls within one round run concurrently and are all
    gathered before the next model call.
    """

    def __init__(self, model: Any, registry: ToolRegistry, *, max_iterations: int = 5) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.registry = registry
        self.max_iterations = max_iterations
        self._runnable = model.bind_tools(registry.function_schemas())

    async def run(
        self,
        messages: list[BaseMessage],
        *,
        observer: ToolObserver | None = None,
    ) -> LoopResult:
        conversation = list(messages)
        state = LoopState.AWAITING_MODEL
        rounds = 0
        pending: list[ToolInvocation] = []
        last_reply: AIMessage | None = None
        all_results: list[ToolResult] = []
        all_invocations: list[ToolInvocation] = []
        answer = ""
        stop_reason = StopReason.COMPLETED

        while state is not LoopState.DONE:
            if state is LoopState.AWAITING_MODEL:
                last_reply = await self._call_model(conversation)
                answer = message_text(last_reply)
                pending = extract_invocations(last_reply)
                if not pending:
                    state = LoopState.DONE
                elif rounds >= self.max_iterations:
                    logger.warning(
                        "Tool loop hit the {}-round cap; returning partial answer",
                        self.max_iterations,
                    )
                    stop_reason = StopReason.ITERATION_CAP
                    state = LoopState.DONE
                else:
                    state = LoopState.AWAITING_TOOL_RESULTS
            else:
                rounds += 1
                logger.debug(
                    "Round {}: dispatching {}", rounds, [inv.name for inv in pending]
                )
                results = await self._dispatch(pending, observer)
                all_invocations.extend(pending)
                all_results.extend(results)
                conversation.append(last_reply)
                conversation.extend(
                    ToolMessage(
                        content=result.outcome.content,
                        tool_call_id=result.call_id,
                        name=result.outcome.name,
                        status="success" if result.outcome.ok else "error",
                    )
                    for result in results
                )
                state = LoopState.AWAITING_MODEL

        return LoopResult(
            answer=answer,
            stop_reason=stop_reason,
            rounds=rounds,
            tool_results=all_results,
            invocations=all_invocations,
            messages=conversation,
        )

    async def _call_model(self, conversation: list[BaseMessage]) -> AIMessage:
        try:
            reply = await self._runnable.ainvoke(conversation)
        except Exception as exc:
            raise UpstreamError(f"Reasoning engine call failed: {exc}") from exc
        if not isinstance(reply, AIMessage):
            raise UpstreamError(f"Unexpected reply type from model: {type(reply).__name__}")
        return reply

    async def _dispatch(
        self, invocations: list[ToolInvocation], observer: ToolObserver | None
    ) -> list[ToolResult]:
        async def _one(invocation: ToolInvocation) -> ToolResult:
            if invocation.parse_error is not None:
                outcome = ToolOutcome(
                    name=invocation.name,
                    content=f"Could not parse arguments for {invocation.name}: {invocation.parse_error}",
                    status=ToolStatus.INVALID_INPUT,
                )
            else:
                outcome = await asyncio.to_thread(
                    self.registry.invoke,
                    invocation.name,
                    invocation.payload,
                    observer=observer,
                )
            return ToolResult(call_id=invocation.call_id, outcome=outcome)

        return list(await asyncio.gather(*(_one(invocation) for invocation in invocations)))


def extract_invocations(reply: AIMessage) -> list[ToolInvocation]:
    """Collect well-formed and malformed tool calls from a model reply."""

    invocations = [
        ToolInvocation(
            call_id=str(call.get("id") or f"call-{index}"),
            name=call["name"],
            payload=dict(call.get("args") or {}),
        )
        for index, call in enumerate(reply.tool_calls)
    ]
    offset = len(invocations)
    for index, call in enumerate(getattr(reply, "invalid_tool_calls", None) or []):
        invocations.append(
            ToolInvocation(
                call_id=str(call.get("id") or f"call-{offset + index}"),
                name=str(call.get("name") or "unknown"),
                payload={},
                parse_error=str(call.get("error") or call.get("args") or "malformed call"),
            )
        )
    return invocations


def message_text(message: BaseMessage) -> str:
    """Join every text segment of a chat message."""

    content = message.content
    if isinstance(content, str):
        return content.strip()
    parts: list[str] = []
    for item in content:
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, dict) and item.get("type", "text") == "text" and "text" in item:
            parts.append(str(item["text"]))
    return "\n".join(part for part in parts if part).strip()
