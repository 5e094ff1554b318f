from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import pytest
from langchain_core.messages import AIMessage, BaseMessage

from cover_agent.config import DEFAULT_CORPUS_PATH
from cover_agent.retrieval.corpus import Corpus, load_corpus


class ScriptedChatModel:
    """Chat model double that replays canned replies in order."""

    def __init__(
        self,
        replies: Sequence[AIMessage | Exception],
        *,
        repeat_last: bool = False,
    ) -> None:
        self._replies = list(replies)
        self._repeat_last = repeat_last
        self.calls: list[list[BaseMessage]] = []
        self.bound_tools: list[dict[str, Any]] | None = None

    def bind_tools(self, tools: list[dict[str, Any]]) -> "ScriptedChatModel":
        self.bound_tools = tools
        return self

    async def ainvoke(self, messages: list[BaseMessage]) -> AIMessage:
        self.calls.append(list(messages))
        if len(self._replies) > 1 or (self._replies and not self._repeat_last):
            reply = self._replies.pop(0)
        elif self._replies:
            reply = self._replies[0]
        else:
            raise AssertionError("scripted replies exhausted")
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def scripted_model() -> Callable[..., ScriptedChatModel]:
    return ScriptedChatModel


@pytest.fixture
def corpus() -> Corpus:
    return load_corpus(DEFAULT_CORPUS_PATH)
