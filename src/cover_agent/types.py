"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Union


@dataclass(frozen=True, slots=True)
class Article:
    """An educational article split into pre-chunked segments."""

    id: str
    title: str
    category: str
    keywords: tuple[str, ...]
    chunks: tuple[str, ...]
    slug: str = ""
    full_content: str = ""
    sections: tuple[dict[str, str], ...] = field(default=(), compare=False)


@dataclass(frozen=True, slots=True)
class PolicyRecord:
    """A single insurance plan with a precomputed readable summary."""

    id: str
    name: str
    insurer_name: str
    insurer_id: str
    category: str
    keywords: tuple[str, ...]
    summary: str
    description: str = ""
    raw: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True, slots=True)
class ClaimsGuide:
    """Step-by-step claims guidance document."""

    id: str
    title: str
    category: str
    keywords: tuple[str, ...]
    content: str


@dataclass(frozen=True, slots=True)
class InsurerRecord:
    """An insurance company and its renewal portal."""

    id: str
    name: str
    short_name: str
    category: str
    renewal_link: str = ""
    keywords: tuple[str, ...] = ()


Document = Union[Article, PolicyRecord, ClaimsGuide, InsurerRecord]


@dataclass(frozen=True, slots=True)
class SearchFilters:
    """Optional attribute filters applied before scoring."""

    category: str | None = None
    insurer: str | None = None


@dataclass(frozen=True, slots=True)
class ScoredMatch:
    """A collection search hit with its lexical score."""

    document: Document
    score: int


@dataclass(frozen=True, slots=True)
class ContextExcerpt:
    section: str
    title: str
    text: str

    def render(self) -> str:
        return f"\n--- {self.title} ---\n{self.text}"


@dataclass(slots=True)
class ConversationTurn:
    """A caller-supplied chat turn."""

    role: Literal["user", "assistant"]
    content: str


@dataclass(frozen=True, slots=True)
class ToolInvocation:
    """A tool call requested by the reasoning engine."""

    call_id: str
    name: str
    payload: dict[str, Any]
    parse_error: str | None = None


class ToolStatus(str, Enum):
    OK = "ok"
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_INPUT = "invalid_input"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ToolOutcome:
    """Text produced by a tool, plus how the invocation went."""

    name: str
    content: str
    status: ToolStatus = ToolStatus.OK

    @property
    def ok(self) -> bool:
        return self.status is ToolStatus.OK


@dataclass(frozen=True, slots=True)
class ToolResult:
    """A tool outcome matched back to the call id that requested it."""

    call_id: str
    outcome: ToolOutcome


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
    status: str = ToolStatus.OK.value
