"""Error types raised by the assistant."""

from __future__ import annotations


class CoverAgentError(Exception):
    """Base class for package errors."""


class CorpusLoadError(CoverAgentError):
    """Raised when the corpus snapshot cannot be read or parsed."""


class UnknownToolError(CoverAgentError, KeyError):
    """Raised when a tool name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown tool: {self.name}"


class UpstreamError(CoverAgentError):
    """Raised when the reasoning engine call fails or times out."""
