"""Assembles the per-question knowledge context block."""

from __future__ import annotations

from dataclasses import dataclass

from cover_agent.config import RetrievalConfig
from cover_agent.retrieval.corpus import Corpus
from cover_agent.retrieval.search import (
    search_articles,
    search_claims_guides,
    search_policies,
)
from cover_agent.types import ContextExcerpt

ARTICLES = "articles"
POLICIES = "policies"
CLAIMS = "claims"

SECTION_ORDER = (ARTICLES, POLICIES, CLAIMS)
SECTION_HEADERS = {
    ARTICLES: "=== RELEVANT ARTICLES ===",
    POLICIES: "=== RELEVANT POLICIES ===",
    CLAIMS: "=== CLAIMS GUIDANCE ===",
}


@dataclass(frozen=True, slots=True)
class ContextBlock:
    """Labeled excerpts in fixed section order."""

    excerpts: tuple[ContextExcerpt, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.excerpts)

    def sections(self) -> list[str]:
        present = {excerpt.section for excerpt in self.excerpts}
        return [name for name in SECTION_ORDER if name in present]

    def render(self, char_budget: int | None = None) -> str:
        """Render to prompt text.

        With `char_budget`, trailing excerpts are dropped whole until the text
        fits; an excerpt is never cut in the middle.
        """

        excerpts = list(self.excerpts)
        text = _render(excerpts)
        if char_budget is None:
            return text
        while excerpts and len(text) > char_budget:
            excerpts.pop()
            text = _render(excerpts)
        return text


def build_context(
    corpus: Corpus, query: str, config: RetrievalConfig | None = None
) -> ContextBlock:
    """Search articles, policies and claims guides and collect excerpts."""

    config = config or RetrievalConfig()
    excerpts: list[ContextExcerpt] = []

    for article in search_articles(
        corpus, query, max_results=config.context_articles, config=config
    ):
        excerpts.append(
            ContextExcerpt(
                section=ARTICLES,
                title=f"{article.title} ({article.category})",
                text="\n\n".join(article.chunks[: config.article_chunks]),
            )
        )

    for policy in search_policies(
        corpus, query, max_results=config.context_policies, config=config
    ):
        excerpts.append(
            ContextExcerpt(
                section=POLICIES,
                title=f"{policy.name} by {policy.insurer_name}",
                text=policy.summary,
            )
        )

    for guide in search_claims_guides(
        corpus, query, max_results=config.context_claims, config=config
    ):
        excerpts.append(
            ContextExcerpt(
                section=CLAIMS,
                title=guide.title,
                text=guide.content[: config.context_claims_chars],
            )
        )

    return ContextBlock(excerpts=tuple(excerpts))


def _render(excerpts: list[ContextExcerpt]) -> str:
    parts: list[str] = []
    for section in SECTION_ORDER:
        members = [excerpt for excerpt in excerpts if excerpt.section == section]
        if not members:
            continue
        header = SECTION_HEADERS[section]
        parts.append(header if not parts else "\n" + header)
        parts.extend(excerpt.render() for excerpt in members)
    return "\n".join(parts)
