"""Filtered, ranked search over one corpus collection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from cover_agent.config import RetrievalConfig
from cover_agent.retrieval.corpus import Corpus
from cover_agent.retrieval.scorer import score, tokenize
from cover_agent.types import (
    Article,
    ClaimsGuide,
    Document,
    InsurerRecord,
    PolicyRecord,
    ScoredMatch,
    SearchFilters,
)

D = TypeVar("D", Article, PolicyRecord, ClaimsGuide, InsurerRecord)

_DEFAULT_CONFIG = RetrievalConfig()


def scored_text(document: Document, prefix_chars: int = 500) -> str:
    """Return the text a document is matched against."""

    if isinstance(document, Article):
        return document.title + " " + " ".join(document.chunks)[:prefix_chars]
    if isinstance(document, PolicyRecord):
        return document.name + " " + document.summary
    if isinstance(document, ClaimsGuide):
        return document.title + " " + document.content[:prefix_chars]
    return " ".join((document.name, document.short_name, document.category))


def rank(
    documents: Sequence[D],
    query: str,
    *,
    filters: SearchFilters | None = None,
    max_results: int,
    prefix_chars: int = 500,
) -> list[ScoredMatch]:
    """Score every candidate and return the top hits with their scores.

    Zero-score documents are dropped. `sorted` is stable, so equal scores keep
    their collection order.
    """

    tokens = tokenize(query)
    candidates = [doc for doc in documents if _matches_filters(doc, filters)]
    scored = [
        ScoredMatch(
            document=doc,
            score=score(doc.keywords, scored_text(doc, prefix_chars), tokens),
        )
        for doc in candidates
    ]
    ranked = sorted(
        (match for match in scored if match.score > 0),
        key=lambda match: match.score,
        reverse=True,
    )
    return ranked[:max_results]


def search(
    documents: Sequence[D],
    query: str,
    *,
    filters: SearchFilters | None = None,
    max_results: int,
    prefix_chars: int = 500,
) -> list[D]:
    matches = rank(
        documents,
        query,
        filters=filters,
        max_results=max_results,
        prefix_chars=prefix_chars,
    )
    return [match.document for match in matches]  # type: ignore[misc]


def search_articles(
    corpus: Corpus,
    query: str,
    category: str | None = None,
    max_results: int | None = None,
    config: RetrievalConfig = _DEFAULT_CONFIG,
) -> list[Article]:
    return search(
        corpus.articles,
        query,
        filters=SearchFilters(category=category),
        max_results=config.search_articles_k if max_results is None else max_results,
        prefix_chars=config.scored_prefix_chars,
    )


def search_policies(
    corpus: Corpus,
    query: str,
    category: str | None = None,
    insurer_name: str | None = None,
    max_results: int | None = None,
    config: RetrievalConfig = _DEFAULT_CONFIG,
) -> list[PolicyRecord]:
    return search(
        corpus.policies,
        query,
        filters=SearchFilters(category=category, insurer=insurer_name),
        max_results=config.search_policies_k if max_results is None else max_results,
        prefix_chars=config.scored_prefix_chars,
    )


def search_claims_guides(
    corpus: Corpus,
    query: str,
    category: str | None = None,
    max_results: int | None = None,
    config: RetrievalConfig = _DEFAULT_CONFIG,
) -> list[ClaimsGuide]:
    return search(
        corpus.claims_guides,
        query,
        filters=SearchFilters(category=category),
        max_results=config.search_claims_k if max_results is None else max_results,
        prefix_chars=config.scored_prefix_chars,
    )


def get_policy(corpus: Corpus, policy_id: str) -> PolicyRecord | None:
    return next((p for p in corpus.policies if p.id == policy_id), None)


def policies_by_insurer(corpus: Corpus, insurer_name: str) -> list[PolicyRecord]:
    return [p for p in corpus.policies if _insurer_matches(p, insurer_name)]


def policies_for_insurer(corpus: Corpus, insurer: InsurerRecord) -> list[PolicyRecord]:
    """Plans linked by insurer id, falling back to a short-name match."""

    linked = [p for p in corpus.policies if insurer.id and p.insurer_id == insurer.id]
    return linked or policies_by_insurer(corpus, insurer.short_name)


def compare_policies(corpus: Corpus, identifiers: Sequence[str]) -> list[PolicyRecord]:
    """Resolve each identifier by exact id or name substring, skipping misses."""

    resolved: list[PolicyRecord] = []
    for identifier in identifiers:
        needle = identifier.lower()
        match = next(
            (
                p
                for p in corpus.policies
                if p.id == identifier or needle in p.name.lower()
            ),
            None,
        )
        if match is not None:
            resolved.append(match)
    return resolved


def find_insurer(corpus: Corpus, name: str) -> InsurerRecord | None:
    needle = name.lower()
    return next(
        (
            i
            for i in corpus.insurers
            if needle in i.name.lower()
            or needle in i.short_name.lower()
            or needle in i.id.lower()
        ),
        None,
    )


def list_insurers(corpus: Corpus, insurer_type: str | None = None) -> list[InsurerRecord]:
    if insurer_type:
        return [i for i in corpus.insurers if i.category == insurer_type]
    return list(corpus.insurers)


def _matches_filters(document: Document, filters: SearchFilters | None) -> bool:
    if filters is None:
        return True
    if filters.category and document.category != filters.category:
        return False
    if filters.insurer and not _insurer_matches(document, filters.insurer):
        return False
    return True


def _insurer_matches(document: Document, insurer: str) -> bool:
    needle = insurer.lower()
    if isinstance(document, PolicyRecord):
        fields = (document.insurer_name, document.insurer_id)
    elif isinstance(document, InsurerRecord):
        fields = (document.name, document.short_name, document.id)
    else:
        return False
    return any(needle in value.lower() for value in fields)
