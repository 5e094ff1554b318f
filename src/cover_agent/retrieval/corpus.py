"""Read-only corpus snapshot and its loader."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from cover_agent.errors import CorpusLoadError
from cover_agent.types import Article, ClaimsGuide, InsurerRecord, PolicyRecord


@dataclass(frozen=True, slots=True)
class Corpus:
    """All collections loaded from one snapshot.

    Built once at startup and passed into every search; nothing mutates it
    afterwards, so concurrent readers need no locking.
    """

    articles: tuple[Article, ...] = ()
    policies: tuple[PolicyRecord, ...] = ()
    claims_guides: tuple[ClaimsGuide, ...] = ()
    insurers: tuple[InsurerRecord, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)
    company_info: dict[str, Any] | None = field(default=None, compare=False)
    calculator_info: tuple[dict[str, Any], ...] = field(default=(), compare=False)

    def sizes(self) -> dict[str, int]:
        return {
            "articles": len(self.articles),
            "policies": len(self.policies),
            "claims_guides": len(self.claims_guides),
            "insurers": len(self.insurers),
        }


def load_corpus(path: str | Path) -> Corpus:
    """Load a knowledge-base JSON snapshot from disk."""

    file_path = Path(path)
    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CorpusLoadError(f"Cannot read corpus snapshot {file_path}: {exc}") from exc

    corpus = corpus_from_dict(payload)
    logger.info("Loaded corpus {} {}", file_path.name, corpus.sizes())
    return corpus


def corpus_from_dict(payload: Any) -> Corpus:
    if not isinstance(payload, dict):
        raise CorpusLoadError("Corpus snapshot must be a JSON object")

    try:
        return Corpus(
            articles=tuple(_article(item) for item in payload.get("articles", [])),
            policies=tuple(_policy(item) for item in payload.get("policies", [])),
            claims_guides=tuple(
                _claims_guide(item) for item in payload.get("claimsGuides", [])
            ),
            insurers=tuple(_insurer(item) for item in payload.get("insurers", [])),
            metadata=dict(payload.get("metadata") or {}),
            company_info=payload.get("companyInfo"),
            calculator_info=tuple(payload.get("calculatorInfo") or ()),
        )
    except (KeyError, TypeError, AttributeError) as exc:
        raise CorpusLoadError(f"Malformed corpus record: {exc!r}") from exc


def _article(item: dict[str, Any]) -> Article:
    return Article(
        id=item["id"],
        title=item.get("title", "Untitled"),
        category=item.get("category", "general"),
        keywords=tuple(item.get("keywords", [])),
        chunks=tuple(item.get("chunks", [])),
        slug=item.get("slug", ""),
        full_content=item.get("fullContent", ""),
        sections=tuple(item.get("sections", [])),
    )


def _policy(item: dict[str, Any]) -> PolicyRecord:
    return PolicyRecord(
        id=item["id"],
        name=item["name"],
        insurer_name=item.get("insurerName", "Unknown"),
        insurer_id=item.get("insurerId", ""),
        category=item.get("category", "health-insurance"),
        keywords=tuple(item.get("keywords", [])),
        summary=item.get("summary", ""),
        description=item.get("description", ""),
        raw=dict(item.get("raw") or {}),
    )


def _claims_guide(item: dict[str, Any]) -> ClaimsGuide:
    return ClaimsGuide(
        id=item["id"],
        title=item.get("title", "Untitled"),
        category=item.get("category", "general"),
        keywords=tuple(item.get("keywords", [])),
        content=item.get("content", ""),
    )


def _insurer(item: dict[str, Any]) -> InsurerRecord:
    return InsurerRecord(
        id=item["id"],
        name=item["name"],
        short_name=item.get("shortName", item["name"]),
        category=item.get("type", "unknown"),
        renewal_link=item.get("renewalLink", ""),
        keywords=tuple(item.get("keywords", [])),
    )
