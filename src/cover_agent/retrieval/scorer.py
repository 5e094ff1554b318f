"""Lexical tokenizer and keyword-weighted match scoring."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")

KEYWORD_POINTS = 3
TEXT_POINTS = 1


def tokenize(text: str) -> list[str]:
    """Lower-case, strip punctuation and keep tokens longer than two chars."""

    cleaned = _NON_ALNUM.sub(" ", text.lower())
    return [token for token in cleaned.split() if len(token) > 2]


def score(
    keywords: Iterable[str], text: str, query_tokens: Sequence[str]
) -> int:
    """Score one document against already tokenized query terms.

    Each token earns `KEYWORD_POINTS` when it and any document keyword contain
    one another, plus `TEXT_POINTS` when it occurs in the document text.
    Tokens are scored independently, so repeated query terms count twice.
    """

    lowered_keywords = [kw.lower() for kw in keywords]
    lowered_text = text.lower()
    total = 0
    for token in query_tokens:
        if any(token in kw or kw in token for kw in lowered_keywords):
            total += KEYWORD_POINTS
        if token in lowered_text:
            total += TEXT_POINTS
    return total
