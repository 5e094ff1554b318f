from cover_agent.retrieval.corpus import Corpus
from cover_agent.retrieval.search import (
    compare_policies,
    find_insurer,
    get_policy,
    list_insurers,
    policies_by_insurer,
    policies_for_insurer,
    rank,
    search,
    search_articles,
    search_policies,
)
from cover_agent.types import Article, InsurerRecord, PolicyRecord, SearchFilters


def _article(doc_id: str, keywords: list[str], text: str, category: str = "general") -> Article:
    return Article(
        id=doc_id,
        title=doc_id,
        category=category,
        keywords=tuple(keywords),
        chunks=(text,),
    )


def _policy(doc_id: str, name: str, insurer: str, insurer_id: str, category: str) -> PolicyRecord:
    return PolicyRecord(
        id=doc_id,
        name=name,
        insurer_name=insurer,
        insurer_id=insurer_id,
        category=category,
        keywords=("health insurance",),
        summary=f"{name} by {insurer}",
    )


def test_ties_keep_collection_order_and_zero_scores_are_dropped() -> None:
    articles = [
        _article("a", ["premium"], "intro"),
        _article("b", ["premium"], "intro"),
        _article("c", ["premium"], "premium details"),
        _article("d", ["tax"], "unrelated"),
        _article("e", ["premium"], "intro"),
    ]

    matches = rank(articles, "premium", max_results=10)

    assert [m.document.id for m in matches] == ["c", "a", "b", "e"]
    scores = [m.score for m in matches]
    assert scores == sorted(scores, reverse=True)


def test_max_results_truncates_after_sorting() -> None:
    articles = [
        _article("low", ["premium"], "intro"),
        _article("high", ["premium"], "premium premium"),
    ]

    assert [a.id for a in search(articles, "premium", max_results=1)] == ["high"]


def test_empty_result_is_valid() -> None:
    articles = [_article("a", ["premium"], "intro")]

    assert search(articles, "maternity", max_results=3) == []
    assert search(articles, "", max_results=3) == []


def test_category_filter_is_exact() -> None:
    articles = [
        _article("h", ["premium"], "x", category="health-insurance"),
        _article("t", ["premium"], "x", category="term-insurance"),
    ]

    hits = search(
        articles,
        "premium",
        filters=SearchFilters(category="term-insurance"),
        max_results=5,
    )

    assert [a.id for a in hits] == ["t"]


def test_insurer_filter_matches_name_or_id_case_insensitively() -> None:
    corpus = Corpus(
        policies=(
            _policy("p1", "Comprehensive", "Star Health", "star-health", "health-insurance"),
            _policy("p2", "Supreme", "Care Health", "care-health", "health-insurance"),
        )
    )

    by_name = search_policies(corpus, "health insurance", insurer_name="STAR")
    by_id = search_policies(corpus, "health insurance", insurer_name="care-health")

    assert [p.id for p in by_name] == ["p1"]
    assert [p.id for p in by_id] == ["p2"]


def test_results_only_come_from_the_searched_collection(corpus) -> None:
    hits = search_articles(corpus, "health insurance claim premium", max_results=10)

    assert hits
    assert all(isinstance(hit, Article) for hit in hits)
    assert {hit.id for hit in hits} <= {a.id for a in corpus.articles}


def test_no_claim_bonus_article_outranks_unrelated_article(corpus) -> None:
    hits = search_articles(corpus, "what is no claim bonus")
    ids = [hit.id for hit in hits]

    assert ids[0] == "article-no-claim-bonus"
    assert "article-section-80d" not in ids


def test_compare_policies_resolves_by_id_or_name_fragment(corpus) -> None:
    resolved = compare_policies(corpus, ["policy-care-supreme", "star health", "missing plan"])

    assert [p.id for p in resolved] == ["policy-care-supreme", "policy-star-comprehensive"]


def test_insurer_lookups(corpus) -> None:
    insurer = find_insurer(corpus, "care")

    assert isinstance(insurer, InsurerRecord)
    assert insurer.id == "care-health"
    assert find_insurer(corpus, "unknown insurer") is None
    assert [p.id for p in policies_by_insurer(corpus, "Star Health")] == [
        "policy-star-comprehensive"
    ]
    assert [i.id for i in list_insurers(corpus, "life")] == ["hdfc-life"]
    assert len(list_insurers(corpus)) == len(corpus.insurers)


def test_policy_lookup_by_id_and_insurer_record(corpus) -> None:
    hdfc = find_insurer(corpus, "hdfc")

    assert get_policy(corpus, "policy-care-supreme").name == "Care Supreme"
    assert get_policy(corpus, "Care Supreme") is None
    assert [p.id for p in policies_for_insurer(corpus, hdfc)] == ["policy-hdfc-click2protect"]
