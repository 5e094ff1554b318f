"""Built-in insurance tools exposed to the reasoning engine."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import asdict
from typing import Literal

from pydantic import Field, field_validator

from cover_agent.agent.registry import ToolInput, ToolRegistry, ToolSpec, engine_required
from cover_agent.calculators.coverage import (
    calculate_health_coverage,
    calculate_term_coverage,
)
from cover_agent.config import RetrievalConfig, Settings
from cover_agent.retrieval.corpus import Corpus
from cover_agent.retrieval.search import (
    compare_policies,
    find_insurer,
    policies_for_insurer,
    search_articles,
    search_claims_guides,
    search_policies,
)

CONTACT_PHONE = "+91 99000 91495"
CONTACT_EMAIL = "hello@nyvo.in"
KNOWN_INSURERS = (
    "Star Health, HDFC ERGO, ICICI Lombard, Care Health, Niva Bupa, "
    "Bajaj Allianz, LIC, Max Life"
)

ArticleCategory = Literal["health-insurance", "term-insurance", "claims", "general"]
InsuranceType = Literal["health-insurance", "term-insurance"]


class SearchKnowledgeInput(ToolInput):
    query: str = engine_required(
        "", 'Search query (e.g., "what is no claim bonus", "maternity cover", "tax benefits 80D")'
    )
    category: ArticleCategory | None = Field(default=None, description="Optional category filter")


class SearchPoliciesInput(ToolInput):
    query: str = engine_required(
        "", 'Search query for policies (e.g., "best health plan no copay", "Star Health plans")'
    )
    category: InsuranceType | None = Field(default=None, description="Type of insurance")
    insurer_name: str | None = Field(
        default=None, description='Filter by insurer name (e.g., "Star Health", "HDFC ERGO")'
    )


class ComparePoliciesInput(ToolInput):
    policy_identifiers: list[str] = engine_required(
        [],
        'List of policy names or IDs to compare (e.g., ["Star Health Comprehensive", "Care Supreme"])',
    )


class HealthCoverageInput(ToolInput):
    city_tier: Literal["metro", "tier1", "tier2"] = engine_required(
        "metro", "City tier: metro (Delhi, Mumbai, Bangalore, etc.), tier1, or tier2"
    )
    family_members: list[float] = engine_required(
        [30], "Array of ages of family members to be covered (e.g., [35, 32, 5])"
    )
    has_preexisting: bool = engine_required(
        False, "Whether any family member has pre-existing conditions"
    )
    corporate_cover: float = engine_required(
        0, "Existing corporate health insurance coverage in lakhs (e.g., 5 for ₹5L)"
    )
    monthly_income: float = Field(default=0, description="Monthly household income in INR")

    @field_validator("family_members")
    @classmethod
    def _default_family(cls, value: list[float]) -> list[float]:
        return value or [30]


class TermCoverageInput(ToolInput):
    annual_income: float = engine_required(0, "Annual income in INR")
    monthly_expenses: float = engine_required(0, "Monthly household expenses in INR")
    total_debts: float = engine_required(0, "Total outstanding loans/debts in INR")
    num_children: int = Field(default=0, ge=0, description="Number of dependent children")
    education_goal_per_child: float = Field(
        default=2_500_000,
        description="Target education fund per child in INR (e.g., 2500000 for ₹25L)",
    )
    existing_life_cover: float = Field(default=0, description="Existing life insurance coverage in INR")
    current_age: int = engine_required(30, "Current age")
    retirement_age: int = Field(default=60, description="Planned retirement age (default 60)")


class ClaimsGuidanceInput(ToolInput):
    query: str = engine_required(
        "", 'Claims-related query (e.g., "how to file cashless claim", "claim rejected what to do")'
    )
    insurance_type: InsuranceType | None = Field(default=None, description="Type of insurance claim")


class InsurerDetailsInput(ToolInput):
    insurer_name: str = engine_required(
        "", 'Name of the insurance company (e.g., "Star Health", "HDFC ERGO", "LIC")'
    )


class BookConsultationInput(ToolInput):
    reason: str = engine_required(
        "",
        'Brief reason for the consultation (e.g., "health insurance for family", "compare term plans")',
    )


def booking_url_from_settings() -> str:
    return Settings().resolved_booking_url()


def register_builtin_tools(
    registry: ToolRegistry,
    corpus: Corpus,
    *,
    config: RetrievalConfig | None = None,
    booking_url: Callable[[], str] = booking_url_from_settings,
) -> None:
    """Register the insurance tool set used by the planner.

    Tools:
    - `search_insurance_knowledge`: educational articles.
    - `search_policies` / `compare_policies`: policy summaries.
    - `calculate_health_coverage` / `calculate_term_coverage`: cover sizing.
    - `get_claims_guidance`: claims walkthroughs.
    - `get_insurer_details`: insurer profile and renewal portal.
    - `book_consultation`: advisor booking link, read from config per call.
    """

    cfg = config or RetrievalConfig()

    def _search_knowledge(input_data: SearchKnowledgeInput) -> str:
        articles = search_articles(corpus, input_data.query, input_data.category, config=cfg)
        if not articles:
            return "No articles found for this query. Try rephrasing or ask me directly."
        return "\n\n---\n\n".join(
            f"{a.title} ({a.category})\n" + "\n\n".join(a.chunks[: cfg.article_chunks])
            for a in articles
        )

    def _search_policies(input_data: SearchPoliciesInput) -> str:
        policies = search_policies(
            corpus,
            input_data.query,
            input_data.category,
            input_data.insurer_name,
            config=cfg,
        )
        if not policies:
            return "No matching policies found. Try a different insurer name or broader query."
        return "\n\n---\n\n".join(f"{p.name} by {p.insurer_name}\n{p.summary}" for p in policies)

    def _compare(input_data: ComparePoliciesInput) -> str:
        policies = compare_policies(corpus, input_data.policy_identifiers)
        if len(policies) < 2:
            found = ", ".join(p.name for p in policies)
            return (
                f"Could only find {len(policies)} of the requested policies. "
                f"Available policies: {found}. Please check the policy names."
            )
        return "\n\n=== VS ===\n\n".join(f"{p.name} by {p.insurer_name}\n{p.summary}" for p in policies)

    def _health(input_data: HealthCoverageInput) -> str:
        result = calculate_health_coverage(**input_data.model_dump())
        return json.dumps(asdict(result), indent=2, ensure_ascii=False)

    def _term(input_data: TermCoverageInput) -> str:
        result = calculate_term_coverage(**input_data.model_dump())
        return json.dumps(asdict(result), indent=2, ensure_ascii=False)

    def _claims(input_data: ClaimsGuidanceInput) -> str:
        guides = search_claims_guides(
            corpus, input_data.query, input_data.insurance_type, config=cfg
        )
        if not guides:
            return (
                "No specific claims guide found. For general claims support, contact "
                f"NYVO at {CONTACT_PHONE} or book a consultation."
            )
        return "\n\n---\n\n".join(
            f"{g.title}\n{g.content[: cfg.claims_guide_chars]}" for g in guides
        )

    def _insurer(input_data: InsurerDetailsInput) -> str:
        insurer = find_insurer(corpus, input_data.insurer_name) if input_data.insurer_name else None
        if insurer is None:
            return (
                f'Insurer "{input_data.insurer_name}" not found. '
                f"Available insurers include {KNOWN_INSURERS}, etc."
            )
        plans = policies_for_insurer(corpus, insurer)
        lines = [f"{insurer.name} ({insurer.short_name})", f"Type: {insurer.category}"]
        if insurer.renewal_link:
            lines.append(f"Renewal Portal: {insurer.renewal_link}")
        if plans:
            lines.append("Available Plans: " + ", ".join(p.name for p in plans))
        return "\n".join(lines)

    def _book(input_data: BookConsultationInput) -> str:
        return json.dumps(
            {
                "message": "Book a free consultation with NYVO insurance advisors",
                "bookingUrl": booking_url(),
                "reason": input_data.reason,
                "phone": CONTACT_PHONE,
                "whatsapp": CONTACT_PHONE,
                "email": CONTACT_EMAIL,
            }
        )

    registry.register(
        ToolSpec(
            name="search_insurance_knowledge",
            description=(
                "Search the NYVO insurance knowledge base for articles and educational content "
                "about health insurance, term insurance, claims, renewals, tax benefits, and more. "
                "Use this for general insurance questions."
            ),
            args_schema=SearchKnowledgeInput,
            handler=_search_knowledge,
            tags=["retrieval"],
        )
    )
    registry.register(
        ToolSpec(
            name="search_policies",
            description=(
                "Search and find insurance policies by name, insurer, or features. Returns policy "
                "details including coverage, features, waiting periods, and more."
            ),
            args_schema=SearchPoliciesInput,
            handler=_search_policies,
            tags=["retrieval", "policy"],
        )
    )
    registry.register(
        ToolSpec(
            name="compare_policies",
            description=(
                "Compare two or more insurance policies side by side. Provide policy names or IDs "
                "to compare their features, coverage, waiting periods, and premiums."
            ),
            args_schema=ComparePoliciesInput,
            handler=_compare,
            tags=["policy"],
        )
    )
    registry.register(
        ToolSpec(
            name="calculate_health_coverage",
            description=(
                "Calculate recommended health insurance coverage based on the user's profile. "
                "Considers city, family size, ages, pre-existing conditions, and existing coverage."
            ),
            args_schema=HealthCoverageInput,
            handler=_health,
            tags=["calculator"],
        )
    )
    registry.register(
        ToolSpec(
            name="calculate_term_coverage",
            description=(
                "Calculate recommended term life insurance coverage based on income, debts, "
                "dependents, and financial goals."
            ),
            args_schema=TermCoverageInput,
            handler=_term,
            tags=["calculator"],
        )
    )
    registry.register(
        ToolSpec(
            name="get_claims_guidance",
            description=(
                "Get step-by-step guidance on insurance claims: cashless claims, reimbursement "
                "claims, death claims, claim rejections, TPA process, IRDAI complaints, etc."
            ),
            args_schema=ClaimsGuidanceInput,
            handler=_claims,
            tags=["retrieval", "claims"],
        )
    )
    registry.register(
        ToolSpec(
            name="get_insurer_details",
            description=(
                "Get details about a specific insurance company including their renewal portal "
                "link, type, and available policies."
            ),
            args_schema=InsurerDetailsInput,
            handler=_insurer,
            tags=["insurer"],
        )
    )
    registry.register(
        ToolSpec(
            name="book_consultation",
            description=(
                "Generate a booking link for a free consultation call with NYVO insurance "
                "advisors. Use this when the user wants to speak to an expert, needs "
                "personalized advice, or wants to buy a policy."
            ),
            args_schema=BookConsultationInput,
            handler=_book,
            tags=["booking"],
        )
    )
