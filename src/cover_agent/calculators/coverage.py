"""Health and term cover recommendation calculators."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal

CityTier = Literal["metro", "tier1", "tier2"]

CITY_MULTIPLIERS: dict[str, float] = {"metro": 1.5, "tier1": 1.2, "tier2": 1.0}
BASE_HOSPITAL_COST = 500_000
MEDICAL_INFLATION = 0.10
PROJECTION_YEARS = 10
PREEXISTING_UPLIFT = 1.4
MAX_BASE_PLAN_LAKHS = 25
OPTIMIZED_BASE_LAKHS = 15
LAKH = 100_000
CRORE = 10_000_000

AGE_RISK_FACTOR: dict[str, float] = {
    "child": 0.5,
    "young": 0.8,
    "middle": 1.2,
    "senior": 1.8,
    "elderly": 2.5,
}


@dataclass(slots=True)
class PremiumRange:
    min: int
    max: int


@dataclass(slots=True)
class HealthCoverageResult:
    recommended_cover_lakhs: int
    base_plan_lakhs: float
    super_topup_lakhs: float
    coverage_gap_lakhs: float
    estimated_premium_range: PremiumRange
    reasoning: list[str] = field(default_factory=list)


@dataclass(slots=True)
class TermCoverageResult:
    recommended_cover_cr: float
    income_replacement: float
    debt_cover: float
    education_fund: float
    total_need: float
    gap: float
    recommended_tenure: int
    estimated_premium_range: PremiumRange
    reasoning: list[str] = field(default_factory=list)


def age_group(age: float) -> str:
    if age <= 18:
        return "child"
    if age <= 35:
        return "young"
    if age <= 50:
        return "middle"
    if age <= 65:
        return "senior"
    return "elderly"


def calculate_health_coverage(
    *,
    city_tier: str,
    family_members: list[float],
    has_preexisting: bool = False,
    corporate_cover: float = 0,
    monthly_income: float = 0,
) -> HealthCoverageResult:
    """Recommend a family floater size in lakhs.

    The oldest member drives the risk factor. Cover above 25L is split into a
    15L base plan plus a super top-up. `monthly_income` is accepted for parity
    with the advisor form but does not affect the result.
    """

    if not family_members:
        raise ValueError("family_members must list at least one age")

    reasoning: list[str] = []

    base_cost = BASE_HOSPITAL_COST * CITY_MULTIPLIERS.get(city_tier, 1.0)
    reasoning.append(
        f"Base hospitalization cost for {city_tier} city: ₹{base_cost / LAKH:.1f}L"
    )

    max_age = max(family_members)
    group = age_group(max_age)
    age_risk = AGE_RISK_FACTOR[group]
    base_cost *= age_risk
    reasoning.append(
        f"Age risk factor ({group}, oldest member {_fmt_number(max_age)}y): {age_risk}x"
    )

    if has_preexisting:
        base_cost *= PREEXISTING_UPLIFT
        reasoning.append(f"Pre-existing condition uplift: {PREEXISTING_UPLIFT}x")

    projected = base_cost * (1 + MEDICAL_INFLATION) ** PROJECTION_YEARS
    reasoning.append(
        f"Projected cost ({PROJECTION_YEARS}yr @ {MEDICAL_INFLATION * 100:.0f}% inflation): "
        f"₹{projected / LAKH:.1f}L"
    )

    family_factor = 1 + (len(family_members) - 1) * 0.15
    total_need = projected * family_factor
    reasoning.append(
        f"Family size adjustment ({len(family_members)} members): {family_factor:.2f}x"
    )

    recommended = math.ceil(total_need / (5 * LAKH)) * 5

    corporate = corporate_cover or 0
    gap = max(0, recommended - corporate)
    if corporate > 0:
        reasoning.append(
            f"Corporate cover: ₹{_fmt_number(corporate)}L (gap: ₹{_fmt_number(gap)}L)"
        )

    if gap > MAX_BASE_PLAN_LAKHS:
        base_plan = OPTIMIZED_BASE_LAKHS
        super_topup = gap - base_plan
        reasoning.append(
            f"Recommended split: ₹{base_plan}L base + ₹{_fmt_number(super_topup)}L "
            "super top-up (cost-efficient)"
        )
    else:
        base_plan = gap
        super_topup = 0
        reasoning.append(f"Single base plan of ₹{_fmt_number(base_plan)}L should suffice")

    premium_base = base_plan * 800 * age_risk
    return HealthCoverageResult(
        recommended_cover_lakhs=recommended,
        base_plan_lakhs=base_plan,
        super_topup_lakhs=super_topup,
        coverage_gap_lakhs=gap,
        estimated_premium_range=PremiumRange(
            min=_round_half_up(premium_base),
            max=_round_half_up(premium_base * 1.5),
        ),
        reasoning=reasoning,
    )


def calculate_term_coverage(
    *,
    annual_income: float,
    monthly_expenses: float = 0,
    total_debts: float = 0,
    num_children: int = 0,
    education_goal_per_child: float = 2_500_000,
    existing_life_cover: float = 0,
    current_age: int = 30,
    retirement_age: int = 60,
) -> TermCoverageResult:
    """Recommend term life cover in crores from income, debts and goals."""

    reasoning: list[str] = []

    years_to_retirement = max(1, retirement_age - current_age)
    multiplier = min(15.0, max(10.0, years_to_retirement * 0.5))
    income_replacement = annual_income * multiplier
    reasoning.append(
        f"Income replacement: ₹{annual_income / LAKH:.0f}L × {multiplier:.0f} = "
        f"₹{income_replacement / CRORE:.1f}Cr"
    )

    debt_cover = total_debts
    if debt_cover > 0:
        reasoning.append(f"Outstanding debts: ₹{debt_cover / LAKH:.0f}L")

    education_fund = num_children * education_goal_per_child
    if education_fund > 0:
        reasoning.append(
            f"Education fund: {num_children} child(ren) × "
            f"₹{education_goal_per_child / LAKH:.0f}L = ₹{education_fund / LAKH:.0f}L"
        )

    total_need = income_replacement + debt_cover + education_fund
    reasoning.append(f"Total coverage need: ₹{total_need / CRORE:.2f}Cr")

    existing = existing_life_cover or 0
    gap = max(0, total_need - existing)
    if existing > 0:
        reasoning.append(
            f"Existing cover: ₹{existing / CRORE:.2f}Cr → Gap: ₹{gap / CRORE:.2f}Cr"
        )

    recommended_cr = math.ceil(gap / 2_500_000) * 0.25

    tenure = min(40, max(20, retirement_age - current_age + 5))
    reasoning.append(
        f"Recommended tenure: {tenure} years (until age {current_age + tenure})"
    )

    if current_age <= 30:
        age_factor = 1.0
    elif current_age <= 40:
        age_factor = 1.5
    else:
        age_factor = 2.2
    cover_lakhs = recommended_cr * 100
    premium_min = _round_half_up(cover_lakhs * 500 * age_factor)
    premium_max = _round_half_up(cover_lakhs * 750 * age_factor)
    reasoning.append(f"Estimated annual premium: ₹{premium_min:,} - ₹{premium_max:,}")

    return TermCoverageResult(
        recommended_cover_cr=recommended_cr,
        income_replacement=income_replacement,
        debt_cover=debt_cover,
        education_fund=education_fund,
        total_need=total_need,
        gap=gap,
        recommended_tenure=tenure,
        estimated_premium_range=PremiumRange(min=premium_min, max=premium_max),
        reasoning=reasoning,
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _fmt_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
