import pytest

from cover_agent.calculators.coverage import (
    age_group,
    calculate_health_coverage,
    calculate_term_coverage,
)


def test_metro_family_recommendation_is_multiple_of_five_lakhs() -> None:
    result = calculate_health_coverage(
        city_tier="metro",
        family_members=[35, 32, 5],
        has_preexisting=False,
        corporate_cover=0,
    )

    assert result.recommended_cover_lakhs > 0
    assert result.recommended_cover_lakhs % 5 == 0
    assert result.recommended_cover_lakhs == 25
    assert result.base_plan_lakhs <= 25
    assert result.super_topup_lakhs == 0
    assert result.estimated_premium_range.min == 16000
    assert result.estimated_premium_range.max == 24000


def test_large_need_splits_into_base_plus_super_topup() -> None:
    result = calculate_health_coverage(
        city_tier="metro", family_members=[70], has_preexisting=True
    )

    assert result.recommended_cover_lakhs == 70
    assert result.base_plan_lakhs == 15
    assert result.super_topup_lakhs == 55
    assert any("Pre-existing" in line for line in result.reasoning)


def test_corporate_cover_reduces_gap() -> None:
    result = calculate_health_coverage(
        city_tier="metro", family_members=[35, 32, 5], corporate_cover=10
    )

    assert result.coverage_gap_lakhs == 15
    assert result.base_plan_lakhs == 15
    assert any(line.startswith("Corporate cover") for line in result.reasoning)


def test_health_calculator_requires_members() -> None:
    with pytest.raises(ValueError):
        calculate_health_coverage(city_tier="tier2", family_members=[])


@pytest.mark.parametrize(
    ("age", "group"),
    [(5, "child"), (18, "child"), (35, "young"), (50, "middle"), (65, "senior"), (66, "elderly")],
)
def test_age_groups(age: int, group: str) -> None:
    assert age_group(age) == group


def test_term_cover_rounds_up_to_quarter_crore() -> None:
    result = calculate_term_coverage(annual_income=1_200_000, current_age=30)

    assert result.income_replacement == 18_000_000
    assert result.recommended_cover_cr == 2.0
    assert result.recommended_tenure == 35
    assert result.estimated_premium_range.min == 100_000
    assert result.estimated_premium_range.max == 150_000


def test_term_cover_accounts_for_debts_children_and_existing_cover() -> None:
    result = calculate_term_coverage(
        annual_income=1_000_000,
        total_debts=2_000_000,
        num_children=2,
        existing_life_cover=5_000_000,
        current_age=40,
        retirement_age=60,
    )

    assert result.income_replacement == 10_000_000
    assert result.education_fund == 5_000_000
    assert result.total_need == 17_000_000
    assert result.gap == 12_000_000
    assert result.recommended_cover_cr == 1.25
    assert result.recommended_tenure == 25
