"""Unit tests for the credit score estimate and FIRE projection"""

import pytest
from datetime import date
from financial_guru.domain.credit_score import (
    CardBalance,
    analyze_credit,
    estimate_score,
    utilization_impact,
    utilization_percent,
)
from financial_guru.domain.fire import (
    SIMULATION_YEARS,
    UNREACHABLE_YEARS,
    calculate_fire,
    monte_carlo_bands,
    years_to_target,
)


@pytest.mark.parametrize(
    "utilization, score",
    [(0.5, 800), (5, 780), (25, 740), (45, 690), (60, 660), (90, 650)],
)
def test_estimate_score_bands(utilization, score):
    assert estimate_score(utilization) == score


def test_utilization_impact_labels():
    assert utilization_impact(8) == "EXCELLENT"
    assert utilization_impact(30) == "GOOD"
    assert utilization_impact(45) == "FAIR"
    assert utilization_impact(51) == "POOR"


def test_utilization_percent_without_limit():
    assert utilization_percent(500.0, 0.0) == 0.0
    assert utilization_percent(2500.0, 5000.0) == 50.0


def test_analyze_credit_recommends_paying_down_to_thirty_percent():
    cards = [CardBalance("c1", "Freedom", 2500.0, 5000.0)]

    estimate = analyze_credit(cards)

    assert estimate.estimated_score == 690
    assert estimate.utilization_impact == "FAIR"
    assert estimate.cards[0].utilization_pct == 50.0
    assert estimate.cards[0].recommended_payment == 1000.0
    scenario = estimate.what_if_scenarios[0]
    assert scenario.payment_amount == 1000.0
    assert scenario.new_utilization_pct == 30.0
    assert scenario.estimated_score_impact == 50
    assert estimate.recommendations[0].startswith("Focus first on Freedom")
    assert "Pay $1000.00 on Freedom" in estimate.recommendations[1]
    assert "BEFORE the statement closing date" in estimate.recommendations[-1]


def test_analyze_credit_praises_low_utilization():
    cards = [
        CardBalance("c1", "Sapphire", 200.0, 10000.0),
        CardBalance("c2", "No Limit", 50.0, None),
    ]

    estimate = analyze_credit(cards)

    assert len(estimate.cards) == 1
    assert estimate.what_if_scenarios == []
    assert any(r.startswith("Great job!") for r in estimate.recommendations)


def test_years_to_target_edges():
    assert years_to_target(100.0, 0.0, 50.0) == 0
    assert years_to_target(0.0, 0.0, 100.0) == UNREACHABLE_YEARS
    assert years_to_target(0.0, 72000.0, 1200000.0) == 12


def test_calculate_fire_projection():
    projection = calculate_fire(10000.0, 4000.0, 0.0, today=date(2024, 6, 15))

    assert projection.fi_number == 1200000
    assert projection.monthly_savings == 6000.0
    assert projection.savings_rate == 60.0
    assert projection.years_to_fire == 12.0
    assert projection.fire_date == date(2036, 6, 15)
    assert len(projection.projections) == 18
    assert projection.projections[0].year == 2024
    assert len(projection.monte_carlo_p50) == SIMULATION_YEARS + 1


def test_calculate_fire_savings_gap_by_target_age():
    projection = calculate_fire(
        6000.0, 5000.0, 20000.0, age=40, target_retirement_age=50, today=date(2024, 6, 15)
    )

    assert projection.monthly_savings_gap > 0


def test_monte_carlo_bands_are_seeded_and_ordered():
    first = monte_carlo_bands(10000.0, 12000.0)
    second = monte_carlo_bands(10000.0, 12000.0)

    assert first == second
    p10, p50, p90 = first
    assert p10[0] == p50[0] == p90[0] == 10000
    assert all(low <= mid <= high for low, mid, high in zip(p10, p50, p90))
