"""Unit tests for debt payoff simulation"""

from datetime import date
from financial_guru.domain.debt_payoff import (
    AVALANCHE,
    MAX_MONTHS,
    SNOWBALL,
    WHAT_IF_EXTRAS,
    simulate_payoff,
    what_if_range,
)
from financial_guru.domain.models import CardDebt


TODAY = date(2024, 1, 15)


def test_single_card_pays_off_with_minimum_only():
    """$1,000 at 12% with a $100 minimum takes 11 months"""
    cards = [CardDebt("a", "Card A", 1000.0, 12.0, min_payment=100.0)]

    result = simulate_payoff(cards, 0.0, AVALANCHE, TODAY)

    assert result.total_months == 11
    assert result.total_interest == 58.98
    assert result.total_paid == 1058.98
    assert result.payoff_date == date(2024, 12, 15)
    assert result.card_order[0].payoff_order == 1
    assert result.card_order[0].payoff_date == date(2024, 12, 15)


def test_avalanche_orders_by_apr_snowball_by_balance():
    cards = [
        CardDebt("low", "Low APR Big", 5000.0, 9.99, min_payment=150.0),
        CardDebt("high", "High APR Small", 800.0, 29.99, min_payment=40.0),
        CardDebt("mid", "Mid APR Tiny", 300.0, 19.99, min_payment=25.0),
    ]

    avalanche = simulate_payoff(cards, 200.0, AVALANCHE, TODAY)
    snowball = simulate_payoff(cards, 200.0, SNOWBALL, TODAY)

    assert [c.account_id for c in avalanche.card_order] == ["high", "mid", "low"]
    assert [c.account_id for c in snowball.card_order] == ["mid", "high", "low"]
    assert avalanche.total_interest <= snowball.total_interest


def test_extra_payment_shortens_payoff():
    cards = [CardDebt("a", "Card A", 3000.0, 22.0, min_payment=60.0)]

    baseline = simulate_payoff(cards, 0.0, AVALANCHE, TODAY)
    boosted = simulate_payoff(cards, 300.0, AVALANCHE, TODAY)

    assert boosted.total_months < baseline.total_months
    assert boosted.total_interest < baseline.total_interest


def test_missing_minimum_uses_two_percent_with_floor():
    """Minimum is max(2% of balance, $25) when none is on file"""
    cards = [CardDebt("a", "Card A", 500.0, 0.0)]

    result = simulate_payoff(cards, 0.0, SNOWBALL, TODAY)

    # $25 a month with no interest
    assert result.total_months == 20
    assert result.total_interest == 0.0


def test_simulation_is_capped():
    """A minimum that never covers interest stops at the month cap"""
    cards = [CardDebt("a", "Card A", 100000.0, 30.0, min_payment=25.0)]

    result = simulate_payoff(cards, 0.0, AVALANCHE, TODAY)

    assert result.total_months == MAX_MONTHS


def test_no_cards_means_no_months():
    result = simulate_payoff([], 100.0, AVALANCHE, TODAY)

    assert result.total_months == 0
    assert result.total_interest == 0.0
    assert result.card_order == []


def test_what_if_range_covers_every_extra_amount():
    cards = [CardDebt("a", "Card A", 2000.0, 18.0, min_payment=50.0)]

    rows = what_if_range(cards, TODAY)

    assert [row["extra_payment"] for row in rows] == [float(x) for x in WHAT_IF_EXTRAS]
    months = [row["avalanche_months"] for row in rows]
    assert months == sorted(months, reverse=True)
    # single card: both orderings are the same
    assert all(row["avalanche_months"] == row["snowball_months"] for row in rows)
