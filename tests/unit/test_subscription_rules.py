"""Unit tests for recurring charge recognition"""

import pytest
from datetime import date
from financial_guru.domain.models import SubscriptionFrequency
from financial_guru.domain.subscriptions import (
    annual_cost,
    detect_frequency,
    group_duplicates,
    is_consistent_amount,
    match_known_service,
    monthly_cost,
    next_expected_date,
    rough_normalize,
)


@pytest.mark.parametrize(
    "dates, frequency",
    [
        ([date(2024, 1, 1), date(2024, 1, 31), date(2024, 3, 1)], SubscriptionFrequency.MONTHLY),
        ([date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)], SubscriptionFrequency.WEEKLY),
        ([date(2024, 1, 1), date(2024, 4, 1)], SubscriptionFrequency.QUARTERLY),
        ([date(2023, 1, 1), date(2024, 1, 1)], SubscriptionFrequency.ANNUAL),
        ([date(2024, 1, 1), date(2024, 1, 16)], None),
        ([date(2024, 1, 1)], None),
    ],
)
def test_detect_frequency(dates, frequency):
    assert detect_frequency(dates) == frequency


def test_known_service_matches_merchant_or_description():
    assert match_known_service("NETFLIX.COM", None) == ("Netflix", "Entertainment")
    assert match_known_service(None, "Recurring SPOTIFY USA") == ("Spotify", "Entertainment")
    assert match_known_service("CORNER DELI", "lunch") is None


def test_amount_consistency_within_ten_percent():
    assert is_consistent_amount([10.0, 10.5, 9.8]) is True
    assert is_consistent_amount([10.0, 20.0]) is False


def test_costs():
    assert annual_cost(15.49, SubscriptionFrequency.MONTHLY) == 185.88
    assert annual_cost(5.0, SubscriptionFrequency.WEEKLY) == 260.0
    assert monthly_cost(120.0, "ANNUAL") == pytest.approx(10.0)
    assert monthly_cost(10.0, "WEEKLY") == pytest.approx(43.3)
    assert monthly_cost(10.0, "SOMETIMES") == 10.0
    assert monthly_cost(None, "MONTHLY") == 0.0


def test_next_expected_date_clamps_month_end():
    assert next_expected_date(date(2024, 1, 31), SubscriptionFrequency.MONTHLY) == date(2024, 2, 29)
    assert next_expected_date(date(2024, 1, 31), SubscriptionFrequency.WEEKLY) == date(2024, 2, 7)
    assert next_expected_date(date(2024, 2, 29), SubscriptionFrequency.ANNUAL) == date(2025, 2, 28)


def test_rough_normalize():
    assert rough_normalize("SQ *Blue Bottle #12") == "sq"
    assert rough_normalize("Hulu   LLC.") == "hulu llc"
    assert rough_normalize(None) == ""


def test_group_duplicates_keeps_first_as_primary():
    groups = group_duplicates([("netflix", "a"), ("spotify", "b"), ("netflix", "c"), ("netflix", "d")])

    assert groups == [("a", ["c", "d"])]
