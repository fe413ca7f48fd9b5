"""Unit tests for heatmap, merchant trend and duplicate charge grouping"""

from dataclasses import dataclass
from datetime import date
from typing import Optional
from financial_guru.domain.anomalies import duplicate_pairs, is_spike, large_severity, spike_baseline
from financial_guru.domain.models import AlertSeverity
from financial_guru.domain.spending_patterns import (
    build_heatmap,
    find_duplicate_groups,
    intensity_for,
    merchant_trend,
)


@dataclass
class Charge:
    merchant_name: Optional[str]
    amount: float
    transaction_date: date


def test_intensity_buckets():
    assert intensity_for(0.0, 100.0) == 0
    assert intensity_for(10.0, 100.0) == 1
    assert intensity_for(30.0, 100.0) == 2
    assert intensity_for(50.0, 100.0) == 3
    assert intensity_for(100.0, 100.0) == 4


def test_heatmap_stops_at_today():
    heatmap = build_heatmap(
        2024,
        [(date(2024, 1, 3), 200.0, 2), (date(2024, 1, 5), 50.0, 1)],
        today=date(2024, 1, 10),
    )

    assert len(heatmap.days) == 10
    assert heatmap.max_daily_spend == 200.0
    assert heatmap.total_annual_spend == 250.0
    assert heatmap.days[2].intensity == 4
    assert heatmap.days[4].intensity == 2
    assert heatmap.days[0].transaction_count == 0


def test_heatmap_for_past_year_covers_every_day():
    heatmap = build_heatmap(2023, [], today=date(2024, 6, 1))

    assert len(heatmap.days) == 365
    assert heatmap.max_daily_spend == 1.0
    assert all(d.intensity == 0 for d in heatmap.days)


def test_merchant_trend_increasing():
    months = [("2024-01", 10.0), ("2024-02", 10.0), ("2024-03", 10.0), ("2024-04", 15.0), ("2024-05", 15.0), ("2024-06", 15.0)]

    trend = merchant_trend("Starbucks", months)

    assert trend.trend == "INCREASING"
    assert trend.total_annual == 75.0
    assert trend.avg_monthly == 12.5


def test_merchant_trend_short_history_is_stable():
    trend = merchant_trend("Starbucks", [("2024-05", 5.0), ("2024-06", 50.0)])

    assert trend.trend == "STABLE"


def test_find_duplicate_groups_case_insensitive_within_window():
    charges = [
        Charge("NETFLIX", 15.49, date(2024, 3, 1)),
        Charge("Netflix", 15.49, date(2024, 3, 4)),
        Charge("SPOTIFY", 9.99, date(2024, 3, 1)),
        Charge("SPOTIFY", 9.99, date(2024, 4, 1)),
        Charge(None, 15.49, date(2024, 3, 1)),
    ]

    groups = find_duplicate_groups(charges)

    assert len(groups) == 1
    assert [c.merchant_name for c in groups[0]] == ["NETFLIX", "Netflix"]


def test_duplicate_pairs_reports_days_apart():
    first = Charge("AMAZON", 42.0, date(2024, 3, 1))
    second = Charge("AMAZON", 42.0, date(2024, 3, 6))
    other = Charge("AMAZON", 42.0, date(2024, 5, 6))

    pairs = duplicate_pairs([first, second, other])

    assert pairs == [(first, second, 5)]


def test_spike_rules():
    assert spike_baseline([20.0, 30.0]) is None
    assert spike_baseline([20.0, 30.0, 40.0]) == 30.0
    assert is_spike(80.0, 30.0) is True
    assert is_spike(70.0, 30.0) is False
    assert large_severity(1500.0) == AlertSeverity.HIGH
    assert large_severity(600.0) == AlertSeverity.MEDIUM
