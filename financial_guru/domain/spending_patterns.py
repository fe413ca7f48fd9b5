"""Spending pattern analytics - daily heatmap, merchant trend, duplicate charges"""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Sequence, Tuple
from financial_guru.utils.date_utils import generate_date_range

DUPLICATE_WINDOW_DAYS = 7
TREND_THRESHOLD = 0.1


@dataclass
class HeatmapDay:
    date: date
    total_spend: float
    transaction_count: int
    intensity: int


@dataclass
class SpendingHeatmap:
    year: int
    max_daily_spend: float
    total_annual_spend: float
    days: List[HeatmapDay] = field(default_factory=list)


@dataclass
class MerchantTrend:
    merchant_name: str
    months: List[Tuple[str, float]]
    total_annual: float
    avg_monthly: float
    trend: str  # INCREASING | DECREASING | STABLE


def intensity_for(spend: float, max_daily: float) -> int:
    """0 for no spend, then 1-4 by share of the busiest day"""
    if spend <= 0 or max_daily <= 0:
        return 0
    ratio = round(spend / max_daily, 4)
    if ratio < 0.2:
        return 1
    if ratio < 0.4:
        return 2
    if ratio < 0.7:
        return 3
    return 4


def build_heatmap(
    year: int, daily_totals: Iterable[Tuple[date, float, int]], today: date | None = None
) -> SpendingHeatmap:
    """
    One cell per day from Jan 1 through Dec 31 or today, whichever comes first.

    daily_totals holds (day, debit total, transaction count) for days with spend.
    """
    today = today or date.today()
    start = date(year, 1, 1)
    end = min(date(year, 12, 31), today)

    by_day: Dict[date, Tuple[float, int]] = {day: (total, count) for day, total, count in daily_totals}
    totals = [total for total, _ in by_day.values()]
    max_daily = max(totals) if totals else 1.0

    days = []
    for day in generate_date_range(start, end):
        spend, count = by_day.get(day, (0.0, 0))
        days.append(HeatmapDay(day, spend, count, intensity_for(spend, max_daily)))

    return SpendingHeatmap(
        year=year,
        max_daily_spend=max_daily,
        total_annual_spend=round(sum(totals), 2),
        days=days,
    )


def merchant_trend(merchant: str, monthly: Sequence[Tuple[str, float]]) -> MerchantTrend:
    """
    Summarize a merchant's monthly totals, oldest month first.

    Trend compares the average of the last 3 months with the 3 before:
    more than +10% is INCREASING, below -10% DECREASING. Fewer than 6 months
    of history is always STABLE.
    """
    months = list(monthly)
    total = round(sum(amount for _, amount in months), 2)
    avg = round(total / len(months), 2) if months else 0.0

    trend = "STABLE"
    if len(months) >= 6:
        recent = round(sum(amount for _, amount in months[-3:]) / 3, 2)
        prior = round(sum(amount for _, amount in months[-6:-3]) / 3, 2)
        if prior > 0:
            change = round((recent - prior) / prior, 4)
            if change > TREND_THRESHOLD:
                trend = "INCREASING"
            elif change < -TREND_THRESHOLD:
                trend = "DECREASING"

    return MerchantTrend(merchant_name=merchant, months=months, total_annual=total, avg_monthly=avg, trend=trend)


def _has_close_pair(dates: List[date], window: int) -> bool:
    for i, first in enumerate(dates):
        for second in dates[i + 1:]:
            if abs((first - second).days) <= window:
                return True
    return False


def find_duplicate_groups(transactions: Iterable, window: int = DUPLICATE_WINDOW_DAYS) -> List[list]:
    """
    Group debits charged twice: same merchant (case-insensitive) and amount,
    with at least two charges within the window. Transactions without a
    merchant are ignored; groups keep first-seen order.
    """
    groups: "OrderedDict[str, list]" = OrderedDict()
    for txn in transactions:
        if txn.merchant_name is None:
            continue
        key = f"{txn.merchant_name.lower()}|{txn.amount:.2f}"
        groups.setdefault(key, []).append(txn)

    return [
        group
        for group in groups.values()
        if len(group) >= 2 and _has_close_pair([t.transaction_date for t in group], window)
    ]
