"""Budget standing - percent used, month-end projection and status band"""

from datetime import date
from typing import Tuple
from financial_guru.domain.models import BudgetStatus
from financial_guru.utils.date_utils import days_in_month

GREEN = "GREEN"
YELLOW = "YELLOW"
RED = "RED"

WARNING_PERCENT = 80.0
EXCEEDED_PERCENT = 100.0

STATUS_ORDER = {RED: 0, YELLOW: 1, GREEN: 2}


def status_for(percent_used: float) -> str:
    if percent_used >= EXCEEDED_PERCENT:
        return RED
    if percent_used >= WARNING_PERCENT:
        return YELLOW
    return GREEN


def budget_status(monthly_limit: float, actual_spend: float, today: date | None = None) -> BudgetStatus:
    """
    Month-to-date standing of one category budget.

    Requirements:
    - percent_used = actual / limit x 100 (0 when the limit is not positive)
    - projected_month_end = actual / day of month x days in month
    - RED at 100% or more, YELLOW from 80%, GREEN below

    Example:
        $400 spent of a $500 limit on June 10th:
        percent_used=80.0, projected_month_end=1200.0, status=YELLOW
    """
    today = today or date.today()
    if monthly_limit > 0:
        percent = round(round(actual_spend / monthly_limit, 4) * 100, 2)
    else:
        percent = 0.0
    projected = round(actual_spend / today.day * days_in_month(today), 2)
    return BudgetStatus(
        actual_spend=round(actual_spend, 2),
        percent_used=percent,
        projected_month_end=projected,
        status=status_for(percent),
    )


def status_sort_key(status: str, category: str) -> Tuple[int, str]:
    """RED first, then YELLOW, then GREEN; category within a band"""
    return STATUS_ORDER.get(status, len(STATUS_ORDER)), category
