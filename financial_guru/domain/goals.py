"""Savings goal progress projections"""

import math
from datetime import date
from typing import Optional
from financial_guru.domain.models import GoalProgress
from financial_guru.utils.date_utils import add_months, months_between

ASSUMED_MONTHLY_SAVING = 500.0
ON_TRACK_INCOME_SHARE = 0.2


def _ceil_cents(value: float) -> float:
    return math.ceil(round(value * 100, 6)) / 100


def goal_progress(
    target_amount: float,
    current_amount: float,
    target_date: Optional[date] = None,
    monthly_income: Optional[float] = None,
    today: date | None = None,
) -> GoalProgress:
    """
    Compute how far along a savings goal is and what it takes to finish.

    Requirements:
    - percent_complete = current / target x 100
    - With a target date: months_remaining = whole months until it (never
      negative); monthly_required = remaining / months rounded up to the cent,
      or 0 once the date has passed; on track when that is at most 20% of
      monthly income (never on track with no income on file)
    - Without a target date: assume $500 a month and project the completion date

    Example:
        $400 of $1,000 with no target date on 2024-01-15:
        percent_complete=40.0, months_remaining=2, projected 2024-03-15
    """
    today = today or date.today()
    remaining = max(target_amount - current_amount, 0.0)
    percent = round(round(current_amount / target_amount, 4) * 100, 2) if target_amount > 0 else 0.0

    if target_date is not None:
        months = max(months_between(today, target_date), 0)
        required = _ceil_cents(remaining / months) if months > 0 and remaining > 0 else 0.0
        on_track = False
        if monthly_income is not None and monthly_income > 0:
            on_track = required <= monthly_income * ON_TRACK_INCOME_SHARE
        return GoalProgress(
            percent_complete=percent,
            months_remaining=months,
            monthly_required=required,
            is_on_track=on_track,
            projected_completion_date=target_date,
        )

    months = math.ceil(remaining / ASSUMED_MONTHLY_SAVING) if remaining > 0 else 0
    return GoalProgress(
        percent_complete=percent,
        months_remaining=months,
        monthly_required=0.0,
        is_on_track=False,
        projected_completion_date=add_months(today, months) if remaining > 0 else None,
    )
