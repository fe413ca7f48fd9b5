"""Monthly cash flow calendar - income, card payments and subscriptions"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional, Tuple
from financial_guru.domain.models import PayFrequency
from financial_guru.utils.date_utils import day_in_month, month_bounds

DANGER_BALANCE = 500.0
DEFAULT_CARD_PAYMENT = 25.0


@dataclass
class CashFlowEvent:
    date: date
    type: str  # INCOME | PAYMENT | SUBSCRIPTION
    description: str
    amount: float
    running_balance: Optional[float] = None
    is_danger_day: bool = False


@dataclass
class CashFlowCalendar:
    year: int
    month: int
    starting_balance: float
    events: List[CashFlowEvent] = field(default_factory=list)


def _income_events(
    first: date, last: date, monthly_income: float, pay_frequency: Optional[str]
) -> List[CashFlowEvent]:
    if pay_frequency == PayFrequency.BIWEEKLY.value:
        step, amount, label = 14, round(monthly_income * 12 / 26, 2), "Biweekly Pay"
    elif pay_frequency == PayFrequency.WEEKLY.value:
        step, amount, label = 7, round(monthly_income * 12 / 52, 2), "Weekly Pay"
    else:
        return [CashFlowEvent(first, "INCOME", "Monthly Salary", monthly_income)]

    events = []
    pay_day = first
    while pay_day <= last:
        events.append(CashFlowEvent(pay_day, "INCOME", label, amount))
        pay_day += timedelta(days=step)
    return events


def build_calendar(
    year: int,
    month: int,
    starting_balance: float,
    monthly_income: Optional[float],
    pay_frequency: Optional[str],
    card_payments: List[Tuple[str, int, Optional[float]]],
    subscriptions: List[Tuple[str, Optional[float], Optional[date]]],
) -> CashFlowCalendar:
    """
    Lay out the month's expected money movements with a running balance.

    card_payments holds (account name, payment due day, minimum payment);
    subscriptions holds (merchant, amount, next expected date).

    Requirements:
    - Income on the 1st (monthly), or every 14 / 7 days from the 1st at
      income x 12 / 26 or x 12 / 52
    - Each card pays its minimum (default $25) on its due day, clamped to the month
    - Subscriptions whose next expected date falls in the month
    - Events sorted by date; a running balance under $500 marks a danger day
    """
    first, last = month_bounds(year, month)
    events: List[CashFlowEvent] = []

    if monthly_income is not None and monthly_income > 0:
        events.extend(_income_events(first, last, monthly_income, pay_frequency))

    for name, due_day, min_payment in card_payments:
        payment = min_payment if min_payment is not None else DEFAULT_CARD_PAYMENT
        events.append(CashFlowEvent(day_in_month(year, month, due_day), "PAYMENT", f"{name} Payment", -payment))

    for merchant, amount, next_date in subscriptions:
        if next_date is not None and first <= next_date <= last:
            events.append(CashFlowEvent(next_date, "SUBSCRIPTION", merchant, -(amount or 0.0)))

    events.sort(key=lambda e: e.date)
    running = starting_balance
    for event in events:
        running = round(running + event.amount, 2)
        event.running_balance = running
        event.is_danger_day = running < DANGER_BALANCE

    return CashFlowCalendar(year=year, month=month, starting_balance=starting_balance, events=events)
