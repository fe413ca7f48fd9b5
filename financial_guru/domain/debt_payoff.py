"""Debt payoff simulation - avalanche vs snowball"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from financial_guru.domain.models import CardDebt, CardPayoff, PayoffStrategy
from financial_guru.utils.date_utils import add_months

AVALANCHE = "AVALANCHE"
SNOWBALL = "SNOWBALL"

DEFAULT_APR = 20.0
MAX_MONTHS = 360
MIN_PAYMENT_RATE = 0.02
MIN_PAYMENT_FLOOR = 25.0

WHAT_IF_EXTRAS = (0, 50, 100, 200, 300, 500, 750, 1000, 1500, 2000)


@dataclass
class _CardState:
    debt: CardDebt
    balance: float
    apr: float
    interest_paid: float = 0.0
    payoff_date: Optional[date] = None


def simulate_payoff(
    cards: List[CardDebt],
    extra_payment: float,
    strategy: str,
    today: date | None = None,
) -> PayoffStrategy:
    """
    Simulate paying down credit cards month by month.

    Requirements:
    - AVALANCHE pays highest APR first, SNOWBALL smallest balance first
    - Each month every open card accrues interest = round(balance * APR / 1200, 2)
      then pays its minimum (stored minimum, else max(2% of balance, $25)),
      capped at the balance
    - The extra payment goes to the first card in order that still has a balance
      and spills over to the next
    - Stops when every balance is zero or after 360 months

    Example:
        One $1,000 card at 12% with a $100 minimum pays off in 11 months.
    """
    today = today or date.today()
    states = [_CardState(debt=c, balance=c.balance, apr=c.apr if c.apr is not None else DEFAULT_APR) for c in cards]
    if strategy == AVALANCHE:
        states.sort(key=lambda s: s.apr, reverse=True)
    else:
        states.sort(key=lambda s: s.balance)

    total_interest = 0.0
    months = 0
    while any(s.balance > 0 for s in states) and months < MAX_MONTHS:
        months += 1

        for state in states:
            if state.balance <= 0:
                continue
            interest = round(state.balance * state.apr / 1200, 2)
            state.balance += interest
            state.interest_paid += interest
            total_interest += interest

            if state.debt.min_payment is not None:
                minimum = state.debt.min_payment
            else:
                minimum = max(state.balance * MIN_PAYMENT_RATE, MIN_PAYMENT_FLOOR)
            state.balance = round(state.balance - min(minimum, state.balance), 2)

        remaining = extra_payment
        for state in states:
            if remaining <= 0:
                break
            if state.balance <= 0:
                continue
            payment = min(remaining, state.balance)
            state.balance = round(state.balance - payment, 2)
            remaining -= payment

        for state in states:
            if state.balance <= 0 and state.payoff_date is None:
                state.payoff_date = add_months(today, months)

    payoff_date = add_months(today, months)
    card_order = [
        CardPayoff(
            account_id=s.debt.account_id,
            account_name=s.debt.account_name,
            current_balance=s.debt.balance,
            apr=s.apr,
            min_payment=s.debt.min_payment,
            payoff_date=s.payoff_date or payoff_date,
            interest_paid=round(s.interest_paid, 2),
            payoff_order=index,
        )
        for index, s in enumerate(states, start=1)
    ]
    total_paid = sum(s.debt.balance + s.interest_paid for s in states)

    return PayoffStrategy(
        strategy=strategy,
        total_months=months,
        payoff_date=payoff_date,
        total_interest=round(total_interest, 2),
        total_paid=round(total_paid, 2),
        card_order=card_order,
    )


def what_if_range(cards: List[CardDebt], today: date | None = None) -> List[dict]:
    """Avalanche/snowball outcomes across a ladder of extra monthly payments"""
    points = []
    for extra in WHAT_IF_EXTRAS:
        avalanche = simulate_payoff(cards, extra, AVALANCHE, today)
        snowball = simulate_payoff(cards, extra, SNOWBALL, today)
        points.append(
            {
                "extra_payment": float(extra),
                "avalanche_months": avalanche.total_months,
                "avalanche_total_interest": avalanche.total_interest,
                "avalanche_payoff_date": avalanche.payoff_date,
                "snowball_months": snowball.total_months,
            }
        )
    return points
