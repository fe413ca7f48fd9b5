"""Financial health score - six weighted pillars out of 100"""

from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_MONTHLY_SPEND = 3000.0
DEFAULT_EMERGENCY_TARGET = 6
UNKNOWN_UTILIZATION = 50.0


@dataclass
class HealthInputs:
    """Figures the service gathers before scoring"""

    card_balance: float
    card_limit: float
    savings_balance: float
    six_month_spend: float
    monthly_income: Optional[float]
    this_month_spend: float
    last_month_spend: float
    prior_three_month_spend: float
    recent_spend: float
    high_due_date_alerts: int
    emergency_fund_target_months: Optional[int] = None


@dataclass
class ScorePillar:
    name: str
    score: int
    max_score: int
    explanation: str


@dataclass
class HealthScore:
    total_score: int
    grade: str
    emergency_fund_months: float
    emergency_fund_target: int
    utilization_percent: float
    savings_rate: float
    pillars: List[ScorePillar] = field(default_factory=list)


def grade_for(total: int) -> str:
    if total >= 85:
        return "A"
    if total >= 70:
        return "B"
    if total >= 55:
        return "C"
    if total >= 40:
        return "D"
    return "F"


def _utilization_pillar(inputs: HealthInputs):
    if inputs.card_limit > 0:
        util = round(round(inputs.card_balance / inputs.card_limit, 4) * 100, 2)
    else:
        util = UNKNOWN_UTILIZATION
    if util <= 10:
        score = 25
    elif util <= 30:
        score = 18
    elif util <= 70:
        score = 10
    else:
        score = 3
    pillar = ScorePillar(
        "Credit Utilization", score, 25, f"{util:.1f}% utilization. Keep below 30% for good score."
    )
    return pillar, util


def _emergency_fund_pillar(inputs: HealthInputs, target: int):
    avg_spend = round(inputs.six_month_spend / 6, 2) if inputs.six_month_spend > 0 else DEFAULT_MONTHLY_SPEND
    months = round(inputs.savings_balance / avg_spend, 2)
    if months >= 6:
        score = 20
    elif months >= 3:
        score = 14
    elif months >= 1:
        score = 8
    else:
        score = 2
    pillar = ScorePillar("Emergency Fund", score, 20, f"{months:.1f} months covered (target: {target} months).")
    return pillar, months


def _savings_rate_pillar(inputs: HealthInputs):
    income = inputs.monthly_income
    if not income or income <= 0:
        explanation = (
            "0.0% savings rate this month." if income is not None else "Set your income to calculate savings rate."
        )
        return ScorePillar("Savings Rate", 10, 20, explanation), 0.0

    rate = round(round((income - inputs.this_month_spend) / income, 4) * 100, 2)
    if rate >= 20:
        score = 20
    elif rate >= 10:
        score = 15
    elif rate >= 5:
        score = 8
    elif rate > 0:
        score = 3
    else:
        score = 0
    return ScorePillar("Savings Rate", score, 20, f"{rate:.1f}% savings rate this month."), rate


def _debt_trend_pillar(inputs: HealthInputs) -> ScorePillar:
    avg = round(inputs.prior_three_month_spend / 3, 2) if inputs.prior_three_month_spend > 0 else 0.0
    if avg == 0:
        return ScorePillar("Debt Trend", 8, 15, "Not enough history to assess spending trend.")
    if inputs.recent_spend < avg:
        return ScorePillar(
            "Debt Trend", 15, 15, "Spending trending down vs 3-month average - good debt management."
        )
    if inputs.recent_spend <= avg * 1.10:
        return ScorePillar(
            "Debt Trend", 8, 15, "Spending stable vs 3-month average - maintain your payment habits."
        )
    return ScorePillar(
        "Debt Trend", 2, 15, "Spending up >10% vs 3-month average - watch your credit card balances."
    )


def _discipline_pillar(inputs: HealthInputs) -> ScorePillar:
    if inputs.last_month_spend <= 0:
        return ScorePillar("Spending Discipline", 10, 10, "Good spending discipline.")
    change = round((inputs.this_month_spend - inputs.last_month_spend) / inputs.last_month_spend, 4) * 100
    if abs(change) <= 10:
        score = 10
    elif abs(change) <= 25:
        score = 6
    else:
        score = 3
    return ScorePillar("Spending Discipline", score, 10, f"Spending {change:.1f}% vs last month.")


def _payment_history_pillar(inputs: HealthInputs) -> ScorePillar:
    overdue = inputs.high_due_date_alerts
    if overdue == 0:
        return ScorePillar("Payment History", 10, 10, "No overdue payments detected.")
    score = 5 if overdue <= 2 else 0
    return ScorePillar("Payment History", score, 10, f"{overdue} overdue payment alerts.")


def compute_health_score(inputs: HealthInputs) -> HealthScore:
    """
    Score financial health out of 100.

    Requirements:
    - Utilization (25): <=10% 25, <=30% 18, <=70% 10, else 3; 50% assumed without limits
    - Emergency fund (20): savings / 6-month average spend; >=6 20, >=3 14, >=1 8, else 2
    - Savings rate (20): month to date against income; 10 points when income is unset
    - Debt trend (15): recent spend against the prior 3-month average
    - Spending discipline (10): this month against last month
    - Payment history (10): unresolved HIGH due-date alerts
    - Grade: A >= 85, B >= 70, C >= 55, D >= 40, else F
    """
    target = inputs.emergency_fund_target_months or DEFAULT_EMERGENCY_TARGET

    util_pillar, util = _utilization_pillar(inputs)
    ef_pillar, ef_months = _emergency_fund_pillar(inputs, target)
    sr_pillar, savings_rate = _savings_rate_pillar(inputs)
    pillars = [
        util_pillar,
        ef_pillar,
        sr_pillar,
        _debt_trend_pillar(inputs),
        _discipline_pillar(inputs),
        _payment_history_pillar(inputs),
    ]
    total = sum(p.score for p in pillars)

    return HealthScore(
        total_score=total,
        grade=grade_for(total),
        emergency_fund_months=ef_months,
        emergency_fund_target=target,
        utilization_percent=util,
        savings_rate=savings_rate,
        pillars=pillars,
    )
