"""Credit score estimate driven by revolving utilization"""

from dataclasses import dataclass, field
from typing import List, Optional

BASE_SCORE = 650
MAX_SCORE = 850
TARGET_UTILIZATION = 30.0

# (upper utilization %, bonus points)
UTILIZATION_BONUS = (
    (1.0, 150),
    (10.0, 130),
    (30.0, 90),
    (50.0, 40),
    (75.0, 10),
)


@dataclass
class CardBalance:
    account_id: str
    account_name: str
    balance: Optional[float]
    credit_limit: Optional[float]


@dataclass
class CardUtilizationDetail:
    account_id: str
    account_name: str
    balance: float
    credit_limit: float
    utilization_pct: float
    recommended_payment: float
    target_utilization: float = TARGET_UTILIZATION


@dataclass
class WhatIfScenario:
    description: str
    payment_amount: float
    new_utilization_pct: float
    estimated_score_impact: int


@dataclass
class CreditScoreEstimate:
    estimated_score: int
    utilization_impact: str
    cards: List[CardUtilizationDetail] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    what_if_scenarios: List[WhatIfScenario] = field(default_factory=list)


def utilization_percent(balance: float, limit: float) -> float:
    if limit <= 0:
        return 0.0
    return round(round(balance / limit, 4) * 100, 2)


def estimate_score(utilization_pct: float) -> int:
    """
    Simplified FICO estimate from the utilization component alone.

    Example:
        >>> estimate_score(5)
        780
    """
    bonus = 0
    for ceiling, points in UTILIZATION_BONUS:
        if utilization_pct <= ceiling:
            bonus = points
            break
    return min(MAX_SCORE, BASE_SCORE + bonus)


def utilization_impact(utilization_pct: float) -> str:
    if utilization_pct <= 10:
        return "EXCELLENT"
    if utilization_pct <= 30:
        return "GOOD"
    if utilization_pct <= 50:
        return "FAIR"
    return "POOR"


def analyze_credit(cards: List[CardBalance]) -> CreditScoreEstimate:
    """
    Estimate a score and the payments that would move it.

    Requirements:
    - Overall utilization = sum of balances / sum of limits
    - Per card (balance and limit both known): utilization and the payment
      that brings it down to 30%
    - A what-if scenario for every card with a positive recommended payment,
      scored on the overall utilization after that payment
    - Recommendations: the highest-utilization card first, one line per card
      above 30%, praise when overall is at or below 30%, and a closing tip
    """
    total_balance = sum(c.balance for c in cards if c.balance is not None)
    total_limit = sum(c.credit_limit for c in cards if c.credit_limit is not None)
    overall = utilization_percent(total_balance, total_limit)
    score = estimate_score(overall)

    details = []
    recommendations = []
    scenarios = []
    for card in cards:
        if card.balance is None or card.credit_limit is None:
            continue
        util = utilization_percent(card.balance, card.credit_limit)
        recommended = round(max(card.balance - card.credit_limit * TARGET_UTILIZATION / 100, 0.0), 2)
        details.append(
            CardUtilizationDetail(
                account_id=card.account_id,
                account_name=card.account_name,
                balance=card.balance,
                credit_limit=card.credit_limit,
                utilization_pct=util,
                recommended_payment=recommended,
            )
        )
        if util > TARGET_UTILIZATION:
            recommendations.append(
                f"Pay ${recommended:.2f} on {card.account_name} to reduce utilization "
                f"from {util:.1f}% to 30%"
            )
        if recommended > 0:
            new_util = utilization_percent(total_balance - recommended, total_limit)
            scenarios.append(
                WhatIfScenario(
                    description=f"Pay {card.account_name} to 30% utilization",
                    payment_amount=recommended,
                    new_utilization_pct=new_util,
                    estimated_score_impact=estimate_score(new_util) - score,
                )
            )

    scored = [c for c in cards if c.balance is not None and c.credit_limit and c.credit_limit > 0]
    if scored:
        worst = max(scored, key=lambda c: round(c.balance / c.credit_limit, 4))
        recommendations.insert(
            0,
            f"Focus first on {worst.account_name} (highest utilization card) for maximum credit score impact.",
        )
    if overall <= TARGET_UTILIZATION:
        recommendations.append(f"Great job! Overall utilization is {overall:.1f}% - below 30% is ideal.")
    recommendations.append(
        "Pay your balance BEFORE the statement closing date to report a lower balance to credit bureaus."
    )

    return CreditScoreEstimate(
        estimated_score=score,
        utilization_impact=utilization_impact(overall),
        cards=details,
        recommendations=recommendations,
        what_if_scenarios=scenarios,
    )
