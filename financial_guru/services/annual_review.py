"""Year in review with LLM-written recommendations"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import List
from sqlalchemy.orm import Session
from financial_guru.domain.exceptions import OllamaUnavailableError
from financial_guru.domain.models import TransactionType
from financial_guru.infrastructure.clients.ollama import OllamaClient
from financial_guru.infrastructure.database.repositories import (
    NetWorthSnapshotRepository,
    ProfileRepository,
    SubscriptionRepository,
    TransactionRepository,
)

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATIONS = [
    "Review your top spending categories and set budgets.",
    "Consider automating savings to reach your emergency fund goal.",
    "Negotiate your recurring bills for better rates.",
]

NUMBERED_LINE = re.compile(r"^[1-3]\.\s?(.+)$")

PROMPT_TEMPLATE = """As a financial advisor, provide 3 specific, actionable recommendations based on these annual figures:
- Total spending: ${total:.2f}
- Annual subscription cost: ${subscriptions:.2f}
- Savings rate: {savings_rate:.1f}%
Top categories: {categories}
Format: Return exactly 3 recommendations, one per line, starting with a number (1. 2. 3.). Be specific and actionable.
"""


@dataclass
class AnnualReview:
    year: int
    total_spending: float
    estimated_income: float
    savings_rate: float
    interest_paid: float
    fees_paid: float
    subscription_annual_cost: float
    net_worth_change: float
    category_breakdown: List[dict] = field(default_factory=list)
    ai_recommendations: List[str] = field(default_factory=list)


def parse_recommendations(text: str) -> List[str]:
    """Keep lines numbered 1. to 3., without the number"""
    parsed = []
    for line in text.split("\n"):
        match = NUMBERED_LINE.match(line.strip())
        if match and match.group(1).strip():
            parsed.append(match.group(1).strip())
    return parsed


class AnnualReviewService:
    def __init__(self, db: Session, ollama: OllamaClient):
        self.db = db
        self.ollama = ollama
        self.transactions = TransactionRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.snapshots = NetWorthSnapshotRepository(db)
        self.profiles = ProfileRepository(db)

    async def review(self, year: int) -> AnnualReview:
        """
        Summarize one calendar year.

        Income is the profile's monthly income x 12. Net worth change spans the
        first and last snapshot taken since January 1st. The three fixed
        recommendations are replaced by the model's when it answers with
        numbered lines.
        """
        start = date(year, 1, 1)
        end = date(year, 12, 31)

        total = round(self.transactions.sum_spending(start, end), 2)
        interest = round(self.transactions.sum_by_type(TransactionType.INTEREST, start, end), 2)
        fees = round(sum(t.amount for t in self.transactions.fee_transactions_since(start) if t.transaction_date <= end), 2)
        subscription_cost = round(sum(s.annual_cost or 0.0 for s in self.subscriptions.list_active()), 2)

        monthly_income = self.profiles.get_or_create().monthly_income
        income = round(monthly_income * 12, 2) if monthly_income else 0.0
        savings_rate = round(round((income - total) / income, 4) * 100, 2) if income > 0 else 0.0

        history = self.snapshots.since(start)
        net_worth_change = round(history[-1].net_worth - history[0].net_worth, 2) if len(history) >= 2 else 0.0

        categories = [{"category": c, "amount": round(a, 2)} for c, a in self.transactions.category_totals(start, end)]

        recommendations = list(DEFAULT_RECOMMENDATIONS)
        prompt = PROMPT_TEMPLATE.format(
            total=total,
            subscriptions=subscription_cost,
            savings_rate=savings_rate,
            categories=", ".join(f"{c['category']}: ${c['amount']}" for c in categories[:5]),
        )
        try:
            parsed = parse_recommendations(await self.ollama.generate(prompt))
            if parsed:
                recommendations = parsed
        except OllamaUnavailableError as e:
            logger.warning(f"AI recommendations failed: {e}")

        return AnnualReview(
            year=year,
            total_spending=total,
            estimated_income=income,
            savings_rate=savings_rate,
            interest_paid=interest,
            fees_paid=fees,
            subscription_annual_cost=subscription_cost,
            net_worth_change=net_worth_change,
            category_breakdown=categories,
            ai_recommendations=recommendations,
        )
