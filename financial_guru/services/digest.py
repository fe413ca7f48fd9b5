"""Weekly spending digest"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Tuple
from sqlalchemy.orm import Session
from financial_guru.domain.models import AccountType, BudgetStatus
from financial_guru.infrastructure.database.models import Budget
from financial_guru.infrastructure.database.repositories import (
    AccountRepository,
    InsightRepository,
    TransactionRepository,
)
from financial_guru.services.budgets import BudgetService
from financial_guru.utils.date_utils import add_months, day_in_month

TOP_TRANSACTIONS = 5
TOP_CATEGORIES = 5
UPCOMING_WINDOW_DAYS = 7


@dataclass
class WeeklyDigest:
    week_start: date
    week_end: date
    total_spend: float
    prior_week_spend: float
    spending_change_percent: float
    top_transactions: List[dict] = field(default_factory=list)
    budget_statuses: List[Tuple[Budget, BudgetStatus]] = field(default_factory=list)
    upcoming_payments: List[dict] = field(default_factory=list)
    category_breakdown: List[dict] = field(default_factory=list)
    unread_insight_count: int = 0


def next_due_date(due_day: int, today: date) -> date:
    """This month's due day (clamped), or next month's once it has passed"""
    due = day_in_month(today.year, today.month, due_day)
    if due < today:
        due = add_months(due, 1)
    return due


class DigestService:
    def __init__(self, db: Session):
        self.db = db
        self.transactions = TransactionRepository(db)
        self.accounts = AccountRepository(db)
        self.insights = InsightRepository(db)

    def weekly(self, today: date | None = None) -> WeeklyDigest:
        today = today or date.today()
        week_start = today - timedelta(days=6)
        prior_start = week_start - timedelta(days=7)
        prior_end = week_start - timedelta(days=1)

        this_week = round(self.transactions.sum_spending(week_start, today), 2)
        prior_week = round(self.transactions.sum_spending(prior_start, prior_end), 2)
        change = round(round((this_week - prior_week) / prior_week, 4) * 100, 2) if prior_week > 0 else 0.0

        week_debits = sorted(self.transactions.recent_unflagged_debits(week_start), key=lambda t: t.amount, reverse=True)
        top = [
            {
                "merchant": t.merchant_name,
                "amount": t.amount,
                "date": t.transaction_date,
                "category": t.category,
            }
            for t in week_debits[:TOP_TRANSACTIONS]
        ]

        upcoming = []
        horizon = today + timedelta(days=UPCOMING_WINDOW_DAYS)
        for account in self.accounts.list_active():
            if account.type != AccountType.CREDIT_CARD.value or account.payment_due_day is None:
                continue
            due = next_due_date(account.payment_due_day, today)
            if due <= horizon:
                upcoming.append({"account": account.name, "due_date": due, "balance": account.current_balance})

        categories = [
            {"category": c, "amount": round(a, 2)}
            for c, a in self.transactions.category_totals(week_start, today)[:TOP_CATEGORIES]
        ]

        return WeeklyDigest(
            week_start=week_start,
            week_end=today,
            total_spend=this_week,
            prior_week_spend=prior_week,
            spending_change_percent=change,
            top_transactions=top,
            budget_statuses=BudgetService(self.db).list_with_status(today),
            upcoming_payments=upcoming,
            category_breakdown=categories,
            unread_insight_count=len(self.insights.list_active()),
        )
