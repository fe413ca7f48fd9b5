"""Insight engine: spending pattern detectors that persist findings"""

import logging
import uuid
from datetime import date, timedelta
from typing import List, Optional
from sqlalchemy.orm import Session
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.domain.models import InsightSeverity, InsightType
from financial_guru.infrastructure.database.models import Insight
from financial_guru.infrastructure.database.repositories import (
    InsightRepository,
    SubscriptionRepository,
    TransactionRepository,
)
from financial_guru.infrastructure.observability.metrics import insights_generated_counter
from financial_guru.utils.date_utils import add_months, add_years, month_end, month_start, utcnow

logger = logging.getLogger(__name__)

DEDUPE_WINDOW = timedelta(days=7)
RETENTION = timedelta(days=90)

PRICE_INCREASE_PERCENT = 10.0
CATEGORY_SPIKE_PERCENT = 20.0
BILL_INCREASE_PERCENT = 15.0
SUBSCRIPTION_CREEP_AMOUNT = 50.0
FEE_WASTE_AMOUNT = 20.0
CATEGORY_SPIKE_MIN_SPEND = 100.0

BILL_CATEGORIES = ("UTILITIES", "PHONE", "INTERNET", "TELECOM")


def _percent_change(current: float, previous: float) -> float:
    return round((current - previous) / previous, 4) * 100


class InsightService:
    def __init__(self, db: Session):
        self.db = db
        self.insights = InsightRepository(db)
        self.transactions = TransactionRepository(db)
        self.subscriptions = SubscriptionRepository(db)

    def list_active(self) -> List[Insight]:
        return self.insights.list_active()

    def dismiss(self, insight_id: uuid.UUID) -> Insight:
        insight = self.insights.get(insight_id)
        if insight is None:
            raise NotFoundError("Insight", insight_id)
        insight.is_dismissed = True
        self.db.flush()
        return insight

    def run_all(self, today: date | None = None) -> List[Insight]:
        """
        Run every detector, then purge insights older than 90 days.

        A (type, merchant or category) finding already generated in the last
        7 days is not repeated.
        """
        today = today or date.today()
        created: List[Insight] = []
        created.extend(self._price_increases(today))
        created.extend(self._duplicate_cross_card(today))
        created.extend(self._subscription_creep(today))
        created.extend(self._fee_waste(today))
        created.extend(self._category_yoy_spikes(today))
        created.extend(self._bill_increases(today))

        purged = self.insights.delete_older_than(utcnow() - RETENTION)
        logger.info(
            f"Insight engine generated {len(created)} insights",
            extra={"step": "insights_generated", "count": len(created), "purged": purged},
        )
        return created

    def _is_recent(self, insight_type: InsightType, merchant: Optional[str] = None, category: Optional[str] = None) -> bool:
        return self.insights.exists_recent(insight_type.value, utcnow() - DEDUPE_WINDOW, merchant, category)

    def _save(self, insight_type: InsightType, severity: InsightSeverity, **fields) -> Insight:
        insight = self.insights.add(Insight(type=insight_type.value, severity=severity.value, **fields))
        insights_generated_counter.labels(type=insight_type.value).inc()
        return insight

    def _price_increases(self, today: date) -> List[Insight]:
        """Merchant spend this month more than 10% above last month"""
        this_start = month_start(today)
        last_start = month_start(add_months(today, -1))
        last_end = this_start - timedelta(days=1)

        found = []
        for merchant, this_amount, _ in self.transactions.merchant_totals(this_start, today):
            last_amount = self.transactions.sum_merchant_spending(merchant, last_start, last_end)
            if last_amount == 0:
                continue
            change = _percent_change(this_amount, last_amount)
            if change <= PRICE_INCREASE_PERCENT or self._is_recent(InsightType.PRICE_INCREASE, merchant=merchant):
                continue
            found.append(
                self._save(
                    InsightType.PRICE_INCREASE,
                    InsightSeverity.WARNING,
                    title=f"Price Increase Detected: {merchant}",
                    description=(
                        f"{merchant} charges increased {change:.1f}% this month "
                        f"(${this_amount:.2f} vs ${last_amount:.2f} last month)."
                    ),
                    action_text="Review if this is a price increase or one-time charge.",
                    impact_amount=round((this_amount - last_amount) * 12, 2),
                    merchant_name=merchant,
                )
            )
        return found

    def _duplicate_cross_card(self, today: date) -> List[Insight]:
        """Same merchant charged on two or more accounts this month"""
        start = month_start(today)
        found = []
        for merchant, _, _ in self.transactions.merchant_totals(start, today):
            if self._is_recent(InsightType.DUPLICATE_CROSS_CARD, merchant=merchant):
                continue
            accounts = {
                t.account_id
                for t in self.transactions.by_merchant_in_range(merchant, start, today)
                if t.account_id is not None
            }
            if len(accounts) < 2:
                continue
            found.append(
                self._save(
                    InsightType.DUPLICATE_CROSS_CARD,
                    InsightSeverity.WARNING,
                    title=f"Possible Duplicate Charge: {merchant}",
                    description=f"{merchant} was charged on {len(accounts)} different cards this month.",
                    action_text="Check if these are legitimate separate charges or duplicates.",
                    merchant_name=merchant,
                )
            )
        return found

    def _subscription_creep(self, today: date) -> List[Insight]:
        """Year-to-date spend at subscription merchants vs all of last year"""
        if self._is_recent(InsightType.SUBSCRIPTION_CREEP):
            return []
        ytd_start = date(today.year, 1, 1)
        last_year_start = date(today.year - 1, 1, 1)
        last_year_end = ytd_start - timedelta(days=1)

        this_year = 0.0
        last_year = 0.0
        for subscription in self.subscriptions.list_active():
            last_year += self.transactions.sum_merchant_spending(subscription.merchant_name, last_year_start, last_year_end)
            this_year += self.transactions.sum_merchant_spending(subscription.merchant_name, ytd_start, today)

        if last_year <= 0:
            return []
        increase = round(this_year - last_year, 2)
        if increase <= SUBSCRIPTION_CREEP_AMOUNT:
            return []
        day_of_year = today.timetuple().tm_yday
        return [
            self._save(
                InsightType.SUBSCRIPTION_CREEP,
                InsightSeverity.OPPORTUNITY,
                title="Subscription Costs Rising",
                description=f"Your subscription spending is up ${increase:.2f} compared to same period last year.",
                action_text="Review and cancel subscriptions you no longer use.",
                impact_amount=round(increase * 12 / day_of_year, 2),
            )
        ]

    def _fee_waste(self, today: date) -> List[Insight]:
        """Fees and ATM charges over the last 12 months above $20"""
        if self._is_recent(InsightType.ATM_FEE_WASTE):
            return []
        total = round(sum(t.amount for t in self.transactions.fee_transactions_since(add_months(today, -12))), 2)
        if total <= FEE_WASTE_AMOUNT:
            return []
        return [
            self._save(
                InsightType.ATM_FEE_WASTE,
                InsightSeverity.OPPORTUNITY,
                title="ATM Fees Detected",
                description=f"You paid ${total:.2f} in fees over the past 12 months.",
                action_text="Switch to a bank with no ATM fees or find in-network ATMs.",
                impact_amount=total,
            )
        ]

    def _category_yoy_spikes(self, today: date) -> List[Insight]:
        """Category spend this month more than 20% above the same month last year"""
        this_start = month_start(today)
        last_year_start = month_start(add_years(today, -1))
        last_year_end = month_end(last_year_start)

        found = []
        for category, this_amount in self.transactions.category_totals(this_start, today):
            if this_amount < CATEGORY_SPIKE_MIN_SPEND:
                continue
            last_amount = self.transactions.sum_category_spending_any_case(category, last_year_start, last_year_end)
            if last_amount == 0:
                continue
            change = _percent_change(this_amount, last_amount)
            if change <= CATEGORY_SPIKE_PERCENT or self._is_recent(InsightType.CATEGORY_YOY_SPIKE, category=category):
                continue
            found.append(
                self._save(
                    InsightType.CATEGORY_YOY_SPIKE,
                    InsightSeverity.WARNING,
                    title=f"Spending Spike: {category}",
                    description=(
                        f"{category} spending is up {change:.1f}% vs same month last year "
                        f"(${this_amount:.2f} vs ${last_amount:.2f})."
                    ),
                    action_text=f"Review what's driving the increase in {category} spending.",
                    impact_amount=round((this_amount - last_amount) * 12, 2),
                    category=category,
                )
            )
        return found

    def _bill_increases(self, today: date) -> List[Insight]:
        """Utility-type bills this month more than 15% above the prior 3-month average"""
        this_start = month_start(today)
        window_start = add_months(today, -3)
        window_end = this_start - timedelta(days=1)

        found = []
        for category in BILL_CATEGORIES:
            this_month = self.transactions.sum_category_spending_any_case(category, this_start, today)
            prior = self.transactions.sum_category_spending_any_case(category, window_start, window_end)
            if this_month == 0 or prior == 0:
                continue
            average = round(prior / 3, 2)
            change = _percent_change(this_month, average)
            if change <= BILL_INCREASE_PERCENT or self._is_recent(InsightType.BILL_INCREASE, category=category):
                continue
            found.append(
                self._save(
                    InsightType.BILL_INCREASE,
                    InsightSeverity.WARNING,
                    title=f"Bill Increase: {category}",
                    description=(
                        f"{category} bill increased {change:.1f}% vs 3-month average "
                        f"(${this_month:.2f} vs avg ${average:.2f})."
                    ),
                    action_text="Call provider to negotiate or shop for better rates.",
                    impact_amount=round((this_month - average) * 12, 2),
                    category=category,
                )
            )
        return found
