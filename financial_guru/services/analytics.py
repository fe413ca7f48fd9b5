"""Read-only financial analytics computed from accounts, transactions and the profile"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from financial_guru.domain.cash_flow import CashFlowCalendar, build_calendar
from financial_guru.domain.credit_score import CardBalance, CreditScoreEstimate, analyze_credit
from financial_guru.domain.debt_payoff import AVALANCHE, DEFAULT_APR, SNOWBALL, simulate_payoff, what_if_range
from financial_guru.domain.fire import FireProjection, calculate_fire
from financial_guru.domain.health_score import DEFAULT_MONTHLY_SPEND, HealthInputs, HealthScore, compute_health_score
from financial_guru.domain.models import AccountType, AlertSeverity, AlertType, CardDebt, PayoffStrategy
from financial_guru.domain.spending_patterns import (
    DUPLICATE_WINDOW_DAYS,
    MerchantTrend,
    SpendingHeatmap,
    build_heatmap,
    find_duplicate_groups,
    merchant_trend,
)
from financial_guru.infrastructure.database.models import Transaction
from financial_guru.infrastructure.database.repositories import (
    AccountRepository,
    AlertRepository,
    ProfileRepository,
    SubscriptionRepository,
    TransactionRepository,
)
from financial_guru.utils.date_utils import add_months, month_key, month_start

logger = logging.getLogger(__name__)

DUPLICATE_LOOKBACK_DAYS = 30


@dataclass
class DebtPayoffPlan:
    extra_payment: float
    total_current_debt: float
    avalanche: PayoffStrategy
    snowball: PayoffStrategy


@dataclass
class DuplicateGroup:
    merchant_name: str
    amount: float
    transactions: List[Transaction]
    within_days: int


class AnalyticsService:
    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)
        self.transactions = TransactionRepository(db)
        self.alerts = AlertRepository(db)
        self.profiles = ProfileRepository(db)
        self.subscriptions = SubscriptionRepository(db)

    def _card_debts(self) -> List[CardDebt]:
        return [
            CardDebt(
                account_id=str(card.id),
                account_name=card.name,
                balance=card.current_balance,
                apr=card.apr if card.apr is not None else DEFAULT_APR,
                min_payment=card.min_payment,
            )
            for card in self.accounts.list_by_type(AccountType.CREDIT_CARD)
            if card.current_balance is not None and card.current_balance > 0
        ]

    def debt_payoff(self, extra_payment: float = 0.0, today: date | None = None) -> DebtPayoffPlan:
        cards = self._card_debts()
        return DebtPayoffPlan(
            extra_payment=extra_payment,
            total_current_debt=round(sum(c.balance for c in cards), 2),
            avalanche=simulate_payoff(cards, extra_payment, AVALANCHE, today),
            snowball=simulate_payoff(cards, extra_payment, SNOWBALL, today),
        )

    def debt_what_if(self, today: date | None = None) -> List[dict]:
        return what_if_range(self._card_debts(), today)

    def health_score(self, today: date | None = None) -> HealthScore:
        """
        Gather the health score inputs.

        Flow:
        1. Card balance and limit from active credit cards with a balance
        2. Savings from active SAVINGS accounts
        3. Spend windows: six months, this month, last month, the three
           months before last month, and since the start of last month
        4. Open HIGH due-date alerts as missed-payment signals
        """
        today = today or date.today()
        active = self.accounts.list_active()

        cards = [a for a in active if a.type == AccountType.CREDIT_CARD.value and a.current_balance is not None]
        card_balance = sum(c.current_balance for c in cards)
        card_limit = sum(c.credit_limit for c in cards if c.credit_limit is not None)
        savings = sum(
            a.current_balance for a in active if a.type == AccountType.SAVINGS.value and a.current_balance is not None
        )

        last_month_start = month_start(add_months(today, -1))
        profile = self.profiles.get_or_create()
        inputs = HealthInputs(
            card_balance=card_balance,
            card_limit=card_limit,
            savings_balance=savings,
            six_month_spend=self.transactions.sum_spending(add_months(today, -6), today),
            monthly_income=profile.monthly_income,
            this_month_spend=self.transactions.sum_spending(month_start(today), today),
            last_month_spend=self.transactions.sum_spending(last_month_start, month_start(today) - timedelta(days=1)),
            prior_three_month_spend=self.transactions.sum_spending(
                month_start(add_months(today, -4)), last_month_start - timedelta(days=1)
            ),
            recent_spend=self.transactions.sum_spending(last_month_start, today),
            high_due_date_alerts=self.alerts.count_unresolved(AlertType.DUE_DATE.value, AlertSeverity.HIGH.value),
            emergency_fund_target_months=profile.emergency_fund_target_months,
        )
        return compute_health_score(inputs)

    def credit_score(self) -> CreditScoreEstimate:
        cards = [
            CardBalance(str(card.id), card.name, card.current_balance, card.credit_limit)
            for card in self.accounts.list_by_type(AccountType.CREDIT_CARD)
        ]
        return analyze_credit(cards)

    def fire(
        self,
        age: Optional[float] = None,
        target_retirement_age: Optional[float] = None,
        current_investments: Optional[float] = None,
        monthly_expenses: Optional[float] = None,
        today: date | None = None,
    ) -> FireProjection:
        """Query parameters win; otherwise the profile and the last 3 months of spend fill in"""
        today = today or date.today()
        profile = self.profiles.get_or_create()
        if not monthly_expenses:
            spend = self.transactions.sum_spending(add_months(today, -3), today)
            monthly_expenses = round(spend / 3, 2) if spend > 0 else DEFAULT_MONTHLY_SPEND
        return calculate_fire(
            monthly_income=profile.monthly_income or 0.0,
            monthly_expenses=monthly_expenses,
            current_investments=current_investments if current_investments is not None else profile.current_investments,
            age=age if age is not None else profile.age,
            target_retirement_age=(
                target_retirement_age if target_retirement_age is not None else profile.target_retirement_age
            ),
            today=today,
        )

    def cash_flow(self, year: int, month: int) -> CashFlowCalendar:
        profile = self.profiles.get_or_create()
        active = self.accounts.list_active()
        starting = round(
            sum(
                a.current_balance
                for a in active
                if a.type == AccountType.CHECKING.value and a.current_balance is not None
            ),
            2,
        )
        card_payments = [
            (a.name, a.payment_due_day, a.min_payment)
            for a in active
            if a.type == AccountType.CREDIT_CARD.value and a.payment_due_day is not None
        ]
        subscriptions = [(s.merchant_name, s.amount, s.next_expected_date) for s in self.subscriptions.list_active()]
        return build_calendar(
            year, month, starting, profile.monthly_income, profile.pay_frequency, card_payments, subscriptions
        )

    def spending_heatmap(self, year: int, today: date | None = None) -> SpendingHeatmap:
        today = today or date.today()
        end = min(date(year, 12, 31), today)
        return build_heatmap(year, self.transactions.daily_totals(date(year, 1, 1), end), today)

    def merchant_trend(self, merchant: str, today: date | None = None) -> MerchantTrend:
        """Monthly totals for one merchant since the first of the month a year ago"""
        today = today or date.today()
        since = month_start(add_months(today, -12))
        monthly: Dict[str, float] = {}
        for txn in sorted(self.transactions.by_merchant_in_range(merchant, since, today), key=lambda t: t.transaction_date):
            key = month_key(txn.transaction_date)
            monthly[key] = round(monthly.get(key, 0.0) + txn.amount, 2)
        return merchant_trend(merchant, sorted(monthly.items()))

    def duplicate_transactions(self, today: date | None = None) -> List[DuplicateGroup]:
        today = today or date.today()
        recent = self.transactions.recent_unflagged_debits(today - timedelta(days=DUPLICATE_LOOKBACK_DAYS))
        return [
            DuplicateGroup(
                merchant_name=group[0].merchant_name,
                amount=group[0].amount,
                transactions=group,
                within_days=DUPLICATE_WINDOW_DAYS,
            )
            for group in find_duplicate_groups(recent)
        ]

