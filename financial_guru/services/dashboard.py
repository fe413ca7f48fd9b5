"""Dashboard aggregate: balances, spending trends and wealth KPIs"""

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional
from sqlalchemy.orm import Session
from financial_guru.domain.models import AccountType
from financial_guru.domain.subscriptions import monthly_cost
from financial_guru.infrastructure.database.models import Account, Alert
from financial_guru.infrastructure.database.repositories import (
    AccountRepository,
    AlertRepository,
    ProfileRepository,
    StatementRepository,
    SubscriptionRepository,
    TransactionRepository,
)
from financial_guru.utils.date_utils import add_months, day_in_month, month_end, month_key, month_start

TREND_MONTHS = 6
TOP_CATEGORIES = 8
TOP_MERCHANTS = 5
RECENT_ALERTS = 10
PROMO_WINDOW_DAYS = 60
INCOME_MIN_AMOUNT = 200
RETIREMENT_RETURN = 0.05

THINGS = ["SHOPPING", "CLOTHING", "ELECTRONICS", "HOME_IMPROVEMENT", "PERSONAL_CARE", "HOBBIES"]
EXPERIENCES = ["RESTAURANTS", "DINING", "FOOD", "ENTERTAINMENT", "TRAVEL", "RECREATION", "FITNESS", "EVENTS"]
NECESSITIES = [
    "RENT",
    "MORTGAGE",
    "HOUSING",
    "UTILITIES",
    "INSURANCE",
    "HEALTHCARE",
    "MEDICAL",
    "GAS",
    "AUTO",
    "TRANSPORTATION",
    "GROCERIES",
    "PHONE",
    "INTERNET",
    "CHILDCARE",
]


@dataclass
class Dashboard:
    total_credit_card_balance: float = 0.0
    total_credit_limit: float = 0.0
    total_available_credit: float = 0.0
    overall_utilization_percent: float = 0.0
    total_checking_balance: float = 0.0
    total_savings_balance: float = 0.0
    unread_alert_count: int = 0
    recent_alerts: List[Alert] = field(default_factory=list)
    current_month_spend: float = 0.0
    last_month_spend: float = 0.0
    spending_change_percent: Optional[float] = None
    monthly_spending_trend: List[dict] = field(default_factory=list)
    category_breakdown: List[dict] = field(default_factory=list)
    top_merchants: List[dict] = field(default_factory=list)
    accounts: List[Account] = field(default_factory=list)
    upcoming_payments: List[dict] = field(default_factory=list)
    expiring_promo_aprs: List[dict] = field(default_factory=list)
    monthly_subscription_cost: float = 0.0
    active_subscription_count: int = 0
    duplicate_subscription_count: int = 0
    estimated_monthly_income: float = 0.0
    monthly_savings_rate: Optional[float] = None
    avg_savings_rate_6_month: Optional[float] = None
    years_to_retirement_at_current_rate: Optional[int] = None
    freedom_months: Optional[float] = None
    freedom_months_trend: Optional[float] = None
    material_spend_this_month: float = 0.0
    material_spend_last_month: float = 0.0
    things_spend: float = 0.0
    experiences_spend: float = 0.0
    necessities_spend: float = 0.0
    paycheck_breakdown: List[dict] = field(default_factory=list)


def years_to_retirement(savings_rate: Optional[float]) -> Optional[int]:
    """
    Years until savings cover expenses at a 5% real return.

    Requirements:
    - None when the rate is unknown or not positive
    - 0 once the whole income is saved
    - None beyond a century

    Example:
        rate 50% -> ln(2) / ln(1.05) * 0.5 ~ 7 years
    """
    if savings_rate is None or savings_rate <= 0:
        return None
    sr = savings_rate / 100
    if sr >= 1:
        return 0
    years = math.log(1 / sr) / math.log(1 + RETIREMENT_RETURN) * (1 - sr)
    if years > 100:
        return None
    return round(years)


def spending_bucket(category: str) -> str:
    """THINGS, EXPERIENCES or NECESSITIES by keyword, else OTHER"""
    upper = category.upper()
    for name, keywords in (("THINGS", THINGS), ("EXPERIENCES", EXPERIENCES), ("NECESSITIES", NECESSITIES)):
        if any(k in upper for k in keywords):
            return name
    return "OTHER"


def _percent_change(current: float, previous: float) -> Optional[float]:
    if previous <= 0:
        return None
    return round(round((current - previous) / previous, 4) * 100, 2)


class DashboardService:
    def __init__(self, db: Session):
        self.accounts = AccountRepository(db)
        self.alerts = AlertRepository(db)
        self.profiles = ProfileRepository(db)
        self.statements = StatementRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.transactions = TransactionRepository(db)

    def build(self, today: date | None = None) -> Dashboard:
        """
        Assemble the dashboard.

        Flow:
        1. Balances and card totals over active accounts
        2. Spending: month to date, last full month, 6-month trend, YTD breakdowns
        3. Upcoming card payments and expiring promo APRs
        4. Subscription cost and counts
        5. Income, savings rate and spending buckets
        """
        today = today or date.today()
        dashboard = Dashboard()
        accounts = self.accounts.list_active()
        dashboard.accounts = accounts

        self._balances(dashboard, accounts)

        dashboard.unread_alert_count = self.alerts.count_unread()
        dashboard.recent_alerts = self.alerts.unresolved(limit=RECENT_ALERTS)

        this_month = month_start(today)
        last_month = add_months(this_month, -1)
        current_spend = round(self.transactions.sum_spending(this_month, today), 2)
        last_spend = round(self.transactions.sum_spending(last_month, month_end(last_month)), 2)
        dashboard.current_month_spend = current_spend
        dashboard.last_month_spend = last_spend
        dashboard.spending_change_percent = _percent_change(current_spend, last_spend)
        dashboard.monthly_spending_trend = self._trend(today)

        year_start = date(today.year, 1, 1)
        totals = self.transactions.category_totals(year_start, today)
        grand_total = sum(amount for _, amount in totals)
        dashboard.category_breakdown = [
            {
                "category": category,
                "amount": round(amount, 2),
                "percent": round(amount / grand_total * 100, 2) if grand_total > 0 else 0.0,
            }
            for category, amount in totals[:TOP_CATEGORIES]
        ]
        dashboard.top_merchants = [
            {"merchant": merchant, "amount": round(amount, 2), "count": count}
            for merchant, amount, count in self.transactions.merchant_totals(year_start, today)[:TOP_MERCHANTS]
        ]

        dashboard.upcoming_payments = self._upcoming_payments(accounts, today)
        dashboard.expiring_promo_aprs = self._expiring_promos(accounts, today)

        active = self.subscriptions.list_active()
        dashboard.monthly_subscription_cost = round(sum(monthly_cost(s.amount, s.frequency) for s in active), 2)
        dashboard.active_subscription_count = len(active)
        dashboard.duplicate_subscription_count = len(self.subscriptions.list_duplicates())

        self._wealth(dashboard, today)
        return dashboard

    def _balances(self, dashboard: Dashboard, accounts: List[Account]) -> None:
        card_balance = 0.0
        card_limit = 0.0
        checking = 0.0
        savings = 0.0
        for account in accounts:
            if account.current_balance is None:
                continue
            if account.type == AccountType.CREDIT_CARD.value:
                card_balance += account.current_balance
                if account.credit_limit is not None:
                    card_limit += account.credit_limit
            elif account.type == AccountType.CHECKING.value:
                checking += account.current_balance
            elif account.type == AccountType.SAVINGS.value:
                savings += account.current_balance

        dashboard.total_credit_card_balance = round(card_balance, 2)
        dashboard.total_credit_limit = round(card_limit, 2)
        dashboard.total_available_credit = round(card_limit - card_balance, 2)
        dashboard.overall_utilization_percent = (
            round(round(card_balance / card_limit, 4) * 100, 2) if card_limit > 0 else 0.0
        )
        dashboard.total_checking_balance = round(checking, 2)
        dashboard.total_savings_balance = round(savings, 2)

    def _trend(self, today: date) -> List[dict]:
        trend = []
        for i in range(TREND_MONTHS - 1, -1, -1):
            first = add_months(month_start(today), -i)
            last = min(month_end(first), today)
            trend.append({"month": month_key(first), "amount": round(self.transactions.sum_spending(first, last), 2)})
        return trend

    def _upcoming_payments(self, accounts: List[Account], today: date) -> List[dict]:
        payments = []
        for account in accounts:
            if account.type != AccountType.CREDIT_CARD.value:
                continue
            due = None
            min_payment = account.min_payment
            statement = self.statements.latest_completed_for_account(account.id)
            if statement is not None and statement.payment_due_date is not None and statement.payment_due_date >= today:
                due = statement.payment_due_date
                if min_payment is None:
                    min_payment = statement.minimum_payment
            elif account.payment_due_day is not None:
                due = day_in_month(today.year, today.month, account.payment_due_day)
                if due <= today:
                    following = add_months(month_start(today), 1)
                    due = day_in_month(following.year, following.month, account.payment_due_day)
            if due is None:
                continue
            payments.append(
                {
                    "account_id": account.id,
                    "account_name": account.name,
                    "due_date": due,
                    "days_until_due": (due - today).days,
                    "balance": account.current_balance,
                    "min_payment": min_payment,
                }
            )
        return sorted(payments, key=lambda p: p["days_until_due"])

    def _expiring_promos(self, accounts: List[Account], today: date) -> List[dict]:
        cutoff = today + timedelta(days=PROMO_WINDOW_DAYS)
        promos = [
            {
                "account_id": account.id,
                "account_name": account.name,
                "promo_apr": account.promo_apr,
                "regular_apr": account.apr,
                "end_date": account.promo_apr_end_date,
                "days_left": (account.promo_apr_end_date - today).days,
                "balance": account.current_balance,
            }
            for account in accounts
            if account.promo_apr_end_date is not None and today <= account.promo_apr_end_date < cutoff
        ]
        return sorted(promos, key=lambda p: p["days_left"])

    def _income_for_month(self, first: date, last: date, profile_income: float) -> float:
        if profile_income > 0:
            return profile_income
        return self.transactions.sum_income(INCOME_MIN_AMOUNT, first, last)

    def _wealth(self, dashboard: Dashboard, today: date) -> None:
        profile_income = self.profiles.get_or_create().monthly_income or 0.0
        this_month = month_start(today)
        last_month = add_months(this_month, -1)

        income = round(self._income_for_month(this_month, month_end(this_month), profile_income), 2)
        spend = dashboard.current_month_spend
        dashboard.estimated_monthly_income = income
        if income > 0 and spend > 0:
            dashboard.monthly_savings_rate = round((income - spend) / income * 100, 1)

        rates = []
        for i in range(1, TREND_MONTHS + 1):
            first = add_months(this_month, -i)
            last = month_end(first)
            month_income = self._income_for_month(first, last, profile_income)
            month_spend = self.transactions.sum_spending(first, last)
            if month_income > 0 and month_spend > 0:
                rates.append((month_income - month_spend) / month_income * 100)
        if rates:
            dashboard.avg_savings_rate_6_month = round(sum(rates) / len(rates), 1)

        dashboard.years_to_retirement_at_current_rate = years_to_retirement(dashboard.monthly_savings_rate)

        liquid = dashboard.total_checking_balance + dashboard.total_savings_balance
        burn = spend if spend > 0 else dashboard.last_month_spend
        if burn > 0:
            dashboard.freedom_months = round(liquid / burn, 2)
        if income > 0:
            dashboard.freedom_months_trend = round(income - spend, 2)

        last_end = month_end(last_month)
        dashboard.material_spend_this_month = round(self.transactions.sum_categories_spending(THINGS, this_month, today), 2)
        dashboard.material_spend_last_month = round(self.transactions.sum_categories_spending(THINGS, last_month, last_end), 2)
        dashboard.things_spend = dashboard.material_spend_this_month
        dashboard.experiences_spend = round(self.transactions.sum_categories_spending(EXPERIENCES, this_month, today), 2)
        dashboard.necessities_spend = round(self.transactions.sum_categories_spending(NECESSITIES, this_month, today), 2)

        if income > 0:
            dashboard.paycheck_breakdown = [
                {
                    "label": entry["category"],
                    "amount": entry["amount"],
                    "pct_of_income": round(entry["amount"] / income * 100, 1),
                    "bucket": spending_bucket(entry["category"]),
                }
                for entry in dashboard.category_breakdown
            ]
