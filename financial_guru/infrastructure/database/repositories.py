"""Data access layer for finance entities"""

import uuid
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
from financial_guru.infrastructure.database.models import (
    Account,
    AccountBalanceSnapshot,
    Alert,
    AlertRule,
    AnalysisResult,
    Budget,
    FinancialProfile,
    Insight,
    ManualAsset,
    NetWorthSnapshot,
    SavingsGoal,
    Statement,
    Subscription,
    Transaction,
)
from financial_guru.domain.models import AccountType, TransactionType


class AccountRepository:
    """Repository for accounts"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, account_id: uuid.UUID) -> Optional[Account]:
        return self.db.query(Account).filter(Account.id == account_id).first()

    def list_active(self) -> List[Account]:
        """Active accounts, newest first"""
        return (
            self.db.query(Account)
            .filter(Account.is_active.is_(True))
            .order_by(Account.created_at.desc())
            .all()
        )

    def list_all(self) -> List[Account]:
        return self.db.query(Account).order_by(Account.created_at.asc()).all()

    def list_by_type(self, account_type: AccountType) -> List[Account]:
        return (
            self.db.query(Account)
            .filter(Account.type == account_type.value)
            .order_by(Account.name.asc())
            .all()
        )

    def find_by_institution(self, institution: str) -> List[Account]:
        return self.db.query(Account).filter(Account.institution == institution).all()

    def with_payment_due_days(self) -> List[Account]:
        return (
            self.db.query(Account)
            .filter(Account.is_active.is_(True), Account.payment_due_day.isnot(None))
            .order_by(Account.payment_due_day.asc())
            .all()
        )

    def with_promo_apr(self) -> List[Account]:
        return (
            self.db.query(Account)
            .filter(Account.is_active.is_(True), Account.promo_apr_end_date.isnot(None))
            .order_by(Account.promo_apr_end_date.asc())
            .all()
        )

    def add(self, account: Account) -> Account:
        self.db.add(account)
        self.db.flush()
        return account


class BalanceSnapshotRepository:
    """Repository for daily account balance captures"""

    def __init__(self, db: Session):
        self.db = db

    def get_for_day(self, account_id: uuid.UUID, day: date) -> Optional[AccountBalanceSnapshot]:
        return (
            self.db.query(AccountBalanceSnapshot)
            .filter(
                AccountBalanceSnapshot.account_id == account_id,
                AccountBalanceSnapshot.snapshot_date == day,
            )
            .first()
        )

    def history_since(self, account_id: uuid.UUID, since: date) -> List[AccountBalanceSnapshot]:
        """Snapshots strictly after `since`, oldest first"""
        return (
            self.db.query(AccountBalanceSnapshot)
            .filter(
                AccountBalanceSnapshot.account_id == account_id,
                AccountBalanceSnapshot.snapshot_date > since,
            )
            .order_by(AccountBalanceSnapshot.snapshot_date.asc())
            .all()
        )

    def upsert(self, account_id: uuid.UUID, day: date, balance: float) -> AccountBalanceSnapshot:
        snapshot = self.get_for_day(account_id, day)
        if snapshot:
            snapshot.balance = balance
        else:
            snapshot = AccountBalanceSnapshot(account_id=account_id, snapshot_date=day, balance=balance)
            self.db.add(snapshot)
        self.db.flush()
        return snapshot


class StatementRepository:
    """Repository for uploaded statements"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, statement_id: uuid.UUID) -> Optional[Statement]:
        return self.db.query(Statement).filter(Statement.id == statement_id).first()

    def list_all(self) -> List[Statement]:
        return self.db.query(Statement).order_by(Statement.created_at.desc()).all()

    def latest_completed_for_account(self, account_id: uuid.UUID) -> Optional[Statement]:
        return (
            self.db.query(Statement)
            .filter(Statement.account_id == account_id, Statement.status == "COMPLETED")
            .order_by(Statement.created_at.desc())
            .first()
        )

    def add(self, statement: Statement) -> Statement:
        self.db.add(statement)
        self.db.flush()
        return statement

    def delete(self, statement: Statement) -> None:
        self.db.delete(statement)
        self.db.flush()


class TransactionRepository:
    """Repository for transactions and the spending aggregates built on them"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, transaction_id: uuid.UUID) -> Optional[Transaction]:
        return self.db.query(Transaction).filter(Transaction.id == transaction_id).first()

    def get_many(self, ids: Iterable[uuid.UUID]) -> List[Transaction]:
        ids = list(ids)
        if not ids:
            return []
        return self.db.query(Transaction).filter(Transaction.id.in_(ids)).all()

    def add_all(self, transactions: List[Transaction]) -> List[Transaction]:
        self.db.add_all(transactions)
        self.db.flush()
        return transactions

    def delete_for_statement(self, statement_id: uuid.UUID) -> int:
        existing = self.for_statement(statement_id)
        for txn in existing:
            self.db.delete(txn)
        self.db.flush()
        return len(existing)

    def for_statement(self, statement_id: uuid.UUID) -> List[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(Transaction.statement_id == statement_id)
            .order_by(Transaction.transaction_date.desc())
            .all()
        )

    def for_account(self, account_id: uuid.UUID) -> List[Transaction]:
        return self.db.query(Transaction).filter(Transaction.account_id == account_id).all()

    def page_for_account(self, account_id: uuid.UUID, page: int, size: int) -> Tuple[List[Transaction], int]:
        query = self.db.query(Transaction).filter(Transaction.account_id == account_id)
        return self._page(query, page, size)

    def search_page(
        self,
        page: int,
        size: int,
        account_id: Optional[uuid.UUID] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Transaction], int]:
        """Filtered page, every given filter ANDed"""
        query = self.db.query(Transaction)
        if account_id is not None:
            query = query.filter(Transaction.account_id == account_id)
        if category:
            query = query.filter(Transaction.category == category)
        if start_date is not None:
            query = query.filter(Transaction.transaction_date >= start_date)
        if end_date is not None:
            query = query.filter(Transaction.transaction_date <= end_date)
        if min_amount is not None:
            query = query.filter(Transaction.amount >= min_amount)
        if max_amount is not None:
            query = query.filter(Transaction.amount <= max_amount)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Transaction.merchant_name).like(pattern),
                    func.lower(Transaction.description).like(pattern),
                )
            )
        return self._page(query, page, size)

    def _page(self, query, page: int, size: int) -> Tuple[List[Transaction], int]:
        total = query.count()
        items = (
            query.order_by(Transaction.transaction_date.desc(), Transaction.created_at.desc())
            .offset(page * size)
            .limit(size)
            .all()
        )
        return items, total

    def flagged(self) -> List[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(Transaction.is_flagged.is_(True))
            .order_by(Transaction.transaction_date.desc())
            .all()
        )

    def search_debits(self, text: str, limit: int) -> List[Transaction]:
        """DEBITs whose merchant, description or category contains text"""
        pattern = f"%{text.lower()}%"
        return (
            self.db.query(Transaction)
            .filter(
                Transaction.type == TransactionType.DEBIT.value,
                or_(
                    func.lower(Transaction.merchant_name).like(pattern),
                    func.lower(Transaction.description).like(pattern),
                    func.lower(Transaction.category).like(pattern),
                ),
            )
            .order_by(Transaction.transaction_date.desc())
            .limit(limit)
            .all()
        )

    def in_range(
        self,
        start: date,
        end: date,
        account_id: Optional[uuid.UUID] = None,
    ) -> List[Transaction]:
        query = self.db.query(Transaction).filter(
            Transaction.transaction_date >= start,
            Transaction.transaction_date <= end,
        )
        if account_id is not None:
            query = query.filter(Transaction.account_id == account_id)
        return query.order_by(Transaction.transaction_date.desc()).all()

    def debits_in_range(self, start: date, end: date) -> List[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(
                Transaction.type == TransactionType.DEBIT.value,
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .order_by(Transaction.transaction_date.asc())
            .all()
        )

    def recent_unflagged_debits(self, since: date) -> List[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(
                Transaction.type == TransactionType.DEBIT.value,
                Transaction.transaction_date >= since,
                Transaction.is_flagged.is_(False),
            )
            .order_by(Transaction.merchant_name, Transaction.amount, Transaction.transaction_date.desc())
            .all()
        )

    def by_account_and_merchant_since(
        self, account_id: uuid.UUID, merchant: str, since: date
    ) -> List[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(
                Transaction.account_id == account_id,
                Transaction.merchant_name == merchant,
                Transaction.transaction_date >= since,
            )
            .order_by(Transaction.transaction_date.desc())
            .all()
        )

    def by_merchant_in_range(self, merchant: str, start: date, end: date) -> List[Transaction]:
        return (
            self.db.query(Transaction)
            .filter(
                Transaction.merchant_name == merchant,
                Transaction.type == TransactionType.DEBIT.value,
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .order_by(Transaction.transaction_date.desc())
            .all()
        )

    def fee_transactions_since(self, since: date) -> List[Transaction]:
        """FEE rows plus anything mentioning an ATM"""
        return (
            self.db.query(Transaction)
            .filter(
                or_(
                    Transaction.type == TransactionType.FEE.value,
                    func.upper(Transaction.description).like("%ATM%"),
                ),
                Transaction.transaction_date >= since,
            )
            .order_by(Transaction.transaction_date.desc())
            .all()
        )

    def potential_income(self, min_amount: float, since: date) -> List[Transaction]:
        """CREDITs of at least min_amount on checking accounts"""
        return (
            self.db.query(Transaction)
            .join(Account, Transaction.account_id == Account.id)
            .filter(
                Transaction.type == TransactionType.CREDIT.value,
                Transaction.amount >= min_amount,
                Transaction.transaction_date >= since,
                Account.type == AccountType.CHECKING.value,
            )
            .order_by(Transaction.transaction_date.desc())
            .all()
        )

    def sum_spending(self, start: date, end: date) -> float:
        """Total DEBIT amount within [start, end]"""
        total = (
            self.db.query(func.coalesce(func.sum(Transaction.amount), 0))
            .filter(
                Transaction.type == TransactionType.DEBIT.value,
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .scalar()
        )
        return float(total or 0)

    def sum_category_spending(self, category: str, start: date, end: date) -> float:
        total = (
            self.db.query(func.coalesce(func.sum(Transaction.amount), 0))
            .filter(
                Transaction.category == category,
                Transaction.type == TransactionType.DEBIT.value,
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .scalar()
        )
        return float(total or 0)

    def sum_category_spending_any_case(self, category: str, start: date, end: date) -> float:
        total = (
            self.db.query(func.coalesce(func.sum(Transaction.amount), 0))
            .filter(
                func.lower(Transaction.category) == category.lower(),
                Transaction.type == TransactionType.DEBIT.value,
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .scalar()
        )
        return float(total or 0)

    def sum_categories_spending(self, categories: List[str], start: date, end: date) -> float:
        """DEBIT spend across categories, matched case-insensitively"""
        if not categories:
            return 0.0
        total = (
            self.db.query(func.coalesce(func.sum(Transaction.amount), 0))
            .filter(
                func.upper(Transaction.category).in_([c.upper() for c in categories]),
                Transaction.type == TransactionType.DEBIT.value,
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .scalar()
        )
        return float(total or 0)

    def sum_merchant_spending(self, merchant: str, start: date, end: date) -> float:
        total = (
            self.db.query(func.coalesce(func.sum(Transaction.amount), 0))
            .filter(
                Transaction.merchant_name == merchant,
                Transaction.type == TransactionType.DEBIT.value,
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .scalar()
        )
        return float(total or 0)

    def sum_by_type(self, txn_type: TransactionType, start: date, end: date) -> float:
        total = (
            self.db.query(func.coalesce(func.sum(Transaction.amount), 0))
            .filter(
                Transaction.type == txn_type.value,
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .scalar()
        )
        return float(total or 0)

    def sum_income(self, min_amount: float, start: date, end: date) -> float:
        """CREDIT and PAYMENT inflows of at least min_amount"""
        total = (
            self.db.query(func.coalesce(func.sum(Transaction.amount), 0))
            .filter(
                Transaction.type.in_([TransactionType.CREDIT.value, TransactionType.PAYMENT.value]),
                Transaction.amount >= min_amount,
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .scalar()
        )
        return float(total or 0)

    def category_totals(self, start: date, end: date) -> List[Tuple[str, float]]:
        """(category, total) for categorized DEBITs, largest first"""
        total = func.sum(Transaction.amount)
        rows = (
            self.db.query(Transaction.category, total)
            .filter(
                Transaction.type == TransactionType.DEBIT.value,
                Transaction.category.isnot(None),
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .group_by(Transaction.category)
            .order_by(total.desc())
            .all()
        )
        return [(category, float(amount or 0)) for category, amount in rows]

    def merchant_totals(self, start: date, end: date) -> List[Tuple[str, float, int]]:
        """(merchant, total, count) for DEBITs with a merchant, largest first"""
        total = func.sum(Transaction.amount)
        rows = (
            self.db.query(Transaction.merchant_name, total, func.count(Transaction.id))
            .filter(
                Transaction.type == TransactionType.DEBIT.value,
                Transaction.merchant_name.isnot(None),
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .group_by(Transaction.merchant_name)
            .order_by(total.desc())
            .all()
        )
        return [(merchant, float(amount or 0), int(count)) for merchant, amount, count in rows]

    def daily_totals(self, start: date, end: date) -> List[Tuple[date, float, int]]:
        """(day, total, count) of DEBIT spend, oldest first"""
        rows = (
            self.db.query(
                Transaction.transaction_date,
                func.sum(Transaction.amount),
                func.count(Transaction.id),
            )
            .filter(
                Transaction.type == TransactionType.DEBIT.value,
                Transaction.transaction_date >= start,
                Transaction.transaction_date <= end,
            )
            .group_by(Transaction.transaction_date)
            .order_by(Transaction.transaction_date.asc())
            .all()
        )
        return [(day, float(amount or 0), int(count)) for day, amount, count in rows]


class AlertRepository:
    """Repository for alerts"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, alert_id: uuid.UUID) -> Optional[Alert]:
        return self.db.query(Alert).filter(Alert.id == alert_id).first()

    def unresolved(self, limit: Optional[int] = None) -> List[Alert]:
        query = (
            self.db.query(Alert)
            .filter(Alert.is_resolved.is_(False))
            .order_by(Alert.created_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_unread(self) -> int:
        return (
            self.db.query(Alert)
            .filter(Alert.is_read.is_(False), Alert.is_resolved.is_(False))
            .count()
        )

    def count_unresolved(self, alert_type: str, severity: str) -> int:
        return (
            self.db.query(Alert)
            .filter(Alert.type == alert_type, Alert.severity == severity, Alert.is_resolved.is_(False))
            .count()
        )

    def add(self, alert: Alert) -> Alert:
        self.db.add(alert)
        self.db.flush()
        return alert

    def delete(self, alert: Alert) -> None:
        self.db.delete(alert)
        self.db.flush()


class AlertRuleRepository:
    """Repository for user-defined alert rules"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, rule_id: uuid.UUID) -> Optional[AlertRule]:
        return self.db.query(AlertRule).filter(AlertRule.id == rule_id).first()

    def list_active(self) -> List[AlertRule]:
        return (
            self.db.query(AlertRule)
            .filter(AlertRule.is_active.is_(True))
            .order_by(AlertRule.created_at.desc())
            .all()
        )

    def add(self, rule: AlertRule) -> AlertRule:
        self.db.add(rule)
        self.db.flush()
        return rule

    def delete(self, rule: AlertRule) -> None:
        self.db.delete(rule)
        self.db.flush()


class BudgetRepository:
    """Repository for category budgets"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, budget_id: uuid.UUID) -> Optional[Budget]:
        return self.db.query(Budget).filter(Budget.id == budget_id).first()

    def get_by_category(self, category: str) -> Optional[Budget]:
        return self.db.query(Budget).filter(Budget.category == category).first()

    def list_active(self) -> List[Budget]:
        return (
            self.db.query(Budget)
            .filter(Budget.is_active.is_(True))
            .order_by(Budget.category.asc())
            .all()
        )

    def add(self, budget: Budget) -> Budget:
        self.db.add(budget)
        self.db.flush()
        return budget

    def delete(self, budget: Budget) -> None:
        self.db.delete(budget)
        self.db.flush()


class ProfileRepository:
    """Repository for the single financial profile row"""

    def __init__(self, db: Session):
        self.db = db

    def get_or_create(self) -> FinancialProfile:
        profile = self.db.query(FinancialProfile).order_by(FinancialProfile.created_at.asc()).first()
        if profile is None:
            profile = FinancialProfile()
            self.db.add(profile)
            self.db.flush()
        return profile


class InsightRepository:
    """Repository for generated insights"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, insight_id: uuid.UUID) -> Optional[Insight]:
        return self.db.query(Insight).filter(Insight.id == insight_id).first()

    def list_active(self) -> List[Insight]:
        return (
            self.db.query(Insight)
            .filter(Insight.is_dismissed.is_(False))
            .order_by(Insight.generated_at.desc())
            .all()
        )

    def exists_recent(
        self,
        insight_type: str,
        since: datetime,
        merchant: Optional[str] = None,
        category: Optional[str] = None,
    ) -> bool:
        query = self.db.query(Insight).filter(Insight.type == insight_type, Insight.generated_at >= since)
        if merchant is not None:
            query = query.filter(Insight.merchant_name == merchant)
        if category is not None:
            query = query.filter(Insight.category == category)
        return query.first() is not None

    def delete_older_than(self, cutoff: datetime) -> int:
        count = self.db.query(Insight).filter(Insight.generated_at < cutoff).delete(synchronize_session=False)
        self.db.flush()
        return count

    def add(self, insight: Insight) -> Insight:
        self.db.add(insight)
        self.db.flush()
        return insight


class SubscriptionRepository:
    """Repository for detected subscriptions"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, subscription_id: uuid.UUID) -> Optional[Subscription]:
        return self.db.query(Subscription).filter(Subscription.id == subscription_id).first()

    def list_active(self) -> List[Subscription]:
        """Active subscriptions, most expensive first"""
        return (
            self.db.query(Subscription)
            .filter(Subscription.is_active.is_(True))
            .order_by(Subscription.annual_cost.desc())
            .all()
        )

    def list_duplicates(self) -> List[Subscription]:
        return (
            self.db.query(Subscription)
            .filter(Subscription.is_active.is_(True), Subscription.is_duplicate.is_(True))
            .order_by(Subscription.normalized_name.asc())
            .all()
        )

    def find(self, normalized_name: str, account_id: Optional[uuid.UUID]) -> Optional[Subscription]:
        return (
            self.db.query(Subscription)
            .filter(Subscription.normalized_name == normalized_name, Subscription.account_id == account_id)
            .first()
        )

    def potential_duplicates(self) -> List[Subscription]:
        """Active subscriptions whose normalized name spans more than one account"""
        shared = (
            select(Subscription.normalized_name)
            .group_by(Subscription.normalized_name)
            .having(func.count(func.distinct(Subscription.account_id)) > 1)
        )
        return (
            self.db.query(Subscription)
            .filter(Subscription.is_active.is_(True), Subscription.normalized_name.in_(shared))
            .order_by(Subscription.normalized_name.asc(), Subscription.account_id.asc())
            .all()
        )

    def add(self, subscription: Subscription) -> Subscription:
        self.db.add(subscription)
        self.db.flush()
        return subscription

    def delete_all(self) -> int:
        self.db.query(Subscription).update({Subscription.duplicate_of_id: None}, synchronize_session=False)
        count = self.db.query(Subscription).delete(synchronize_session=False)
        self.db.flush()
        return count


class ManualAssetRepository:
    """Repository for hand-tracked assets and liabilities"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, asset_id: uuid.UUID) -> Optional[ManualAsset]:
        return self.db.query(ManualAsset).filter(ManualAsset.id == asset_id).first()

    def list_all(self) -> List[ManualAsset]:
        return self.db.query(ManualAsset).order_by(ManualAsset.created_at.asc()).all()

    def add(self, asset: ManualAsset) -> ManualAsset:
        self.db.add(asset)
        self.db.flush()
        return asset

    def delete(self, asset: ManualAsset) -> None:
        self.db.delete(asset)
        self.db.flush()


class NetWorthSnapshotRepository:
    """Repository for net worth history"""

    def __init__(self, db: Session):
        self.db = db

    def latest(self, limit: int = 12) -> List[NetWorthSnapshot]:
        """Most recent snapshots, newest first"""
        return (
            self.db.query(NetWorthSnapshot)
            .order_by(NetWorthSnapshot.snapshot_date.desc())
            .limit(limit)
            .all()
        )

    def get_for_day(self, day: date) -> Optional[NetWorthSnapshot]:
        return self.db.query(NetWorthSnapshot).filter(NetWorthSnapshot.snapshot_date == day).first()

    def since(self, start: date) -> List[NetWorthSnapshot]:
        return (
            self.db.query(NetWorthSnapshot)
            .filter(NetWorthSnapshot.snapshot_date >= start)
            .order_by(NetWorthSnapshot.snapshot_date.asc())
            .all()
        )

    def add(self, snapshot: NetWorthSnapshot) -> NetWorthSnapshot:
        self.db.add(snapshot)
        self.db.flush()
        return snapshot


class SavingsGoalRepository:
    """Repository for savings goals"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, goal_id: uuid.UUID) -> Optional[SavingsGoal]:
        return self.db.query(SavingsGoal).filter(SavingsGoal.id == goal_id).first()

    def list_active(self) -> List[SavingsGoal]:
        return (
            self.db.query(SavingsGoal)
            .filter(SavingsGoal.is_active.is_(True))
            .order_by(SavingsGoal.created_at.desc())
            .all()
        )

    def add(self, goal: SavingsGoal) -> SavingsGoal:
        self.db.add(goal)
        self.db.flush()
        return goal

    def delete(self, goal: SavingsGoal) -> None:
        self.db.delete(goal)
        self.db.flush()


class AnalysisResultRepository:
    """Repository for LLM analysis results"""

    def __init__(self, db: Session):
        self.db = db

    def for_statement(self, statement_id: uuid.UUID) -> List[AnalysisResult]:
        return (
            self.db.query(AnalysisResult)
            .filter(AnalysisResult.statement_id == statement_id)
            .order_by(AnalysisResult.created_at.desc())
            .all()
        )

    def add(self, result: AnalysisResult) -> AnalysisResult:
        self.db.add(result)
        self.db.flush()
        return result
