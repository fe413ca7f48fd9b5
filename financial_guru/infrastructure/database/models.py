"""SQLAlchemy ORM models for the personal finance store"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Boolean, Integer, Numeric, DateTime, Date, ForeignKey, Text, JSON, Uuid, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def Money(**kwargs) -> Column:
    """Two-decimal currency column read back as float"""
    return Column(Numeric(12, 2, asdecimal=False), **kwargs)


class Account(Base):
    """Checking, savings, credit card or loan account"""

    __tablename__ = "accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    institution = Column(String(100), nullable=True)
    type = Column(String(20), nullable=False)
    last4 = Column(String(4), nullable=True)
    credit_limit = Money(nullable=True)
    current_balance = Money(nullable=True)
    available_credit = Money(nullable=True)
    apr = Column(Numeric(5, 2, asdecimal=False), nullable=True)
    promo_apr = Column(Numeric(5, 2, asdecimal=False), nullable=True)
    promo_apr_end_date = Column(Date, nullable=True)
    payment_due_day = Column(Integer, nullable=True)
    min_payment = Money(nullable=True)
    rewards_program = Column(String(255), nullable=True)
    color = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    transactions = relationship("Transaction", back_populates="account")
    statements = relationship("Statement", back_populates="account")


class AccountBalanceSnapshot(Base):
    """Daily capture of an account balance"""

    __tablename__ = "account_balance_snapshots"
    __table_args__ = (UniqueConstraint("account_id", "snapshot_date", name="uq_balance_snapshot_day"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    snapshot_date = Column(Date, nullable=False)
    balance = Money(nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    account = relationship("Account")


class Statement(Base):
    """Uploaded statement PDF and its parse lifecycle"""

    __tablename__ = "statements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True)
    file_name = Column(String(500), nullable=False)
    file_path = Column(String(1000), nullable=False)
    statement_month = Column(Date, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    opening_balance = Money(nullable=True)
    closing_balance = Money(nullable=True)
    total_credits = Money(nullable=True)
    total_debits = Money(nullable=True)
    minimum_payment = Money(nullable=True)
    payment_due_date = Column(Date, nullable=True)
    ytd_total_fees = Money(nullable=True)
    ytd_total_interest = Money(nullable=True)
    ytd_year = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default="PENDING")
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    account = relationship("Account", back_populates="statements")
    transactions = relationship("Transaction", back_populates="statement", cascade="all, delete-orphan")
    analysis_results = relationship("AnalysisResult", back_populates="statement", cascade="all, delete-orphan")


class Transaction(Base):
    """Dated money movement on an account"""

    __tablename__ = "transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True)
    statement_id = Column(Uuid, ForeignKey("statements.id", ondelete="CASCADE"), nullable=True, index=True)
    transaction_date = Column(Date, nullable=False, index=True)
    post_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)
    merchant_name = Column(String(255), nullable=True, index=True)
    category = Column(String(100), nullable=True, index=True)
    subcategory = Column(String(100), nullable=True)
    amount = Money(nullable=False)
    type = Column(String(20), nullable=True)
    reference_number = Column(String(100), nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    is_flagged = Column(Boolean, nullable=False, default=False)
    flag_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    account = relationship("Account", back_populates="transactions")
    statement = relationship("Statement", back_populates="transactions")


class Alert(Base):
    """Generated notification with read/resolved lifecycle"""

    __tablename__ = "alerts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String(30), nullable=False)
    severity = Column(String(20), nullable=False, default="MEDIUM")
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    ai_explanation = Column(Text, nullable=True)
    account_id = Column(Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    transaction_id = Column(Uuid, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    is_resolved = Column(Boolean, nullable=False, default=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    account = relationship("Account")


class AlertRule(Base):
    """User-defined threshold that raises alerts when crossed"""

    __tablename__ = "alert_rules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    rule_type = Column(String(30), nullable=False)
    condition_operator = Column(String(20), nullable=False, default="GREATER_THAN")
    threshold_amount = Money(nullable=True)
    category = Column(String(100), nullable=True)
    account_id = Column(Uuid, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_triggered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class Budget(Base):
    """Monthly spending cap for one category"""

    __tablename__ = "budgets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category = Column(String(100), nullable=False, unique=True)
    monthly_limit = Money(nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class FinancialProfile(Base):
    """Single-row profile: income, pay cadence and retirement inputs"""

    __tablename__ = "financial_profile"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    monthly_income = Money(nullable=True)
    income_source = Column(String(20), nullable=False, default="MANUAL")
    pay_frequency = Column(String(20), nullable=False, default="MONTHLY")
    emergency_fund_target_months = Column(Integer, nullable=False, default=6)
    age = Column(Integer, nullable=True)
    target_retirement_age = Column(Integer, nullable=True)
    current_investments = Money(nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class Insight(Base):
    """Finding produced by the insight engine"""

    __tablename__ = "insights"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String(40), nullable=False)
    severity = Column(String(20), nullable=False, default="INFO")
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    action_text = Column(Text, nullable=True)
    impact_amount = Money(nullable=True)
    merchant_name = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True)
    is_dismissed = Column(Boolean, nullable=False, default=False)
    generated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class ManualAsset(Base):
    """Asset or liability tracked by hand for net worth"""

    __tablename__ = "manual_assets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    asset_type = Column(String(20), nullable=False)
    asset_class = Column(String(30), nullable=False, default="OTHER")
    current_value = Money(nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class NetWorthSnapshot(Base):
    """Point-in-time net worth, one per day"""

    __tablename__ = "net_worth_snapshots"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    snapshot_date = Column(Date, nullable=False, unique=True)
    liquid_assets = Money(nullable=False, default=0)
    credit_card_debt = Money(nullable=False, default=0)
    manual_assets = Money(nullable=False, default=0)
    manual_liabilities = Money(nullable=False, default=0)
    net_worth = Money(nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class SavingsGoal(Base):
    """Target amount to save, optionally by a date"""

    __tablename__ = "savings_goals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    category = Column(String(30), nullable=False, default="OTHER")
    target_amount = Money(nullable=False)
    current_amount = Money(nullable=False, default=0)
    target_date = Column(Date, nullable=True)
    linked_account_id = Column(Uuid, nullable=True)
    color = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class Subscription(Base):
    """Detected recurring charge"""

    __tablename__ = "subscriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    merchant_name = Column(String(255), nullable=False)
    normalized_name = Column(String(255), nullable=True, index=True)
    amount = Money(nullable=True)
    frequency = Column(String(20), nullable=True)
    account_id = Column(Uuid, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    first_seen_date = Column(Date, nullable=True)
    last_charged_date = Column(Date, nullable=True)
    next_expected_date = Column(Date, nullable=True)
    times_charged = Column(Integer, nullable=False, default=1)
    annual_cost = Money(nullable=True)
    category = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_duplicate = Column(Boolean, nullable=False, default=False)
    duplicate_of_id = Column(Uuid, ForeignKey("subscriptions.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    account = relationship("Account")


class AnalysisResult(Base):
    """LLM analysis output attached to a statement"""

    __tablename__ = "analysis_results"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    statement_id = Column(Uuid, ForeignKey("statements.id", ondelete="CASCADE"), nullable=False, index=True)
    analysis_type = Column(String(30), nullable=False)
    result_data = Column(JSON, nullable=True)
    model_used = Column(String(100), nullable=True)
    processing_ms = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    statement = relationship("Statement", back_populates="analysis_results")
