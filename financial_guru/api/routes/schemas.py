"""Pydantic schemas for API request/response validation"""

import math
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from financial_guru.domain.models import (
    AccountType,
    AlertRuleType,
    AssetClass,
    GoalCategory,
    PayFrequency,
)

T = TypeVar("T")


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; readable from ORM rows and dataclasses"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Page(CamelModel, Generic[T]):
    """Paginated envelope"""

    content: List[T]
    total_elements: int
    total_pages: int
    number: int
    size: int


def page_of(items: List[Any], total: int, page: int, size: int, mapper: Callable[[Any], T]) -> Dict[str, Any]:
    return {
        "content": [mapper(item) for item in items],
        "total_elements": total,
        "total_pages": math.ceil(total / size) if size > 0 else 0,
        "number": page,
        "size": size,
    }


class CountResponse(CamelModel):
    count: int


# Accounts


class AccountCreate(CamelModel):
    name: str = Field(..., min_length=1)
    type: AccountType
    institution: Optional[str] = None
    last4: Optional[str] = Field(None, max_length=4)
    credit_limit: Optional[float] = None
    current_balance: Optional[float] = None
    available_credit: Optional[float] = None
    apr: Optional[float] = None
    promo_apr: Optional[float] = None
    promo_apr_end_date: Optional[date] = None
    payment_due_day: Optional[int] = Field(None, ge=1, le=31)
    min_payment: Optional[float] = None
    rewards_program: Optional[str] = None
    color: Optional[str] = None


class AccountUpdate(CamelModel):
    name: Optional[str] = None
    type: Optional[AccountType] = None
    institution: Optional[str] = None
    last4: Optional[str] = Field(None, max_length=4)
    credit_limit: Optional[float] = None
    current_balance: Optional[float] = None
    available_credit: Optional[float] = None
    apr: Optional[float] = None
    promo_apr: Optional[float] = None
    promo_apr_end_date: Optional[date] = None
    payment_due_day: Optional[int] = Field(None, ge=1, le=31)
    min_payment: Optional[float] = None
    rewards_program: Optional[str] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None


class AccountResponse(CamelModel):
    id: uuid.UUID
    name: str
    institution: Optional[str] = None
    type: str
    last4: Optional[str] = None
    credit_limit: Optional[float] = None
    current_balance: Optional[float] = None
    available_credit: Optional[float] = None
    apr: Optional[float] = None
    promo_apr: Optional[float] = None
    promo_apr_end_date: Optional[date] = None
    payment_due_day: Optional[int] = None
    min_payment: Optional[float] = None
    rewards_program: Optional[str] = None
    color: Optional[str] = None
    is_active: bool
    utilization_percent: Optional[float] = None
    days_until_promo_apr_expiry: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def to_account_response(account, today: date | None = None) -> AccountResponse:
    """Account with its derived credit fields filled in"""
    today = today or date.today()
    response = AccountResponse.model_validate(account)
    if response.available_credit is None and account.credit_limit is not None and account.current_balance is not None:
        response.available_credit = round(account.credit_limit - account.current_balance, 2)
    if account.credit_limit and account.credit_limit > 0 and account.current_balance is not None:
        response.utilization_percent = round(round(account.current_balance / account.credit_limit, 4) * 100, 2)
    if account.promo_apr_end_date is not None:
        response.days_until_promo_apr_expiry = (account.promo_apr_end_date - today).days
    return response


class BalanceSnapshotResponse(CamelModel):
    id: uuid.UUID
    account_id: uuid.UUID
    snapshot_date: date
    balance: float
    created_at: Optional[datetime] = None


# Transactions


class TransactionResponse(CamelModel):
    id: uuid.UUID
    account_id: Optional[uuid.UUID] = None
    account_name: Optional[str] = None
    statement_id: Optional[uuid.UUID] = None
    transaction_date: date
    post_date: Optional[date] = None
    description: Optional[str] = None
    merchant_name: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    amount: float
    type: Optional[str] = None
    reference_number: Optional[str] = None
    is_recurring: bool = False
    is_flagged: bool = False
    flag_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


def to_transaction_response(txn) -> TransactionResponse:
    response = TransactionResponse.model_validate(txn)
    if txn.account is not None:
        response.account_name = txn.account.name
    return response


class TransactionUpdate(CamelModel):
    category: Optional[str] = None
    notes: Optional[str] = None
    is_flagged: Optional[bool] = None
    flag_reason: Optional[str] = None


class CategoryAssignment(CamelModel):
    id: uuid.UUID
    category: str


# Statements


class AccountRef(CamelModel):
    id: uuid.UUID
    name: str


class StatementResponse(CamelModel):
    id: uuid.UUID
    account_id: Optional[uuid.UUID] = None
    account: Optional[AccountRef] = None
    file_name: str
    statement_month: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    opening_balance: Optional[float] = None
    closing_balance: Optional[float] = None
    total_credits: Optional[float] = None
    total_debits: Optional[float] = None
    minimum_payment: Optional[float] = None
    payment_due_date: Optional[date] = None
    ytd_total_fees: Optional[float] = None
    ytd_total_interest: Optional[float] = None
    ytd_year: Optional[int] = None
    status: str
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None


class RawTextResponse(CamelModel):
    file_name: str
    institution: str
    char_count: int
    line_count: int
    text: str


# Alerts and rules


class AlertResponse(CamelModel):
    id: uuid.UUID
    type: str
    severity: str
    title: str
    message: str
    ai_explanation: Optional[str] = None
    account_id: Optional[uuid.UUID] = None
    account_name: Optional[str] = None
    transaction_id: Optional[uuid.UUID] = None
    is_read: bool
    is_resolved: bool
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


def to_alert_response(alert) -> AlertResponse:
    response = AlertResponse.model_validate(alert)
    if alert.account is not None:
        response.account_name = alert.account.name
    return response


class AlertRuleRequest(CamelModel):
    name: str = Field(..., min_length=1)
    rule_type: AlertRuleType
    condition_operator: Optional[str] = None
    threshold_amount: Optional[float] = None
    category: Optional[str] = None
    account_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None


class AlertRuleUpdate(CamelModel):
    name: Optional[str] = None
    rule_type: Optional[AlertRuleType] = None
    condition_operator: Optional[str] = None
    threshold_amount: Optional[float] = None
    category: Optional[str] = None
    account_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None


class AlertRuleResponse(CamelModel):
    id: uuid.UUID
    name: str
    rule_type: str
    condition_operator: str
    threshold_amount: Optional[float] = None
    category: Optional[str] = None
    account_id: Optional[uuid.UUID] = None
    is_active: bool
    last_triggered_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Subscriptions


class SubscriptionResponse(CamelModel):
    id: uuid.UUID
    merchant_name: str
    normalized_name: Optional[str] = None
    amount: float
    frequency: str
    account_id: Optional[uuid.UUID] = None
    first_seen_date: Optional[date] = None
    last_charged_date: Optional[date] = None
    next_expected_date: Optional[date] = None
    times_charged: int = 1
    annual_cost: Optional[float] = None
    category: Optional[str] = None
    is_active: bool
    is_duplicate: bool
    duplicate_of: Optional[uuid.UUID] = Field(
        None, validation_alias=AliasChoices("duplicate_of_id", "duplicateOf"), serialization_alias="duplicateOf"
    )
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class SubscriptionUpdate(CamelModel):
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class DetectResponse(CamelModel):
    detected: int


# Budgets


class BudgetRequest(CamelModel):
    category: str = Field(..., min_length=1)
    monthly_limit: float = Field(..., gt=0)


class BudgetResponse(CamelModel):
    id: uuid.UUID
    category: str
    monthly_limit: float
    is_active: bool
    actual_spend: float = 0.0
    percent_used: float = 0.0
    projected_month_end: float = 0.0
    status: str = "GREEN"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def to_budget_response(budget, status) -> BudgetResponse:
    response = BudgetResponse.model_validate(budget)
    response.actual_spend = status.actual_spend
    response.percent_used = status.percent_used
    response.projected_month_end = status.projected_month_end
    response.status = status.status
    return response


# Profile


class ProfileResponse(CamelModel):
    id: uuid.UUID
    monthly_income: Optional[float] = None
    income_source: str
    pay_frequency: str
    emergency_fund_target_months: int
    age: Optional[int] = None
    target_retirement_age: Optional[int] = None
    current_investments: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpdate(CamelModel):
    monthly_income: Optional[float] = None
    income_source: Optional[str] = None
    pay_frequency: Optional[PayFrequency] = None
    emergency_fund_target_months: Optional[int] = Field(None, ge=0)
    age: Optional[int] = Field(None, ge=0)
    target_retirement_age: Optional[int] = Field(None, ge=0)
    current_investments: Optional[float] = None
    notes: Optional[str] = None


class IncomeResponse(CamelModel):
    monthly_income: float


# Goals


class GoalRequest(CamelModel):
    name: str = Field(..., min_length=1)
    category: Optional[GoalCategory] = None
    target_amount: float = Field(..., gt=0)
    current_amount: Optional[float] = None
    target_date: Optional[date] = None
    linked_account_id: Optional[uuid.UUID] = None
    color: Optional[str] = None
    notes: Optional[str] = None


class GoalUpdate(CamelModel):
    name: Optional[str] = None
    category: Optional[GoalCategory] = None
    target_amount: Optional[float] = Field(None, gt=0)
    current_amount: Optional[float] = None
    target_date: Optional[date] = None
    linked_account_id: Optional[uuid.UUID] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class ProgressRequest(CamelModel):
    amount: float


class GoalResponse(CamelModel):
    id: uuid.UUID
    name: str
    category: str
    target_amount: float
    current_amount: float
    target_date: Optional[date] = None
    linked_account_id: Optional[uuid.UUID] = None
    color: Optional[str] = None
    is_active: bool
    notes: Optional[str] = None
    percent_complete: float = 0.0
    months_remaining: Optional[int] = None
    monthly_required: Optional[float] = None
    is_on_track: Optional[bool] = None
    projected_completion_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def to_goal_response(goal, progress) -> GoalResponse:
    response = GoalResponse.model_validate(goal)
    response.percent_complete = progress.percent_complete
    response.months_remaining = progress.months_remaining
    response.monthly_required = progress.monthly_required
    response.is_on_track = progress.is_on_track
    response.projected_completion_date = progress.projected_completion_date
    return response


# Net worth


class AssetRequest(CamelModel):
    name: str = Field(..., min_length=1)
    asset_type: str
    asset_class: Optional[str] = None
    current_value: float
    notes: Optional[str] = None


class AssetUpdate(CamelModel):
    name: Optional[str] = None
    asset_type: Optional[str] = None
    asset_class: Optional[str] = None
    current_value: Optional[float] = None
    notes: Optional[str] = None


class AssetResponse(CamelModel):
    id: uuid.UUID
    name: str
    asset_type: str
    asset_class: str
    current_value: float
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NetWorthResponse(CamelModel):
    net_worth: float
    liquid_assets: float
    credit_card_debt: float
    manual_assets_total: float
    manual_liabilities: float
    monthly_change: float
    yearly_change: float
    assets: List[AssetResponse] = []


class NetWorthSnapshotResponse(CamelModel):
    id: uuid.UUID
    snapshot_date: date
    liquid_assets: float
    credit_card_debt: float
    manual_assets: float
    manual_liabilities: float
    net_worth: float
    created_at: Optional[datetime] = None


# Insights and analytics


class InsightResponse(CamelModel):
    id: uuid.UUID
    type: str
    severity: str
    title: str
    description: str
    action_text: Optional[str] = None
    impact_amount: Optional[float] = None
    merchant_name: Optional[str] = None
    category: Optional[str] = None
    is_dismissed: bool
    generated_at: Optional[datetime] = None


class CardPayoffSchema(CamelModel):
    account_id: str
    account_name: str
    current_balance: float
    apr: float
    min_payment: Optional[float] = None
    payoff_date: Optional[date] = None
    interest_paid: float
    payoff_order: int


class PayoffStrategySchema(CamelModel):
    strategy: str
    total_months: int
    payoff_date: Optional[date] = None
    total_interest: float
    total_paid: float
    card_order: List[CardPayoffSchema] = []


class DebtPayoffResponse(CamelModel):
    extra_payment: float
    total_current_debt: float
    avalanche: PayoffStrategySchema
    snowball: PayoffStrategySchema


class WhatIfRow(CamelModel):
    extra_payment: float
    avalanche_months: int
    avalanche_total_interest: float
    avalanche_payoff_date: Optional[date] = None
    snowball_months: int


class ScorePillarSchema(CamelModel):
    name: str
    score: int
    max_score: int
    explanation: str


class HealthScoreResponse(CamelModel):
    total_score: int
    grade: str
    emergency_fund_months: float
    emergency_fund_target: int
    utilization_percent: float
    savings_rate: float
    pillars: List[ScorePillarSchema] = []


class CashFlowEventSchema(CamelModel):
    day: date = Field(alias="date")
    type: str
    description: str
    amount: float
    running_balance: Optional[float] = None
    is_danger_day: bool = False


class CashFlowResponse(CamelModel):
    year: int
    month: int
    starting_balance: float
    events: List[CashFlowEventSchema] = []


class CategoryAmount(CamelModel):
    category: str
    amount: float


class AnnualReviewResponse(CamelModel):
    year: int
    total_spending: float
    estimated_income: float
    savings_rate: float
    interest_paid: float
    fees_paid: float
    subscription_annual_cost: float
    net_worth_change: float
    category_breakdown: List[CategoryAmount] = []
    ai_recommendations: List[str] = []


class HeatmapDaySchema(CamelModel):
    day: date = Field(alias="date")
    total_spend: float
    transaction_count: int
    intensity: int


class SpendingHeatmapResponse(CamelModel):
    year: int
    max_daily_spend: float
    total_annual_spend: float
    days: List[HeatmapDaySchema] = []


class MonthAmount(CamelModel):
    month: str
    amount: float


class MerchantTrendResponse(CamelModel):
    merchant_name: str
    months: List[MonthAmount] = []
    total_annual: float
    avg_monthly: float
    trend: str


def to_merchant_trend_response(trend) -> MerchantTrendResponse:
    return MerchantTrendResponse(
        merchant_name=trend.merchant_name,
        months=[MonthAmount(month=m, amount=a) for m, a in trend.months],
        total_annual=trend.total_annual,
        avg_monthly=trend.avg_monthly,
        trend=trend.trend,
    )


class CardUtilizationSchema(CamelModel):
    account_id: str
    account_name: str
    balance: float
    credit_limit: float
    utilization_pct: float
    recommended_payment: float
    target_utilization: float


class WhatIfScenarioSchema(CamelModel):
    description: str
    payment_amount: float
    new_utilization_pct: float
    estimated_score_impact: int


class CreditScoreResponse(CamelModel):
    estimated_score: int
    utilization_impact: str
    cards: List[CardUtilizationSchema] = []
    recommendations: List[str] = []
    what_if_scenarios: List[WhatIfScenarioSchema] = []


class YearProjectionSchema(CamelModel):
    year: int
    portfolio_value: float
    annual_contribution: float


class FireResponse(CamelModel):
    fi_number: float
    current_savings: float
    annual_expenses: float
    monthly_savings: float
    years_to_fire: float
    fire_date: date
    savings_rate: float
    monthly_savings_gap: float
    projections: List[YearProjectionSchema] = []
    monte_carlo_p10: List[float] = []
    monte_carlo_p50: List[float] = []
    monte_carlo_p90: List[float] = []


class DuplicateGroupResponse(CamelModel):
    merchant_name: str
    amount: float
    transactions: List[TransactionResponse] = []
    within_days: int


# Chat and analysis


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1)
    conversation_id: Optional[str] = None


class ChatResponse(CamelModel):
    message: str
    response: str


class EnrichedChatRequest(CamelModel):
    message: str = ""


class EnrichedChatResponse(CamelModel):
    response: str


class AnalysisStartedResponse(CamelModel):
    status: str
    message: str


class AnalysisResultResponse(CamelModel):
    id: uuid.UUID
    statement_id: uuid.UUID
    analysis_type: str
    result_data: Optional[Dict[str, Any]] = None
    model_used: Optional[str] = None
    processing_ms: Optional[int] = None
    created_at: Optional[datetime] = None


# Search and digest


class SearchResponse(CamelModel):
    query: str
    transactions: List[TransactionResponse] = []
    accounts: List[AccountResponse] = []
    merchants: List[str] = []
    total_results: int = 0


class DigestTransaction(CamelModel):
    merchant: Optional[str] = None
    amount: float
    day: date = Field(alias="date")
    category: Optional[str] = None


class DigestPayment(CamelModel):
    account: str
    due_date: date
    balance: Optional[float] = None


class DigestResponse(CamelModel):
    week_start: date
    week_end: date
    total_spend: float
    prior_week_spend: float
    spending_change_percent: float
    top_transactions: List[DigestTransaction] = []
    budget_statuses: List[BudgetResponse] = []
    upcoming_payments: List[DigestPayment] = []
    category_breakdown: List[CategoryAmount] = []
    unread_insight_count: int = 0


# Dashboard


class CategoryShare(CamelModel):
    category: str
    amount: float
    percent: float


class MerchantTotal(CamelModel):
    merchant: str
    amount: float
    count: int


class UpcomingPayment(CamelModel):
    account_id: uuid.UUID
    account_name: str
    due_date: date
    days_until_due: int
    balance: Optional[float] = None
    min_payment: Optional[float] = None


class ExpiringPromo(CamelModel):
    account_id: uuid.UUID
    account_name: str
    promo_apr: Optional[float] = None
    regular_apr: Optional[float] = None
    end_date: date
    days_left: int
    balance: Optional[float] = None


class PaycheckSlice(CamelModel):
    label: str
    amount: float
    pct_of_income: float
    bucket: str


class DashboardResponse(CamelModel):
    total_credit_card_balance: float
    total_credit_limit: float
    total_available_credit: float
    overall_utilization_percent: float
    total_checking_balance: float
    total_savings_balance: float
    unread_alert_count: int
    recent_alerts: List[AlertResponse] = []
    current_month_spend: float
    last_month_spend: float
    spending_change_percent: Optional[float] = None
    monthly_spending_trend: List[MonthAmount] = []
    category_breakdown: List[CategoryShare] = []
    top_merchants: List[MerchantTotal] = []
    accounts: List[AccountResponse] = []
    upcoming_payments: List[UpcomingPayment] = []
    expiring_promo_aprs: List[ExpiringPromo] = []
    monthly_subscription_cost: float
    active_subscription_count: int
    duplicate_subscription_count: int
    estimated_monthly_income: float
    monthly_savings_rate: Optional[float] = None
    avg_savings_rate_6_month: Optional[float] = None
    years_to_retirement_at_current_rate: Optional[int] = None
    freedom_months: Optional[float] = None
    freedom_months_trend: Optional[float] = None
    material_spend_this_month: float
    material_spend_last_month: float
    things_spend: float
    experiences_spend: float
    necessities_spend: float
    paycheck_breakdown: List[PaycheckSlice] = []
