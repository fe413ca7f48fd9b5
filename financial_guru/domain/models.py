"""Domain models - enums and pure Python dataclasses used by the financial algorithms"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class AccountType(str, Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CREDIT_CARD = "CREDIT_CARD"
    LOAN = "LOAN"


class TransactionType(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"
    PAYMENT = "PAYMENT"
    FEE = "FEE"
    INTEREST = "INTEREST"


class StatementStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class AlertType(str, Enum):
    DUE_DATE = "DUE_DATE"
    APR_EXPIRY = "APR_EXPIRY"
    DUPLICATE_CHARGE = "DUPLICATE_CHARGE"
    ANOMALY = "ANOMALY"
    SUBSCRIPTION = "SUBSCRIPTION"
    HIGH_UTILIZATION = "HIGH_UTILIZATION"
    OVERCHARGE = "OVERCHARGE"
    UNUSUAL_MERCHANT = "UNUSUAL_MERCHANT"
    LARGE_TRANSACTION = "LARGE_TRANSACTION"
    BUDGET_EXCEEDED = "BUDGET_EXCEEDED"
    BUDGET_WARNING = "BUDGET_WARNING"


class AlertSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AlertRuleType(str, Enum):
    TRANSACTION_AMOUNT = "TRANSACTION_AMOUNT"
    MONTHLY_CATEGORY_SPEND = "MONTHLY_CATEGORY_SPEND"
    BALANCE_BELOW = "BALANCE_BELOW"
    UTILIZATION_ABOVE = "UTILIZATION_ABOVE"


class SubscriptionFrequency(str, Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUAL = "ANNUAL"


class InsightType(str, Enum):
    PRICE_INCREASE = "PRICE_INCREASE"
    DUPLICATE_CROSS_CARD = "DUPLICATE_CROSS_CARD"
    SUBSCRIPTION_CREEP = "SUBSCRIPTION_CREEP"
    ATM_FEE_WASTE = "ATM_FEE_WASTE"
    REWARDS_OPPORTUNITY = "REWARDS_OPPORTUNITY"
    CATEGORY_YOY_SPIKE = "CATEGORY_YOY_SPIKE"
    BILL_INCREASE = "BILL_INCREASE"
    SPENDING_YOUR_RAISE = "SPENDING_YOUR_RAISE"


class InsightSeverity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    OPPORTUNITY = "OPPORTUNITY"
    CRITICAL = "CRITICAL"


class GoalCategory(str, Enum):
    EMERGENCY_FUND = "EMERGENCY_FUND"
    VACATION = "VACATION"
    DOWN_PAYMENT = "DOWN_PAYMENT"
    CAR = "CAR"
    RETIREMENT = "RETIREMENT"
    EDUCATION = "EDUCATION"
    OTHER = "OTHER"


class PayFrequency(str, Enum):
    MONTHLY = "MONTHLY"
    BIWEEKLY = "BIWEEKLY"
    WEEKLY = "WEEKLY"


class AssetType(str, Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"


class AssetClass(str, Enum):
    REAL_ESTATE = "REAL_ESTATE"
    VEHICLE = "VEHICLE"
    INVESTMENT = "INVESTMENT"
    LOAN = "LOAN"
    RETIREMENT = "RETIREMENT"
    OTHER = "OTHER"


class AnalysisType(str, Enum):
    CATEGORIZATION = "CATEGORIZATION"
    ANOMALY = "ANOMALY"
    SUMMARY = "SUMMARY"


@dataclass
class ParsedTransaction:
    """Transaction line extracted from statement text"""

    transaction_date: date
    description: str
    merchant_name: Optional[str]
    amount: float  # always positive
    type: TransactionType
    category: Optional[str] = None


@dataclass
class StatementFacts:
    """Statement-level values a parser can fill in"""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    opening_balance: Optional[float] = None
    closing_balance: Optional[float] = None
    minimum_payment: Optional[float] = None
    payment_due_date: Optional[date] = None
    ytd_total_fees: Optional[float] = None
    ytd_total_interest: Optional[float] = None
    ytd_year: Optional[int] = None


@dataclass
class ParseResult:
    """Everything a parser pulled out of one statement's text"""

    transactions: List[ParsedTransaction] = field(default_factory=list)
    facts: StatementFacts = field(default_factory=StatementFacts)


@dataclass
class AccountFacts:
    """Account metadata a parser can fill in; None means unknown"""

    type: Optional[AccountType] = None
    last4: Optional[str] = None
    current_balance: Optional[float] = None
    credit_limit: Optional[float] = None
    available_credit: Optional[float] = None
    apr: Optional[float] = None
    promo_apr: Optional[float] = None
    promo_apr_end_date: Optional[date] = None


@dataclass
class CardDebt:
    """Credit card balance entering the payoff simulation"""

    account_id: str
    account_name: str
    balance: float
    apr: float
    min_payment: Optional[float] = None


@dataclass
class CardPayoff:
    """Per-card outcome of a payoff strategy"""

    account_id: str
    account_name: str
    current_balance: float
    apr: float
    min_payment: Optional[float]
    payoff_date: Optional[date]
    interest_paid: float
    payoff_order: int


@dataclass
class PayoffStrategy:
    """Result of simulating one payoff ordering"""

    strategy: str  # AVALANCHE | SNOWBALL
    total_months: int
    payoff_date: Optional[date]
    total_interest: float
    total_paid: float
    card_order: List[CardPayoff] = field(default_factory=list)


@dataclass
class GoalProgress:
    """Computed view of a savings goal"""

    percent_complete: float
    months_remaining: Optional[int]
    monthly_required: Optional[float]
    is_on_track: Optional[bool]
    projected_completion_date: Optional[date]


@dataclass
class BudgetStatus:
    """Month-to-date standing of a category budget"""

    actual_spend: float
    percent_used: float
    projected_month_end: float
    status: str  # GREEN | YELLOW | RED
