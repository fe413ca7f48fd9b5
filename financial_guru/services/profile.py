"""Financial profile singleton and income detection"""

import logging
from datetime import date
from typing import Dict
from sqlalchemy.orm import Session
from financial_guru.domain.models import PayFrequency
from financial_guru.infrastructure.database.models import FinancialProfile
from financial_guru.infrastructure.database.repositories import ProfileRepository, TransactionRepository
from financial_guru.utils.date_utils import add_months

logger = logging.getLogger(__name__)

INCOME_MIN_AMOUNT = 500.0
INCOME_LOOKBACK_MONTHS = 3

PROFILE_FIELDS = (
    "monthly_income",
    "income_source",
    "pay_frequency",
    "emergency_fund_target_months",
    "age",
    "target_retirement_age",
    "current_investments",
    "notes",
)


class ProfileService:
    def __init__(self, db: Session):
        self.db = db
        self.profiles = ProfileRepository(db)
        self.transactions = TransactionRepository(db)

    def get(self) -> FinancialProfile:
        return self.profiles.get_or_create()

    def update(self, changes: dict) -> FinancialProfile:
        profile = self.get()
        for field in PROFILE_FIELDS:
            value = changes.get(field)
            if value is None:
                continue
            if field == "pay_frequency":
                value = PayFrequency(value).value
            setattr(profile, field, value)
        self.db.flush()
        return profile

    def detect_monthly_income(self, today: date | None = None) -> float:
        """
        Estimate monthly income from large checking-account credits.

        Requirements:
        - CREDIT transactions of at least $500 on CHECKING accounts in the last 3 months
        - Summed per calendar month; the median month (sorted, element n/2) wins
        - 0 when nothing qualifies

        Example:
            Months of 4000, 4200 and 5000 -> 4200
        """
        today = today or date.today()
        credits = self.transactions.potential_income(INCOME_MIN_AMOUNT, add_months(today, -INCOME_LOOKBACK_MONTHS))
        if not credits:
            return 0.0

        by_month: Dict[tuple, float] = {}
        for txn in credits:
            key = (txn.transaction_date.year, txn.transaction_date.month)
            by_month[key] = by_month.get(key, 0.0) + txn.amount
        monthly = sorted(by_month.values())
        return round(monthly[len(monthly) // 2], 2)

    def detect_and_store_income(self, today: date | None = None) -> float:
        detected = self.detect_monthly_income(today)
        if detected > 0:
            profile = self.get()
            profile.monthly_income = detected
            profile.income_source = "DETECTED"
            self.db.flush()
            logger.info(f"Detected monthly income ${detected:.2f}", extra={"step": "income_detected"})
        return detected
