"""Account management and daily balance capture"""

import logging
import uuid
from datetime import date, timedelta
from typing import List, Tuple
from sqlalchemy.orm import Session
from financial_guru.config import settings
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.domain.models import AccountType, AlertSeverity, AlertType
from financial_guru.infrastructure.database.models import Account, AccountBalanceSnapshot, Transaction
from financial_guru.infrastructure.database.repositories import (
    AccountRepository,
    BalanceSnapshotRepository,
    TransactionRepository,
)
from financial_guru.services.alerts import AlertService

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "institution",
    "type",
    "last4",
    "credit_limit",
    "current_balance",
    "available_credit",
    "apr",
    "promo_apr",
    "promo_apr_end_date",
    "payment_due_day",
    "min_payment",
    "rewards_program",
    "color",
    "is_active",
)


class AccountService:
    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)
        self.snapshots = BalanceSnapshotRepository(db)
        self.transactions = TransactionRepository(db)

    def list_active(self) -> List[Account]:
        return self.accounts.list_active()

    def get(self, account_id: uuid.UUID) -> Account:
        account = self.accounts.get(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    def create(self, fields: dict) -> Account:
        values = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}
        values["type"] = AccountType(values["type"]).value
        return self.accounts.add(Account(**values))

    def update(self, account_id: uuid.UUID, changes: dict) -> Account:
        """Partial update: only fields present and non-null are written"""
        account = self.get(account_id)
        for field in EDITABLE_FIELDS:
            value = changes.get(field)
            if value is None:
                continue
            if field == "type":
                value = AccountType(value).value
            setattr(account, field, value)
        self.db.flush()
        return account

    def deactivate(self, account_id: uuid.UUID) -> None:
        account = self.get(account_id)
        account.is_active = False
        self.db.flush()

    def transactions_page(self, account_id: uuid.UUID, page: int, size: int) -> Tuple[List[Transaction], int]:
        self.get(account_id)
        return self.transactions.page_for_account(account_id, page, size)

    def balance_history(self, account_id: uuid.UUID, days: int, today: date | None = None) -> List[AccountBalanceSnapshot]:
        today = today or date.today()
        return self.snapshots.history_since(account_id, today - timedelta(days=days))

    def capture_balances(self, today: date | None = None) -> int:
        """
        Upsert today's snapshot for every active account with a balance.

        A checking or savings balance under the low-balance threshold raises
        a HIGH anomaly alert.
        """
        today = today or date.today()
        alert_service = AlertService(self.db)
        captured = 0
        for account in self.accounts.list_active():
            if account.current_balance is None:
                continue
            self.snapshots.upsert(account.id, today, account.current_balance)
            captured += 1

            is_cash = account.type in (AccountType.CHECKING.value, AccountType.SAVINGS.value)
            if is_cash and account.current_balance < settings.low_balance_threshold:
                alert_service.create_alert(
                    AlertType.ANOMALY,
                    AlertSeverity.HIGH,
                    f"Low Balance: {account.name}",
                    f"{account.name} balance is ${account.current_balance:.2f} - "
                    f"below ${settings.low_balance_threshold:.0f} threshold.",
                    account=account,
                )
        logger.info(f"Captured {captured} balance snapshots", extra={"step": "balances_captured"})
        return captured
