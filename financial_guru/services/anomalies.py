"""Flags large, duplicated and spiking charges after a statement is parsed"""

import logging
from datetime import date
from typing import List
from sqlalchemy.orm import Session
from financial_guru.config import settings
from financial_guru.domain.anomalies import (
    duplicate_pairs,
    is_large,
    is_spike,
    large_severity,
    spike_baseline,
)
from financial_guru.domain.models import AlertSeverity, AlertType
from financial_guru.infrastructure.database.models import Account, Transaction
from financial_guru.infrastructure.database.repositories import TransactionRepository
from financial_guru.services.alerts import AlertService
from financial_guru.utils.date_utils import add_months

logger = logging.getLogger(__name__)

SPIKE_LOOKBACK_MONTHS = 6


class AnomalyDetectionService:
    def __init__(self, db: Session):
        self.db = db
        self.transactions = TransactionRepository(db)
        self.alert_service = AlertService(db)

    def detect(self, new_transactions: List[Transaction], account: Account, today: date | None = None) -> List[Transaction]:
        """
        Run the three anomaly rules over a statement's transactions.

        Returns:
            Transactions flagged (a transaction may appear once per rule it broke)
        """
        today = today or date.today()
        flagged = []
        flagged.extend(self._large_transactions(new_transactions, account))
        flagged.extend(self._duplicate_charges(new_transactions, account))
        flagged.extend(self._spending_spikes(new_transactions, account, today))
        self.db.flush()
        if flagged:
            logger.info(f"Flagged {len(flagged)} anomalies on {account.name}", extra={"step": "anomalies_flagged"})
        return flagged

    def _large_transactions(self, transactions: List[Transaction], account: Account) -> List[Transaction]:
        flagged = []
        for txn in transactions:
            if not is_large(txn, settings.large_transaction_threshold):
                continue
            txn.is_flagged = True
            txn.flag_reason = f"Large transaction: ${txn.amount:.2f}"
            self.alert_service.create_alert(
                AlertType.LARGE_TRANSACTION,
                large_severity(txn.amount),
                "Large Transaction Detected",
                f"${txn.amount:.2f} charge at {txn.merchant_name} on {txn.transaction_date.isoformat()}",
                account=account,
                transaction=txn,
            )
            flagged.append(txn)
        return flagged

    def _duplicate_charges(self, transactions: List[Transaction], account: Account) -> List[Transaction]:
        flagged = []
        for original, duplicate, days in duplicate_pairs(transactions):
            duplicate.is_flagged = True
            duplicate.flag_reason = f"Possible duplicate charge (same as {original.transaction_date.isoformat()})"
            self.alert_service.create_alert(
                AlertType.DUPLICATE_CHARGE,
                AlertSeverity.HIGH,
                "Possible Duplicate Charge",
                f"${duplicate.amount:.2f} at {duplicate.merchant_name} appears twice within {days} days "
                f"({original.transaction_date.isoformat()} and {duplicate.transaction_date.isoformat()})",
                account=account,
                transaction=duplicate,
            )
            flagged.append(duplicate)
        return flagged

    def _spending_spikes(self, transactions: List[Transaction], account: Account, today: date) -> List[Transaction]:
        flagged = []
        since = add_months(today, -SPIKE_LOOKBACK_MONTHS)
        by_merchant = {}
        for txn in transactions:
            if txn.merchant_name is not None:
                by_merchant.setdefault(txn.merchant_name, []).append(txn)

        for merchant, new_txns in by_merchant.items():
            history = self.transactions.by_account_and_merchant_since(account.id, merchant, since)
            baseline = spike_baseline([t.amount for t in history])
            if baseline is None or baseline <= 0:
                continue
            for txn in new_txns:
                if not is_spike(txn.amount, baseline):
                    continue
                txn.is_flagged = True
                txn.flag_reason = f"Spending spike: ${txn.amount:.2f} vs avg ${baseline:.2f}"
                self.alert_service.create_alert(
                    AlertType.OVERCHARGE,
                    AlertSeverity.HIGH,
                    "Spending Spike Detected",
                    f"${txn.amount:.2f} at {merchant} is {txn.amount / baseline:.1f}x "
                    f"your usual amount of ${baseline:.2f}",
                    account=account,
                    transaction=txn,
                )
                flagged.append(txn)
        return flagged
