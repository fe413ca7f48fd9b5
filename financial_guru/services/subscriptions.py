"""Subscription detection and management"""

import logging
import uuid
from typing import Dict, List
from sqlalchemy.orm import Session
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.domain.models import SubscriptionFrequency, TransactionType
from financial_guru.domain.subscriptions import (
    PATTERN_CATEGORY,
    annual_cost,
    average_amount,
    detect_frequency,
    group_duplicates,
    is_consistent_amount,
    match_known_service,
    next_expected_date,
    rough_normalize,
)
from financial_guru.infrastructure.database.models import Account, Subscription, Transaction
from financial_guru.infrastructure.database.repositories import (
    AccountRepository,
    SubscriptionRepository,
    TransactionRepository,
)

logger = logging.getLogger(__name__)

NON_SPENDING_TYPES = (TransactionType.CREDIT.value, TransactionType.PAYMENT.value)


class SubscriptionService:
    def __init__(self, db: Session):
        self.db = db
        self.subscriptions = SubscriptionRepository(db)
        self.transactions = TransactionRepository(db)
        self.accounts = AccountRepository(db)

    def list_active(self) -> List[Subscription]:
        return self.subscriptions.list_active()

    def list_duplicates(self) -> List[Subscription]:
        return self.subscriptions.list_duplicates()

    def update(self, subscription_id: uuid.UUID, notes: str | None = None, is_active: bool | None = None) -> Subscription:
        subscription = self.subscriptions.get(subscription_id)
        if subscription is None:
            raise NotFoundError("Subscription", subscription_id)
        if notes is not None:
            subscription.notes = notes
        if is_active is not None:
            subscription.is_active = is_active
        self.db.flush()
        return subscription

    def detect_for_statement(self, transactions: List[Transaction], account: Account) -> List[Subscription]:
        """Detect subscriptions in one statement's transactions, then re-mark duplicates"""
        found = self._detect_known(transactions, account) + self._detect_patterns(transactions, account)
        self.mark_duplicates()
        return found

    def detect_all(self) -> int:
        """
        Wipe every subscription and rescan all accounts.

        Returns:
            Number of subscriptions detected
        """
        self.subscriptions.delete_all()
        total = 0
        for account in self.accounts.list_all():
            transactions = self.transactions.for_account(account.id)
            if not transactions:
                continue
            found = self._detect_known(transactions, account) + self._detect_patterns(transactions, account)
            total += len(found)
            logger.info(f"Detected {len(found)} subscriptions for account {account.name}")
        self.mark_duplicates()
        logger.info(
            f"Total subscriptions detected across all accounts: {total}",
            extra={"step": "subscriptions_detected", "count": total},
        )
        return total

    def _detect_known(self, transactions: List[Transaction], account: Account) -> List[Subscription]:
        """Pass 1: a single charge from a well-known service is enough"""
        found = []
        for txn in transactions:
            if txn.type in NON_SPENDING_TYPES:
                continue
            match = match_known_service(txn.merchant_name, txn.description)
            if match is None:
                continue
            display_name, category = match
            key = display_name.lower()
            if self.subscriptions.find(key, account.id) is not None:
                continue
            found.append(
                self.subscriptions.add(
                    Subscription(
                        merchant_name=txn.merchant_name or display_name,
                        normalized_name=key,
                        amount=txn.amount,
                        frequency=SubscriptionFrequency.MONTHLY.value,
                        account_id=account.id,
                        first_seen_date=txn.transaction_date,
                        last_charged_date=txn.transaction_date,
                        next_expected_date=next_expected_date(txn.transaction_date, SubscriptionFrequency.MONTHLY),
                        times_charged=1,
                        annual_cost=annual_cost(txn.amount, SubscriptionFrequency.MONTHLY),
                        category=category,
                        is_active=True,
                    )
                )
            )
            logger.info(f"Known subscription detected: {display_name} (${txn.amount}) on account {account.name}")
        return found

    def _detect_patterns(self, transactions: List[Transaction], account: Account) -> List[Subscription]:
        """Pass 2: repeated charges of a steady amount on a regular cadence"""
        by_merchant: Dict[str, List[Transaction]] = {}
        for txn in transactions:
            if txn.merchant_name is None or txn.type in NON_SPENDING_TYPES:
                continue
            by_merchant.setdefault(rough_normalize(txn.merchant_name), []).append(txn)

        found = []
        for key, group in by_merchant.items():
            if len(group) < 2 or not key:
                continue
            if self.subscriptions.find(key, account.id) is not None:
                continue
            amounts = [t.amount for t in group]
            if not is_consistent_amount(amounts):
                continue
            dates = [t.transaction_date for t in group]
            frequency = detect_frequency(dates)
            if frequency is None:
                continue

            avg = average_amount(amounts)
            last_charged = max(dates)
            found.append(
                self.subscriptions.add(
                    Subscription(
                        merchant_name=group[0].merchant_name,
                        normalized_name=key,
                        amount=avg,
                        frequency=frequency.value,
                        account_id=account.id,
                        first_seen_date=min(dates),
                        last_charged_date=last_charged,
                        next_expected_date=next_expected_date(last_charged, frequency),
                        times_charged=len(group),
                        annual_cost=annual_cost(avg, frequency),
                        category=PATTERN_CATEGORY,
                        is_active=True,
                    )
                )
            )
            logger.info(f"Pattern-based subscription: {key} at ${avg} ({frequency.value}) for account {account.name}")
        return found

    def mark_duplicates(self) -> int:
        """Mark subscriptions sharing a normalized name across accounts as duplicates of the first"""
        marked = 0
        candidates = [(s.normalized_name, s) for s in self.subscriptions.potential_duplicates()]
        for primary, duplicates in group_duplicates(candidates):
            for duplicate in duplicates:
                if duplicate.account_id == primary.account_id:
                    continue
                duplicate.is_duplicate = True
                duplicate.duplicate_of_id = primary.id
                marked += 1
        self.db.flush()
        return marked
