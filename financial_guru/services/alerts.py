"""Alert lifecycle and user-defined alert rules"""

import logging
import uuid
from datetime import date, timedelta
from typing import List, Optional
from sqlalchemy.orm import Session
from financial_guru.domain.credit_score import utilization_percent
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.domain.models import AccountType, AlertRuleType, AlertSeverity, AlertType
from financial_guru.infrastructure.database.models import Account, Alert, AlertRule, Transaction
from financial_guru.infrastructure.database.repositories import (
    AccountRepository,
    AlertRepository,
    AlertRuleRepository,
    TransactionRepository,
)
from financial_guru.infrastructure.observability.metrics import alerts_created_counter
from financial_guru.utils.date_utils import as_utc, month_start, utcnow

logger = logging.getLogger(__name__)

RULE_COOLDOWN = timedelta(hours=24)


class AlertService:
    """Creates alerts and moves them through read/resolved"""

    def __init__(self, db: Session):
        self.db = db
        self.alerts = AlertRepository(db)

    def create_alert(
        self,
        alert_type: AlertType,
        severity: AlertSeverity,
        title: str,
        message: str,
        account: Optional[Account] = None,
        transaction: Optional[Transaction] = None,
        ai_explanation: Optional[str] = None,
    ) -> Alert:
        alert = self.alerts.add(
            Alert(
                type=alert_type.value,
                severity=severity.value,
                title=title,
                message=message,
                ai_explanation=ai_explanation,
                account_id=account.id if account is not None else None,
                transaction_id=transaction.id if transaction is not None else None,
            )
        )
        alerts_created_counter.labels(type=alert_type.value).inc()
        return alert

    def list_unresolved(self) -> List[Alert]:
        return self.alerts.unresolved()

    def unread_count(self) -> int:
        return self.alerts.count_unread()

    def get(self, alert_id: uuid.UUID) -> Alert:
        alert = self.alerts.get(alert_id)
        if alert is None:
            raise NotFoundError("Alert", alert_id)
        return alert

    def mark_read(self, alert_id: uuid.UUID) -> Alert:
        alert = self.get(alert_id)
        alert.is_read = True
        self.db.flush()
        return alert

    def resolve(self, alert_id: uuid.UUID) -> Alert:
        alert = self.get(alert_id)
        alert.is_resolved = True
        alert.is_read = True
        alert.resolved_at = utcnow()
        self.db.flush()
        return alert

    def delete(self, alert_id: uuid.UUID) -> None:
        self.alerts.delete(self.get(alert_id))


class AlertRuleService:
    """CRUD for alert rules and their periodic evaluation"""

    def __init__(self, db: Session):
        self.db = db
        self.rules = AlertRuleRepository(db)
        self.accounts = AccountRepository(db)
        self.transactions = TransactionRepository(db)
        self.alert_service = AlertService(db)

    def list_active(self) -> List[AlertRule]:
        return self.rules.list_active()

    def get(self, rule_id: uuid.UUID) -> AlertRule:
        rule = self.rules.get(rule_id)
        if rule is None:
            raise NotFoundError("Alert rule", rule_id)
        return rule

    def create(
        self,
        name: str,
        rule_type: AlertRuleType,
        threshold_amount: Optional[float],
        condition_operator: Optional[str] = None,
        category: Optional[str] = None,
        account_id: Optional[uuid.UUID] = None,
    ) -> AlertRule:
        return self.rules.add(
            AlertRule(
                name=name,
                rule_type=rule_type.value,
                condition_operator=condition_operator or "GREATER_THAN",
                threshold_amount=threshold_amount,
                category=category,
                account_id=account_id,
                is_active=True,
            )
        )

    def update(self, rule_id: uuid.UUID, changes: dict) -> AlertRule:
        """Apply the fields present in `changes` (name, rule_type, threshold, category, account, active)"""
        rule = self.get(rule_id)
        for field in ("name", "threshold_amount", "category", "account_id", "is_active", "condition_operator"):
            if changes.get(field) is not None:
                setattr(rule, field, changes[field])
        if changes.get("rule_type") is not None:
            rule.rule_type = AlertRuleType(changes["rule_type"]).value
        self.db.flush()
        return rule

    def delete(self, rule_id: uuid.UUID) -> None:
        self.rules.delete(self.get(rule_id))

    def evaluate(self, today: date | None = None) -> int:
        """
        Check every active rule and raise an alert for each one that fires.

        Rules that fired within the last 24 hours are skipped.

        Returns:
            Number of rules that fired
        """
        today = today or date.today()
        now = utcnow()
        fired = 0
        for rule in self.rules.list_active():
            last = as_utc(rule.last_triggered_at)
            if last is not None and last > now - RULE_COOLDOWN:
                continue
            if rule.threshold_amount is None:
                continue

            message = self._check(rule, today)
            if message is None:
                continue

            self.alert_service.create_alert(
                AlertType.ANOMALY, AlertSeverity.MEDIUM, f"Custom Rule: {rule.name}", message
            )
            rule.last_triggered_at = now
            fired += 1
            logger.info(f"Alert rule fired: {rule.name}", extra={"step": "alert_rule_fired", "rule_id": str(rule.id)})
        self.db.flush()
        return fired

    def _check(self, rule: AlertRule, today: date) -> Optional[str]:
        threshold = rule.threshold_amount
        rule_type = AlertRuleType(rule.rule_type)

        if rule_type == AlertRuleType.TRANSACTION_AMOUNT:
            for txn in self.transactions.recent_unflagged_debits(today - timedelta(days=1)):
                if rule.account_id is not None and txn.account_id != rule.account_id:
                    continue
                if txn.amount > threshold:
                    return (
                        f"Transaction of ${txn.amount:.2f} at {txn.merchant_name} "
                        f"exceeded your ${threshold:.2f} alert rule."
                    )

        elif rule_type == AlertRuleType.MONTHLY_CATEGORY_SPEND:
            if rule.category:
                spent = self.transactions.sum_category_spending(rule.category, month_start(today), today)
                if spent > threshold:
                    return (
                        f"{rule.category} spending this month (${spent:.2f}) "
                        f"exceeded your ${threshold:.2f} alert rule."
                    )

        elif rule_type == AlertRuleType.BALANCE_BELOW:
            if rule.account_id is not None:
                candidates = [a for a in [self.accounts.get(rule.account_id)] if a is not None]
            else:
                candidates = [
                    a
                    for a in self.accounts.list_active()
                    if a.type in (AccountType.CHECKING.value, AccountType.SAVINGS.value)
                ]
            for account in candidates:
                if account.current_balance is not None and account.current_balance < threshold:
                    return (
                        f"{account.name} balance (${account.current_balance:.2f}) "
                        f"is below your ${threshold:.2f} alert threshold."
                    )

        elif rule_type == AlertRuleType.UTILIZATION_ABOVE:
            cards = self.accounts.list_by_type(AccountType.CREDIT_CARD)
            total_balance = sum(c.current_balance for c in cards if c.current_balance is not None)
            total_limit = sum(c.credit_limit for c in cards if c.credit_limit is not None)
            if total_limit > 0:
                util = utilization_percent(total_balance, total_limit)
                if util > threshold:
                    return f"Credit utilization ({util:.1f}%) exceeded your {threshold:.0f}% alert threshold."

        return None
