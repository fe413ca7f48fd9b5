"""Category budgets: month-to-date status and threshold alerts"""

import logging
import uuid
from datetime import date
from typing import List, Tuple
from sqlalchemy.orm import Session
from financial_guru.domain.budgets import EXCEEDED_PERCENT, WARNING_PERCENT, budget_status, status_sort_key
from financial_guru.domain.exceptions import InvalidStateError, NotFoundError
from financial_guru.domain.models import AlertSeverity, AlertType, BudgetStatus
from financial_guru.infrastructure.database.models import Budget
from financial_guru.infrastructure.database.repositories import BudgetRepository, TransactionRepository
from financial_guru.services.alerts import AlertService
from financial_guru.utils.date_utils import month_start

logger = logging.getLogger(__name__)


class BudgetService:
    def __init__(self, db: Session):
        self.db = db
        self.budgets = BudgetRepository(db)
        self.transactions = TransactionRepository(db)

    def list_with_status(self, today: date | None = None) -> List[Tuple[Budget, BudgetStatus]]:
        """Active budgets with their standing, RED first then YELLOW then GREEN"""
        today = today or date.today()
        result = []
        for budget in self.budgets.list_active():
            spent = self.transactions.sum_category_spending(budget.category, month_start(today), today)
            result.append((budget, budget_status(budget.monthly_limit, spent, today)))
        result.sort(key=lambda pair: status_sort_key(pair[1].status, pair[0].category))
        return result

    def upsert(self, category: str, monthly_limit: float) -> Budget:
        """Create the category's budget or overwrite its limit (reactivating it)"""
        budget = self.budgets.get_by_category(category)
        if budget is not None:
            budget.monthly_limit = monthly_limit
            budget.is_active = True
            self.db.flush()
            return budget
        return self.budgets.add(Budget(category=category, monthly_limit=monthly_limit, is_active=True))

    def update(self, budget_id: uuid.UUID, category: str, monthly_limit: float) -> Budget:
        """
        Update a budget by id, allowing the category to be renamed.

        Raises:
            NotFoundError: Unknown budget id
            InvalidStateError: Another budget already owns the new category
        """
        budget = self.budgets.get(budget_id)
        if budget is None:
            raise NotFoundError("Budget", budget_id)
        if category != budget.category:
            clash = self.budgets.get_by_category(category)
            if clash is not None:
                raise InvalidStateError(f"A budget for category '{category}' already exists")
            budget.category = category
        budget.monthly_limit = monthly_limit
        budget.is_active = True
        self.db.flush()
        return budget

    def delete(self, budget_id: uuid.UUID) -> None:
        budget = self.budgets.get(budget_id)
        if budget is None:
            raise NotFoundError("Budget", budget_id)
        self.budgets.delete(budget)

    def check_and_alert(self, today: date | None = None) -> int:
        """Raise BUDGET_EXCEEDED at 100% and BUDGET_WARNING at 80%; returns alerts created"""
        alert_service = AlertService(self.db)
        created = 0
        for budget, status in self.list_with_status(today):
            pct = status.percent_used
            if pct >= EXCEEDED_PERCENT:
                alert_service.create_alert(
                    AlertType.BUDGET_EXCEEDED,
                    AlertSeverity.HIGH,
                    f"Budget Exceeded: {budget.category}",
                    f"{budget.category} budget exceeded: ${status.actual_spend:.2f} spent of "
                    f"${budget.monthly_limit:.2f} limit ({pct:.0f}%)",
                )
                created += 1
            elif pct >= WARNING_PERCENT:
                alert_service.create_alert(
                    AlertType.BUDGET_WARNING,
                    AlertSeverity.MEDIUM,
                    f"Budget Warning: {budget.category}",
                    f"{budget.category} budget at {pct:.0f}%: ${status.actual_spend:.2f} spent of "
                    f"${budget.monthly_limit:.2f} limit",
                )
                created += 1
        logger.info(f"Budget check raised {created} alerts", extra={"step": "budgets_checked"})
        return created
