"""Savings goals"""

import uuid
from datetime import date
from typing import List, Tuple
from sqlalchemy.orm import Session
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.domain.goals import goal_progress
from financial_guru.domain.models import GoalCategory, GoalProgress
from financial_guru.infrastructure.database.models import SavingsGoal
from financial_guru.infrastructure.database.repositories import ProfileRepository, SavingsGoalRepository

GOAL_FIELDS = ("name", "category", "target_amount", "current_amount", "target_date", "linked_account_id", "color", "notes")


class GoalService:
    def __init__(self, db: Session):
        self.db = db
        self.goals = SavingsGoalRepository(db)
        self.profiles = ProfileRepository(db)

    def get(self, goal_id: uuid.UUID) -> SavingsGoal:
        goal = self.goals.get(goal_id)
        if goal is None:
            raise NotFoundError("Goal", goal_id)
        return goal

    def list_with_progress(self, today: date | None = None) -> List[Tuple[SavingsGoal, GoalProgress]]:
        income = self.profiles.get_or_create().monthly_income
        return [
            (goal, goal_progress(goal.target_amount, goal.current_amount, goal.target_date, income, today))
            for goal in self.goals.list_active()
        ]

    def progress(self, goal: SavingsGoal, today: date | None = None) -> GoalProgress:
        income = self.profiles.get_or_create().monthly_income
        return goal_progress(goal.target_amount, goal.current_amount, goal.target_date, income, today)

    def create(self, fields: dict) -> SavingsGoal:
        values = {k: v for k, v in fields.items() if k in GOAL_FIELDS and v is not None}
        values["category"] = GoalCategory(values.get("category") or GoalCategory.OTHER).value
        values.setdefault("current_amount", 0.0)
        return self.goals.add(SavingsGoal(is_active=True, **values))

    def update(self, goal_id: uuid.UUID, changes: dict) -> SavingsGoal:
        goal = self.get(goal_id)
        for field in GOAL_FIELDS + ("is_active",):
            value = changes.get(field)
            if value is None:
                continue
            if field == "category":
                value = GoalCategory(value).value
            setattr(goal, field, value)
        self.db.flush()
        return goal

    def add_progress(self, goal_id: uuid.UUID, amount: float) -> SavingsGoal:
        goal = self.get(goal_id)
        goal.current_amount = round((goal.current_amount or 0.0) + amount, 2)
        self.db.flush()
        return goal

    def delete(self, goal_id: uuid.UUID) -> None:
        self.goals.delete(self.get(goal_id))
