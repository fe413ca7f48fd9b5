"""/api/budgets - category budgets with month-to-date status"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from financial_guru.api.dependencies import parse_uuid
from financial_guru.api.routes.schemas import BudgetRequest, BudgetResponse, to_budget_response
from financial_guru.domain.budgets import budget_status
from financial_guru.domain.exceptions import InvalidStateError, NotFoundError
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.budgets import BudgetService

router = APIRouter()


def _with_status(service: BudgetService, budget) -> BudgetResponse:
    for candidate, status in service.list_with_status():
        if candidate.id == budget.id:
            return to_budget_response(candidate, status)
    return to_budget_response(budget, budget_status(budget.monthly_limit, 0.0))


@router.get("/budgets", response_model=List[BudgetResponse])
def list_budgets(db: Session = Depends(get_db)):
    """Active budgets sorted RED, YELLOW, GREEN then by category"""
    return [to_budget_response(b, s) for b, s in BudgetService(db).list_with_status()]


@router.post("/budgets", response_model=BudgetResponse)
def upsert_budget(body: BudgetRequest, db: Session = Depends(get_db)):
    """Create the category's budget or overwrite its limit"""
    service = BudgetService(db)
    budget = service.upsert(body.category, body.monthly_limit)
    db.commit()
    return _with_status(service, budget)


@router.put("/budgets/{budget_id}", response_model=BudgetResponse)
def update_budget(budget_id: str, body: BudgetRequest, db: Session = Depends(get_db)):
    budget_uuid = parse_uuid(budget_id, "budget")
    service = BudgetService(db)
    try:
        budget = service.update(budget_uuid, body.category, body.monthly_limit)
        db.commit()
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Budget not found")
    except InvalidStateError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    return _with_status(service, budget)


@router.delete("/budgets/{budget_id}", status_code=204)
def delete_budget(budget_id: str, db: Session = Depends(get_db)):
    budget_uuid = parse_uuid(budget_id, "budget")
    try:
        BudgetService(db).delete(budget_uuid)
        db.commit()
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Budget not found")
    return Response(status_code=204)
