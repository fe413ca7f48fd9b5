"""/api/insights - insight engine results and analytical calculators"""

import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from financial_guru.api.dependencies import get_ollama_client, get_request_id, parse_uuid
from financial_guru.api.routes.schemas import (
    AnnualReviewResponse,
    CashFlowResponse,
    CountResponse,
    CreditScoreResponse,
    DebtPayoffResponse,
    DuplicateGroupResponse,
    FireResponse,
    HealthScoreResponse,
    InsightResponse,
    MerchantTrendResponse,
    SpendingHeatmapResponse,
    WhatIfRow,
    to_merchant_trend_response,
    to_transaction_response,
)
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.infrastructure.clients.ollama import OllamaClient
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.analytics import AnalyticsService
from financial_guru.services.annual_review import AnnualReviewService
from financial_guru.services.insights import InsightService

router = APIRouter()


@router.get("/insights", response_model=List[InsightResponse])
def list_insights(db: Session = Depends(get_db)):
    """Insights not dismissed, newest first"""
    return InsightService(db).list_active()


@router.post("/insights/run", response_model=CountResponse)
def run_insights(request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    try:
        created = InsightService(db).run_all()
        db.commit()
        return CountResponse(count=len(created))
    except Exception as e:
        db.rollback()
        logging.error(f"Insight engine failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/insights/{insight_id}/dismiss", response_model=InsightResponse)
def dismiss_insight(insight_id: str, db: Session = Depends(get_db)):
    insight_uuid = parse_uuid(insight_id, "insight")
    try:
        insight = InsightService(db).dismiss(insight_uuid)
        db.commit()
        return insight
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Insight not found")


@router.get("/insights/debt-payoff", response_model=DebtPayoffResponse)
def debt_payoff(extra: float = Query(0.0, ge=0), db: Session = Depends(get_db)):
    """Avalanche and snowball schedules for all card balances"""
    return AnalyticsService(db).debt_payoff(extra)


@router.get("/insights/debt-payoff/what-if", response_model=List[WhatIfRow])
def debt_payoff_what_if(db: Session = Depends(get_db)):
    return AnalyticsService(db).debt_what_if()


@router.get("/insights/health-score", response_model=HealthScoreResponse)
def health_score(db: Session = Depends(get_db)):
    return AnalyticsService(db).health_score()


@router.get("/insights/cash-flow", response_model=CashFlowResponse)
def cash_flow(
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
):
    today = date.today()
    return AnalyticsService(db).cash_flow(year or today.year, month or today.month)


@router.get("/insights/annual-review", response_model=AnnualReviewResponse)
async def annual_review(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    ollama: OllamaClient = Depends(get_ollama_client),
):
    return await AnnualReviewService(db, ollama).review(year or date.today().year)


@router.get("/insights/spending-heatmap", response_model=SpendingHeatmapResponse)
def spending_heatmap(year: Optional[int] = None, db: Session = Depends(get_db)):
    return AnalyticsService(db).spending_heatmap(year or date.today().year)


@router.get("/insights/merchant-trend", response_model=MerchantTrendResponse)
def merchant_trend(merchant: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return to_merchant_trend_response(AnalyticsService(db).merchant_trend(merchant))


@router.get("/insights/credit-score", response_model=CreditScoreResponse)
def credit_score(db: Session = Depends(get_db)):
    return AnalyticsService(db).credit_score()


@router.get("/insights/fire-calculator", response_model=FireResponse)
def fire_calculator(
    age: Optional[float] = None,
    targetRetirementAge: Optional[float] = None,
    currentInvestments: Optional[float] = None,
    monthlyExpenses: Optional[float] = None,
    db: Session = Depends(get_db),
):
    """Query parameters override the profile"""
    return AnalyticsService(db).fire(age, targetRetirementAge, currentInvestments, monthlyExpenses)


@router.get("/insights/duplicates", response_model=List[DuplicateGroupResponse])
def duplicate_transactions(db: Session = Depends(get_db)):
    return [
        DuplicateGroupResponse(
            merchant_name=group.merchant_name,
            amount=group.amount,
            transactions=[to_transaction_response(t) for t in group.transactions],
            within_days=group.within_days,
        )
        for group in AnalyticsService(db).duplicate_transactions()
    ]
