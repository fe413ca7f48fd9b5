"""/api/digest - weekly spending summary"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from financial_guru.api.routes.schemas import DigestResponse, to_budget_response
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.digest import DigestService

router = APIRouter()


@router.get("/digest", response_model=DigestResponse)
def weekly_digest(db: Session = Depends(get_db)):
    digest = DigestService(db).weekly()
    return DigestResponse(
        week_start=digest.week_start,
        week_end=digest.week_end,
        total_spend=digest.total_spend,
        prior_week_spend=digest.prior_week_spend,
        spending_change_percent=digest.spending_change_percent,
        top_transactions=digest.top_transactions,
        budget_statuses=[to_budget_response(b, s) for b, s in digest.budget_statuses],
        upcoming_payments=digest.upcoming_payments,
        category_breakdown=digest.category_breakdown,
        unread_insight_count=digest.unread_insight_count,
    )
