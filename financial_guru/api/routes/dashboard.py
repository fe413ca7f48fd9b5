"""/api/dashboard - the home page aggregate"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from financial_guru.api.routes.schemas import DashboardResponse, to_account_response, to_alert_response
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.dashboard import DashboardService

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(db: Session = Depends(get_db)):
    """
    Balances, spending trends, upcoming payments and wealth KPIs.

    Every figure is computed server-side; the client only renders.
    """
    dashboard = DashboardService(db).build()
    response = DashboardResponse.model_validate(
        {
            **{k: v for k, v in vars(dashboard).items() if k not in ("accounts", "recent_alerts")},
            "accounts": [to_account_response(a) for a in dashboard.accounts],
            "recent_alerts": [to_alert_response(a) for a in dashboard.recent_alerts],
        }
    )
    return response
