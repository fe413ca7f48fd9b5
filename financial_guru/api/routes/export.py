"""/api/export - CSV and PDF downloads"""

import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from starlette.responses import Response

from financial_guru.api.dependencies import get_request_id, parse_uuid
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.export import ExportService

router = APIRouter()


@router.get("/export/transactions/csv")
def export_transactions_csv(
    start: date = Query(..., alias="from"),
    end: date = Query(..., alias="to"),
    accountId: Optional[str] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Transactions in [from, to] as an RFC-4180 CSV attachment"""
    if end < start:
        raise HTTPException(status_code=400, detail="'to' must not precede 'from'")
    account_uuid = parse_uuid(accountId, "account") if accountId else None
    content = ExportService(db).transactions_csv(start, end, account_uuid, category)
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=transactions_{start.isoformat()}_to_{end.isoformat()}.csv"
        },
    )


@router.get("/export/monthly-pdf")
def export_monthly_pdf(
    request: Request,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db),
):
    today = date.today()
    year = year or today.year
    month = month or today.month
    try:
        content = ExportService(db).monthly_pdf(year, month, today)
    except Exception as e:
        logging.error(f"Monthly PDF export failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=monthly-summary-{year}-{month}.pdf"},
    )
