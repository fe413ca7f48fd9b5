"""/api/transactions - filtered listing, edits and flagged charges"""

import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from financial_guru.api.dependencies import check_page, check_page_in_range, get_request_id, parse_uuid
from financial_guru.api.routes.schemas import (
    CategoryAssignment,
    Page,
    TransactionResponse,
    TransactionUpdate,
    page_of,
    to_transaction_response,
)
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.transactions import TransactionService

router = APIRouter()


@router.get("/transactions", response_model=Page[TransactionResponse])
def list_transactions(
    accountId: Optional[str] = None,
    category: Optional[str] = None,
    startDate: Optional[date] = None,
    endDate: Optional[date] = None,
    minAmount: Optional[float] = None,
    maxAmount: Optional[float] = None,
    search: Optional[str] = None,
    page: int = 0,
    size: int = 50,
    db: Session = Depends(get_db),
):
    """Every given filter ANDed; newest first"""
    check_page(page, size)
    items, total = TransactionService(db).search(
        page,
        size,
        account_id=parse_uuid(accountId, "account") if accountId else None,
        category=category,
        start_date=startDate,
        end_date=endDate,
        min_amount=minAmount,
        max_amount=maxAmount,
        search=search,
    )
    check_page_in_range(page, size, total)
    return page_of(items, total, page, size, to_transaction_response)


@router.get("/transactions/search", response_model=Page[TransactionResponse])
def search_transactions(q: str = "", page: int = 0, size: int = 50, db: Session = Depends(get_db)):
    check_page(page, size)
    items, total = TransactionService(db).search(page, size, search=q.strip() or None)
    check_page_in_range(page, size, total)
    return page_of(items, total, page, size, to_transaction_response)


@router.get("/transactions/anomalies", response_model=List[TransactionResponse])
def flagged_transactions(db: Session = Depends(get_db)):
    return [to_transaction_response(t) for t in TransactionService(db).anomalies()]


@router.post("/transactions/bulk-categorize", status_code=204)
def bulk_categorize(body: List[CategoryAssignment], request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    try:
        updated = TransactionService(db).bulk_categorize({item.id: item.category for item in body})
        db.commit()
        logging.info(f"Bulk categorized {updated} transactions", extra={"request_id": request_id})
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(status_code=204)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: str, db: Session = Depends(get_db)):
    transaction_uuid = parse_uuid(transaction_id, "transaction")
    try:
        return to_transaction_response(TransactionService(db).get(transaction_uuid))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Transaction not found")


@router.put("/transactions/{transaction_id}", response_model=TransactionResponse)
def update_transaction(transaction_id: str, body: TransactionUpdate, db: Session = Depends(get_db)):
    """Updates category, notes, isFlagged and flagReason when present"""
    transaction_uuid = parse_uuid(transaction_id, "transaction")
    try:
        txn = TransactionService(db).update(transaction_uuid, body.model_dump(exclude_unset=True))
        db.commit()
        return to_transaction_response(txn)
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Transaction not found")
