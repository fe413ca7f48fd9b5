"""/api/accounts - account CRUD, transactions and balance history"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from financial_guru.api.dependencies import check_page, check_page_in_range, get_request_id, parse_uuid
from financial_guru.api.routes.schemas import (
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    BalanceSnapshotResponse,
    Page,
    TransactionResponse,
    page_of,
    to_account_response,
    to_transaction_response,
)
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.accounts import AccountService

router = APIRouter()


@router.get("/accounts", response_model=List[AccountResponse])
def list_accounts(db: Session = Depends(get_db)):
    """Active accounts, newest first"""
    return [to_account_response(a) for a in AccountService(db).list_active()]


@router.post("/accounts", response_model=AccountResponse, status_code=201)
def create_account(body: AccountCreate, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    try:
        account = AccountService(db).create(body.model_dump())
        db.commit()
        logging.info(f"Account created: {account.name}", extra={"request_id": request_id, "account_id": str(account.id)})
        return to_account_response(account)
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/accounts/capture-balances", status_code=204)
def capture_balances(request: Request, db: Session = Depends(get_db)):
    """Snapshot today's balance of every active account"""
    request_id = get_request_id(request)
    try:
        AccountService(db).capture_balances()
        db.commit()
    except Exception as e:
        db.rollback()
        logging.error(f"Balance capture failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(status_code=204)


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(account_id: str, db: Session = Depends(get_db)):
    account_uuid = parse_uuid(account_id, "account")
    try:
        return to_account_response(AccountService(db).get(account_uuid))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Account not found")


@router.put("/accounts/{account_id}", response_model=AccountResponse)
def update_account(account_id: str, body: AccountUpdate, request: Request, db: Session = Depends(get_db)):
    """Partial update of the fields present in the body"""
    account_uuid = parse_uuid(account_id, "account")
    request_id = get_request_id(request)
    try:
        account = AccountService(db).update(account_uuid, body.model_dump(exclude_unset=True))
        db.commit()
        return to_account_response(account)
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Account not found")
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/accounts/{account_id}", status_code=204)
def delete_account(account_id: str, db: Session = Depends(get_db)):
    """Soft delete: the account is deactivated"""
    account_uuid = parse_uuid(account_id, "account")
    try:
        AccountService(db).deactivate(account_uuid)
        db.commit()
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Account not found")
    return Response(status_code=204)


@router.get("/accounts/{account_id}/transactions", response_model=Page[TransactionResponse])
def account_transactions(account_id: str, page: int = 0, size: int = 50, db: Session = Depends(get_db)):
    account_uuid = parse_uuid(account_id, "account")
    check_page(page, size)
    try:
        items, total = AccountService(db).transactions_page(account_uuid, page, size)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Account not found")
    check_page_in_range(page, size, total)
    return page_of(items, total, page, size, to_transaction_response)


@router.get("/accounts/{account_id}/balance-history", response_model=List[BalanceSnapshotResponse])
def balance_history(account_id: str, days: int = 90, db: Session = Depends(get_db)):
    account_uuid = parse_uuid(account_id, "account")
    return AccountService(db).balance_history(account_uuid, days)
