"""/api/statements - upload, background parsing and statement lifecycle"""

import logging
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Request, Response, UploadFile
from sqlalchemy.orm import Session, sessionmaker

from financial_guru.api.dependencies import get_request_id, parse_uuid
from financial_guru.api.routes.schemas import RawTextResponse, StatementResponse
from financial_guru.domain.exceptions import InvalidStateError, NotFoundError, StatementParseError
from financial_guru.infrastructure.database.session import get_db, get_session_factory
from financial_guru.services.statements import StatementService, process_statement_job

router = APIRouter()


@router.post("/statements/upload", response_model=StatementResponse, status_code=201)
async def upload_statement(
    request: Request,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    account_id: Optional[str] = Form(None, alias="accountId"),
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    """
    Accept a statement PDF and parse it in the background.

    Flow:
    1. Store the bytes under the upload directory
    2. Create a PENDING statement
    3. Schedule processing with its own session
    4. Return the statement; clients poll GET /statements for the outcome
    """
    request_id = get_request_id(request)
    account_uuid = parse_uuid(account_id, "account") if account_id else None
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    try:
        statement = StatementService(db).upload(file.filename, content, account_uuid)
        db.commit()
        background_tasks.add_task(process_statement_job, session_factory, statement.id)
        logging.info(
            f"Statement uploaded: {statement.file_name}",
            extra={"request_id": request_id, "statement_id": str(statement.id)},
        )
        return statement
    except Exception as e:
        db.rollback()
        logging.error(f"Statement upload failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/statements", response_model=List[StatementResponse])
def list_statements(db: Session = Depends(get_db)):
    return StatementService(db).list_all()


@router.get("/statements/{statement_id}", response_model=StatementResponse)
def get_statement(statement_id: str, db: Session = Depends(get_db)):
    statement_uuid = parse_uuid(statement_id, "statement")
    try:
        return StatementService(db).get(statement_uuid)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Statement not found")


@router.post("/statements/{statement_id}/reprocess", response_model=StatementResponse, status_code=202)
def reprocess_statement(
    statement_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    """Re-parse a COMPLETED or FAILED statement from scratch"""
    statement_uuid = parse_uuid(statement_id, "statement")
    request_id = get_request_id(request)
    try:
        statement = StatementService(db).reprocess(statement_uuid)
        db.commit()
        background_tasks.add_task(process_statement_job, session_factory, statement.id)
        return statement
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Statement not found")
    except InvalidStateError as e:
        db.rollback()
        logging.warning(f"Reprocess rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/statements/{statement_id}", status_code=204)
def delete_statement(statement_id: str, request: Request, db: Session = Depends(get_db)):
    statement_uuid = parse_uuid(statement_id, "statement")
    try:
        StatementService(db).delete(statement_uuid)
        db.commit()
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Statement not found")
    except Exception as e:
        db.rollback()
        logging.error(f"Statement delete failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(status_code=204)


@router.put("/statements/{statement_id}/assign-account/{account_id}", response_model=StatementResponse)
def assign_account(statement_id: str, account_id: str, db: Session = Depends(get_db)):
    statement_uuid = parse_uuid(statement_id, "statement")
    account_uuid = parse_uuid(account_id, "account")
    try:
        statement = StatementService(db).assign_account(statement_uuid, account_uuid)
        db.commit()
        return statement
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=f"{e.entity} not found")


@router.get("/statements/{statement_id}/raw-text", response_model=RawTextResponse)
def raw_text(statement_id: str, db: Session = Depends(get_db)):
    """Extracted text of the stored PDF, for debugging parsers"""
    statement_uuid = parse_uuid(statement_id, "statement")
    try:
        return StatementService(db).raw_text(statement_uuid)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=f"{e.entity} not found")
    except StatementParseError as e:
        raise HTTPException(status_code=422, detail=str(e))
