"""/api/analysis - LLM review of a parsed statement"""

import logging
from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.orm import Session, sessionmaker

from financial_guru.api.dependencies import get_ollama_client, get_request_id, parse_uuid
from financial_guru.api.routes.schemas import AnalysisResultResponse, AnalysisStartedResponse
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.infrastructure.clients.ollama import OllamaClient
from financial_guru.infrastructure.database.session import get_db, get_session_factory
from financial_guru.services.analysis import AnalysisService, run_analysis_job

router = APIRouter()


@router.post("/analysis/run/{statement_id}", response_model=AnalysisStartedResponse, status_code=202)
def run_analysis(
    statement_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    ollama: OllamaClient = Depends(get_ollama_client),
):
    """Start categorization, anomaly review and summary in the background"""
    statement_uuid = parse_uuid(statement_id, "statement")
    try:
        AnalysisService(db, ollama).ensure_statement(statement_uuid)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Statement not found")

    background_tasks.add_task(run_analysis_job, session_factory, ollama, statement_uuid)
    logging.info(
        f"AI analysis scheduled for statement {statement_uuid}",
        extra={"request_id": get_request_id(request), "statement_id": str(statement_uuid)},
    )
    return AnalysisStartedResponse(status="STARTED", message="AI analysis started. Results will be available shortly.")


@router.get("/analysis/{statement_id}", response_model=List[AnalysisResultResponse])
def analysis_results(
    statement_id: str,
    db: Session = Depends(get_db),
    ollama: OllamaClient = Depends(get_ollama_client),
):
    """Results for a statement, newest first"""
    statement_uuid = parse_uuid(statement_id, "statement")
    return AnalysisService(db, ollama).results_for(statement_uuid)
