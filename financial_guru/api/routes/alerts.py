"""/api/alerts and /api/alert-rules"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from financial_guru.api.dependencies import get_request_id, parse_uuid
from financial_guru.api.routes.schemas import (
    AlertResponse,
    AlertRuleRequest,
    AlertRuleResponse,
    AlertRuleUpdate,
    CountResponse,
    to_alert_response,
)
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.alerts import AlertRuleService, AlertService

router = APIRouter()


@router.get("/alerts", response_model=List[AlertResponse])
def list_alerts(db: Session = Depends(get_db)):
    """Unresolved alerts, newest first"""
    return [to_alert_response(a) for a in AlertService(db).list_unresolved()]


@router.get("/alerts/unread-count", response_model=CountResponse)
def unread_count(db: Session = Depends(get_db)):
    return CountResponse(count=AlertService(db).unread_count())


@router.put("/alerts/{alert_id}/read", response_model=AlertResponse)
def mark_read(alert_id: str, db: Session = Depends(get_db)):
    alert_uuid = parse_uuid(alert_id, "alert")
    try:
        alert = AlertService(db).mark_read(alert_uuid)
        db.commit()
        return to_alert_response(alert)
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Alert not found")


@router.put("/alerts/{alert_id}/resolve", response_model=AlertResponse)
def resolve(alert_id: str, db: Session = Depends(get_db)):
    alert_uuid = parse_uuid(alert_id, "alert")
    try:
        alert = AlertService(db).resolve(alert_uuid)
        db.commit()
        return to_alert_response(alert)
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Alert not found")


@router.delete("/alerts/{alert_id}", status_code=204)
def delete_alert(alert_id: str, db: Session = Depends(get_db)):
    alert_uuid = parse_uuid(alert_id, "alert")
    try:
        AlertService(db).delete(alert_uuid)
        db.commit()
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Alert not found")
    return Response(status_code=204)


@router.get("/alert-rules", response_model=List[AlertRuleResponse])
def list_rules(db: Session = Depends(get_db)):
    return AlertRuleService(db).list_active()


@router.post("/alert-rules", response_model=AlertRuleResponse, status_code=201)
def create_rule(body: AlertRuleRequest, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    try:
        rule = AlertRuleService(db).create(
            name=body.name,
            rule_type=body.rule_type,
            threshold_amount=body.threshold_amount,
            condition_operator=body.condition_operator,
            category=body.category,
            account_id=body.account_id,
        )
        db.commit()
        logging.info(f"Alert rule created: {rule.name}", extra={"request_id": request_id})
        return rule
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/alert-rules/{rule_id}", response_model=AlertRuleResponse)
def update_rule(rule_id: str, body: AlertRuleUpdate, db: Session = Depends(get_db)):
    rule_uuid = parse_uuid(rule_id, "alert rule")
    try:
        rule = AlertRuleService(db).update(rule_uuid, body.model_dump(exclude_unset=True))
        db.commit()
        return rule
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Alert rule not found")


@router.delete("/alert-rules/{rule_id}", status_code=204)
def delete_rule(rule_id: str, db: Session = Depends(get_db)):
    rule_uuid = parse_uuid(rule_id, "alert rule")
    try:
        AlertRuleService(db).delete(rule_uuid)
        db.commit()
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Alert rule not found")
    return Response(status_code=204)
