"""/api/subscriptions - detected recurring charges"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from financial_guru.api.dependencies import get_request_id, parse_uuid
from financial_guru.api.routes.schemas import DetectResponse, SubscriptionResponse, SubscriptionUpdate
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.subscriptions import SubscriptionService

router = APIRouter()


@router.get("/subscriptions", response_model=List[SubscriptionResponse])
def list_subscriptions(db: Session = Depends(get_db)):
    """Active subscriptions, most expensive first"""
    return SubscriptionService(db).list_active()


@router.get("/subscriptions/duplicates", response_model=List[SubscriptionResponse])
def list_duplicates(db: Session = Depends(get_db)):
    return SubscriptionService(db).list_duplicates()


@router.post("/subscriptions/detect", response_model=DetectResponse)
def detect_subscriptions(request: Request, db: Session = Depends(get_db)):
    """Wipe and rescan every account"""
    request_id = get_request_id(request)
    try:
        detected = SubscriptionService(db).detect_all()
        db.commit()
        logging.info(f"Detected {detected} subscriptions", extra={"request_id": request_id})
        return DetectResponse(detected=detected)
    except Exception as e:
        db.rollback()
        logging.error(f"Subscription detection failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.put("/subscriptions/{subscription_id}", response_model=SubscriptionResponse)
def update_subscription(subscription_id: str, body: SubscriptionUpdate, db: Session = Depends(get_db)):
    subscription_uuid = parse_uuid(subscription_id, "subscription")
    try:
        subscription = SubscriptionService(db).update(subscription_uuid, notes=body.notes, is_active=body.is_active)
        db.commit()
        return subscription
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Subscription not found")
