"""/api/networth - net worth aggregate, history and manual assets"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from financial_guru.api.dependencies import parse_uuid
from financial_guru.api.routes.schemas import (
    AssetRequest,
    AssetResponse,
    AssetUpdate,
    NetWorthResponse,
    NetWorthSnapshotResponse,
)
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.networth import NetWorthService

router = APIRouter()


@router.get("/networth", response_model=NetWorthResponse)
def current_net_worth(db: Session = Depends(get_db)):
    return NetWorthService(db).current()


@router.get("/networth/history", response_model=List[NetWorthSnapshotResponse])
def net_worth_history(db: Session = Depends(get_db)):
    """Up to twelve latest snapshots, oldest first"""
    return NetWorthService(db).history()


@router.post("/networth/snapshot", response_model=NetWorthSnapshotResponse)
def capture_snapshot(db: Session = Depends(get_db)):
    snapshot = NetWorthService(db).capture_snapshot()
    db.commit()
    return snapshot


@router.get("/networth/assets", response_model=List[AssetResponse])
def list_assets(db: Session = Depends(get_db)):
    return NetWorthService(db).list_assets()


@router.post("/networth/assets", response_model=AssetResponse, status_code=201)
def add_asset(body: AssetRequest, db: Session = Depends(get_db)):
    try:
        asset = NetWorthService(db).add_asset(body.name, body.asset_type, body.asset_class, body.current_value, body.notes)
        db.commit()
        return asset
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/networth/assets/{asset_id}", response_model=AssetResponse)
def update_asset(asset_id: str, body: AssetUpdate, db: Session = Depends(get_db)):
    asset_uuid = parse_uuid(asset_id, "asset")
    try:
        asset = NetWorthService(db).update_asset(asset_uuid, body.model_dump(exclude_unset=True))
        db.commit()
        return asset
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Asset not found")
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/networth/assets/{asset_id}", status_code=204)
def delete_asset(asset_id: str, db: Session = Depends(get_db)):
    asset_uuid = parse_uuid(asset_id, "asset")
    try:
        NetWorthService(db).delete_asset(asset_uuid)
        db.commit()
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Asset not found")
    return Response(status_code=204)
