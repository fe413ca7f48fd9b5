"""/api/profile - the financial profile singleton"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from financial_guru.api.routes.schemas import IncomeResponse, ProfileResponse, ProfileUpdate
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.profile import ProfileService

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
def get_profile(db: Session = Depends(get_db)):
    profile = ProfileService(db).get()
    db.commit()
    return profile


@router.put("/profile", response_model=ProfileResponse)
def update_profile(body: ProfileUpdate, db: Session = Depends(get_db)):
    profile = ProfileService(db).update(body.model_dump(exclude_unset=True))
    db.commit()
    return profile


@router.post("/profile/detect-income", response_model=IncomeResponse)
def detect_income(db: Session = Depends(get_db)):
    """Median monthly total of large checking deposits over the last three months"""
    detected = ProfileService(db).detect_and_store_income()
    db.commit()
    return IncomeResponse(monthly_income=detected)
