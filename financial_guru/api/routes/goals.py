"""/api/goals - savings goals and their progress"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from financial_guru.api.dependencies import parse_uuid
from financial_guru.api.routes.schemas import GoalRequest, GoalResponse, GoalUpdate, ProgressRequest, to_goal_response
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.infrastructure.database.session import get_db
from financial_guru.services.goals import GoalService

router = APIRouter()


@router.get("/goals", response_model=List[GoalResponse])
def list_goals(db: Session = Depends(get_db)):
    return [to_goal_response(goal, progress) for goal, progress in GoalService(db).list_with_progress()]


@router.post("/goals", response_model=GoalResponse, status_code=201)
def create_goal(body: GoalRequest, db: Session = Depends(get_db)):
    service = GoalService(db)
    goal = service.create(body.model_dump())
    db.commit()
    return to_goal_response(goal, service.progress(goal))


@router.put("/goals/{goal_id}", response_model=GoalResponse)
def update_goal(goal_id: str, body: GoalUpdate, db: Session = Depends(get_db)):
    goal_uuid = parse_uuid(goal_id, "goal")
    service = GoalService(db)
    try:
        goal = service.update(goal_uuid, body.model_dump(exclude_unset=True))
        db.commit()
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Goal not found")
    return to_goal_response(goal, service.progress(goal))


@router.post("/goals/{goal_id}/progress", response_model=GoalResponse)
def add_progress(goal_id: str, body: ProgressRequest, db: Session = Depends(get_db)):
    """Add an amount to the goal's current savings"""
    goal_uuid = parse_uuid(goal_id, "goal")
    service = GoalService(db)
    try:
        goal = service.add_progress(goal_uuid, body.amount)
        db.commit()
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Goal not found")
    return to_goal_response(goal, service.progress(goal))


@router.delete("/goals/{goal_id}", status_code=204)
def delete_goal(goal_id: str, db: Session = Depends(get_db)):
    goal_uuid = parse_uuid(goal_id, "goal")
    try:
        GoalService(db).delete(goal_uuid)
        db.commit()
    except NotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Goal not found")
    return Response(status_code=204)
