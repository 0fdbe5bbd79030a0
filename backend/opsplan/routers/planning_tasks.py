"""
Planning Tasks Router — runs one task synchronously through the shared runner.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from opsplan.database import get_db
from opsplan.schemas.planning_task import PlanningTaskRequest, PlanningTaskResult
from opsplan.services.planning_task_service import run_planning_task

router = APIRouter(prefix="/planning-tasks", tags=["Planning Tasks"])


@router.post("/run", response_model=PlanningTaskResult)
def run_task(payload: PlanningTaskRequest, db: Session = Depends(get_db)):
    return run_planning_task(db, payload.task)
