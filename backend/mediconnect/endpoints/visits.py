# mediconnect/endpoints/visits.py
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from mediconnect.database import get_db
from mediconnect.models.clinical_models import EmergencyOut, VisitCreate, VisitOut, VisitUpdate
from mediconnect.services import visit_service
from mediconnect.services.notifier import UPDATE_VISIT, ConnectionRegistry, event, get_notifier

router = APIRouter(prefix="/visits", tags=["Visits"])


@router.post("", response_model=VisitOut)
def create_visit(payload: VisitCreate, db: Session = Depends(get_db)):
    return visit_service.create_visit(db, payload)


@router.get("/active-emergencies", response_model=List[EmergencyOut])
def active_emergencies(db: Session = Depends(get_db)):
    return visit_service.get_active_emergencies(db)


@router.patch("/{visit_id}", response_model=VisitOut)
def update_visit(
    visit_id: int,
    payload: VisitUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: ConnectionRegistry = Depends(get_notifier),
):
    visit = VisitOut.model_validate(visit_service.update_visit(db, visit_id, payload))
    background_tasks.add_task(notifier.broadcast, event(UPDATE_VISIT, "visit", visit))
    return visit
