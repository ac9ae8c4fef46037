# mediconnect/endpoints/actions.py
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from mediconnect.database import get_db
from mediconnect.models.clinical_models import ActionCreate, ActionOut, ActionTransition
from mediconnect.services import action_service
from mediconnect.services.notifier import (
    NEW_ACTION, UPDATE_ACTION, ConnectionRegistry, event, get_notifier,
)

router = APIRouter(prefix="/actions", tags=["Actions"])


@router.post("", response_model=ActionOut)
def create_action(
    payload: ActionCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: ConnectionRegistry = Depends(get_notifier),
):
    """Doctor orders a prescription, lab test, procedure, ..."""
    action = ActionOut.model_validate(action_service.create_action(db, payload))
    background_tasks.add_task(notifier.broadcast, event(NEW_ACTION, "action", action))
    return action


@router.get("/{action_id}", response_model=ActionOut)
def get_action(action_id: int, db: Session = Depends(get_db)):
    return action_service.get_action(db, action_id)


@router.patch("/{action_id}", response_model=ActionOut)
def transition_action(
    action_id: int,
    payload: ActionTransition,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: ConnectionRegistry = Depends(get_notifier),
):
    """Department moves an order along pending -> in_progress -> completed/cancelled."""
    action = ActionOut.model_validate(action_service.transition_action(db, action_id, payload))
    background_tasks.add_task(notifier.broadcast, event(UPDATE_ACTION, "action", action))
    return action
