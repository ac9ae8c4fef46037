# mediconnect/endpoints/transfers.py
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from mediconnect.database import get_db
from mediconnect.models.clinical_models import ActionOut, QueueItem, TransferCreate
from mediconnect.services import action_service, department_router
from mediconnect.services.notifier import NEW_ACTION, ConnectionRegistry, event, get_notifier

router = APIRouter(prefix="/transfers", tags=["Transfers"])


@router.post("", response_model=ActionOut)
def create_transfer(
    payload: TransferCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: ConnectionRegistry = Depends(get_notifier),
):
    action = ActionOut.model_validate(action_service.create_transfer(db, payload))
    background_tasks.add_task(notifier.broadcast, event(NEW_ACTION, "action", action))
    return action


@router.get("/incoming/{organization_id}", response_model=List[QueueItem])
def incoming_transfers(organization_id: int, db: Session = Depends(get_db)):
    """Open transfers addressed to this organization."""
    return department_router.incoming_transfers(db, organization_id)
