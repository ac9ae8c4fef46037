# mediconnect/endpoints/departments.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mediconnect.database import get_db
from mediconnect.models.clinical_models import ActionStatus, QueueItem
from mediconnect.services.department_router import get_queue

router = APIRouter(prefix="/departments", tags=["Departments"])


@router.get("/{role}/queue", response_model=List[QueueItem])
def department_queue(role: str, status: Optional[ActionStatus] = None, db: Session = Depends(get_db)):
    """
    Actions routed to a department (pharmacy, diagnostic, nurse), newest first.
    Unknown roles get an empty queue.
    """
    return get_queue(db, role, status=status)
