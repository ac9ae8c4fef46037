# mediconnect/services/department_router.py
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy.orm import Session, aliased

from mediconnect.models.clinical import ClinicalAction, Organization, Patient, User
from mediconnect.models.clinical_models import QueueItem

# Which action types each department works. `transfer` lands on the nurse desk.
QUEUE_ROUTES: Dict[str, FrozenSet[str]] = {
    "pharmacy": frozenset({"prescription"}),
    "diagnostic": frozenset({"lab_test", "radiology"}),
    "nurse": frozenset({"observation", "procedure", "transfer"}),
}


def action_types_for(role: str) -> FrozenSet[str]:
    return QUEUE_ROUTES.get(role, frozenset())


def _queue_item(action: ClinicalAction, patient_name, unique_id, author_name, org_name) -> QueueItem:
    return QueueItem(
        id=action.id,
        patient_id=action.patient_id,
        visit_id=action.visit_id,
        type=action.type,
        status=action.status,
        description=action.description,
        payload=action.payload,
        created_at=action.created_at,
        updated_at=action.updated_at,
        completed_at=action.completed_at,
        notes=action.notes,
        patient_name=patient_name or "Unknown",
        unique_id=unique_id or "N/A",
        author_name=author_name or "Unknown",
        org_name=org_name or "Unknown",
    )


def enriched_actions(db: Session, *criteria) -> List[QueueItem]:
    """Actions matching ``criteria``, newest first, joined with display names."""
    author = aliased(User)
    origin = aliased(Organization)
    rows = (
        db.query(ClinicalAction, Patient.name, Patient.unique_id, author.name, origin.name)
        .outerjoin(Patient, ClinicalAction.patient_id == Patient.id)
        .outerjoin(author, ClinicalAction.author_id == author.id)
        .outerjoin(origin, ClinicalAction.from_organization_id == origin.id)
        .filter(*criteria)
        .order_by(ClinicalAction.created_at.desc(), ClinicalAction.id.desc())
        .all()
    )
    return [_queue_item(*row) for row in rows]


def get_queue(db: Session, role: str, status: Optional[str] = None) -> List[QueueItem]:
    action_types = action_types_for(role)
    if not action_types:
        return []
    criteria = [ClinicalAction.type.in_(sorted(action_types))]
    if status is not None:
        criteria.append(ClinicalAction.status == status)
    return enriched_actions(db, *criteria)


def is_incoming_transfer(item: QueueItem, organization_id: int) -> bool:
    return (
        item.type == "transfer"
        and item.payload is not None
        and item.payload.target_org_id == organization_id
        and item.status != "completed"
    )


def incoming_transfers(db: Session, organization_id: int) -> List[QueueItem]:
    return [item for item in get_queue(db, "nurse") if is_incoming_transfer(item, organization_id)]
