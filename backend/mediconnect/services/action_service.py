# mediconnect/services/action_service.py
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from mediconnect.errors import NotFound, ValidationFailure, ConstraintViolation, InvalidTransition
from mediconnect.models.clinical import (
    ClinicalAction, ClinicalVisit, Organization, Patient, User, utcnow,
)
from mediconnect.models.clinical_models import (
    ActionCreate, ActionTransition, TransferCreate, TransferPayload,
)

logger = logging.getLogger(__name__)

# ------------------------------- State machine -------------------------------
# Re-posting a non-terminal status is accepted so notes can be updated in place.
ALLOWED_TRANSITIONS = {
    "pending": {"pending", "in_progress", "completed", "cancelled"},
    "in_progress": {"in_progress", "completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


# ------------------------------- Helpers -------------------------------
def _require(db: Session, model, pk: Optional[int], field: str):
    row = db.get(model, pk) if pk is not None else None
    if row is None:
        raise NotFound(f"{model.__name__} {pk} not found", field=field)
    return row


def _commit(db: Session, action: ClinicalAction):
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.error(f"Concurrent update rejected for action {action.id}")
        raise ConstraintViolation("Action was modified by another request; reload and retry")
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error while saving action: {e.orig}")
        raise ConstraintViolation("Action violates a store constraint")
    db.refresh(action)
    return action


def _check_payload(db: Session, action_type: str, payload: Optional[TransferPayload]):
    if action_type == "transfer":
        if payload is None:
            raise ValidationFailure("Transfer actions require a target organization", field="target_org_id")
        _require(db, Organization, payload.target_org_id, "target_org_id")
    elif payload is not None:
        raise ValidationFailure(
            f"Payload of kind '{payload.kind}' is not valid for {action_type} actions", field="payload"
        )


# ------------------------------- Operations -------------------------------
def get_action(db: Session, action_id: int) -> ClinicalAction:
    return _require(db, ClinicalAction, action_id, "id")


def create_action(db: Session, data: ActionCreate) -> ClinicalAction:
    """Persist a new order in ``pending`` state after validating its references."""
    _require(db, Patient, data.patient_id, "patient_id")
    _require(db, User, data.author_id, "author_id")
    _require(db, Organization, data.from_organization_id, "from_organization_id")
    if data.visit_id is not None:
        visit = _require(db, ClinicalVisit, data.visit_id, "visit_id")
        if visit.patient_id != data.patient_id:
            raise ValidationFailure("Visit belongs to a different patient", field="visit_id")
    _check_payload(db, data.type, data.payload)

    now = utcnow()
    action = ClinicalAction(
        patient_id=data.patient_id,
        visit_id=data.visit_id,
        author_id=data.author_id,
        from_organization_id=data.from_organization_id,
        type=data.type,
        status="pending",
        description=data.description,
        payload=data.payload.model_dump() if data.payload else None,
        created_at=now,
        updated_at=now,
        completed_at=None,
    )
    db.add(action)
    _commit(db, action)
    logger.info(f"Created {action.type} action {action.id} for patient {action.patient_id}")
    return action


def create_transfer(db: Session, data: TransferCreate) -> ClinicalAction:
    """Create an organization-to-organization transfer, which is never bound to a visit."""
    if data.target_org_id is None:
        raise ValidationFailure("target_org_id is required", field="target_org_id")
    if data.target_org_id == data.from_organization_id:
        raise ValidationFailure("Cannot transfer a patient to the originating organization", field="target_org_id")
    target = _require(db, Organization, data.target_org_id, "target_org_id")

    return create_action(db, ActionCreate(
        patient_id=data.patient_id,
        author_id=data.author_id,
        from_organization_id=data.from_organization_id,
        type="transfer",
        description=data.description or f"Transfer to {target.name}",
        visit_id=None,
        payload=TransferPayload(target_org_id=target.id),
    ))


def transition_action(db: Session, action_id: int, data: ActionTransition) -> ClinicalAction:
    action = get_action(db, action_id)

    if not can_transition(action.status, data.status):
        raise InvalidTransition(f"Cannot move action {action_id} from {action.status} to {data.status}", field="status")

    if data.status == "completed":
        if data.completed_by is None:
            raise ValidationFailure("completed_by is required to complete an action", field="completed_by")
        if data.completed_by_organization_id is None:
            raise ValidationFailure(
                "completed_by_organization_id is required to complete an action",
                field="completed_by_organization_id",
            )
        _require(db, User, data.completed_by, "completed_by")
        _require(db, Organization, data.completed_by_organization_id, "completed_by_organization_id")

    now = utcnow()
    previous = action.status
    action.status = data.status
    if data.notes is not None:
        action.notes = data.notes
    action.updated_at = now
    if data.status == "completed":
        action.completed_at = now
        action.completed_by = data.completed_by
        action.completed_by_organization_id = data.completed_by_organization_id
    else:
        action.completed_at = None

    _commit(db, action)
    logger.info(f"Action {action.id}: {previous} -> {action.status}")
    return action
