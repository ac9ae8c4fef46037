# mediconnect/services/visit_service.py
import logging
from typing import List

from sqlalchemy.orm import Session

from mediconnect.errors import NotFound
from mediconnect.models.clinical import ClinicalAction, ClinicalVisit, Organization, Patient, User, utcnow
from mediconnect.models.clinical_models import (
    EmergencyOut, PatientDetails, PatientOut, VisitCreate, VisitDetail, VisitOut, VisitUpdate,
)
from mediconnect.services.department_router import enriched_actions

logger = logging.getLogger(__name__)

EMERGENCY_PRIORITIES = ("emergency", "critical")


def _get_visit(db: Session, visit_id: int) -> ClinicalVisit:
    visit = db.get(ClinicalVisit, visit_id)
    if visit is None:
        raise NotFound(f"Visit {visit_id} not found", field="id")
    return visit


def create_visit(db: Session, data: VisitCreate) -> ClinicalVisit:
    """Check a patient in at an organization."""
    if db.get(Patient, data.patient_id) is None:
        raise NotFound(f"Patient {data.patient_id} not found", field="patient_id")
    if db.get(Organization, data.organization_id) is None:
        raise NotFound(f"Organization {data.organization_id} not found", field="organization_id")
    if data.attended_by is not None and db.get(User, data.attended_by) is None:
        raise NotFound(f"User {data.attended_by} not found", field="attended_by")

    visit = ClinicalVisit(
        patient_id=data.patient_id,
        organization_id=data.organization_id,
        date=utcnow(),
        vitals=data.vitals.model_dump(exclude_none=True) if data.vitals else None,
        symptoms=data.symptoms,
        diagnosis=data.diagnosis,
        priority=data.priority,
        attended_by=data.attended_by,
    )
    db.add(visit)
    db.commit()
    db.refresh(visit)
    logger.info(f"Checked in patient {visit.patient_id} (visit {visit.id}, priority {visit.priority})")
    return visit


def update_visit(db: Session, visit_id: int, data: VisitUpdate) -> ClinicalVisit:
    visit = _get_visit(db, visit_id)
    # only fields present in the request body are touched; a null priority or symptoms keeps the stored value
    for field, value in data.model_dump(exclude_unset=True).items():
        if field in ("priority", "symptoms") and value is None:
            continue
        setattr(visit, field, value)
    db.commit()
    db.refresh(visit)
    logger.info(f"Updated visit {visit.id} (priority {visit.priority})")
    return visit


def get_active_emergencies(db: Session) -> List[EmergencyOut]:
    """Visits flagged emergency/critical across every organization, most recent first.

    Visits whose patient row is gone are skipped by the inner join. A visit stays
    here until someone resets its priority to ``normal``.
    """
    rows = (
        db.query(ClinicalVisit, Patient, User.name)
        .join(Patient, ClinicalVisit.patient_id == Patient.id)
        .outerjoin(User, ClinicalVisit.attended_by == User.id)
        .filter(ClinicalVisit.priority.in_(EMERGENCY_PRIORITIES))
        .order_by(ClinicalVisit.date.desc(), ClinicalVisit.id.desc())
        .all()
    )
    return [
        EmergencyOut(
            visit=VisitOut.model_validate(visit),
            patient=PatientOut.model_validate(patient),
            attended_by=staff_name,
        )
        for visit, patient, staff_name in rows
    ]


def get_patient_details(db: Session, patient_id: int) -> PatientDetails:
    if db.get(Patient, patient_id) is None:
        raise NotFound(f"Patient {patient_id} not found", field="id")

    visit_rows = (
        db.query(ClinicalVisit, Organization.name, User.name)
        .outerjoin(Organization, ClinicalVisit.organization_id == Organization.id)
        .outerjoin(User, ClinicalVisit.attended_by == User.id)
        .filter(ClinicalVisit.patient_id == patient_id)
        .order_by(ClinicalVisit.date.desc(), ClinicalVisit.id.desc())
        .all()
    )
    visits = [
        VisitDetail(visit=VisitOut.model_validate(visit), org_name=org_name, staff_name=staff_name)
        for visit, org_name, staff_name in visit_rows
    ]
    actions = enriched_actions(db, ClinicalAction.patient_id == patient_id)
    return PatientDetails(visits=visits, actions=actions)
