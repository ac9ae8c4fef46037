# mediconnect/services/patient_service.py
import logging
import random
from typing import List

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mediconnect.errors import ConstraintViolation, NotFound
from mediconnect.models.clinical import ClinicalAction, ClinicalVisit, Patient
from mediconnect.models.clinical_models import PatientCreate, PatientUpdate

logger = logging.getLogger(__name__)

UNIQUE_ID_ATTEMPTS = 5


def generate_unique_id() -> str:
    return f"PAT-{random.randint(100000, 999999)}"


def get_patient(db: Session, patient_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if patient is None:
        raise NotFound(f"Patient {patient_id} not found", field="id")
    return patient


def list_patients(db: Session) -> List[Patient]:
    return db.query(Patient).order_by(Patient.id.desc()).all()


def search_patients(db: Session, query: str) -> List[Patient]:
    """Exact unique_id match, or substring match on name / unique_id."""
    if not query:
        return []
    # % and _ in the query are literal characters, not wildcards
    return (
        db.query(Patient)
        .filter(or_(
            Patient.unique_id == query,
            Patient.name.icontains(query, autoescape=True),
            Patient.unique_id.icontains(query, autoescape=True),
        ))
        .order_by(Patient.id.desc())
        .all()
    )


def create_patient(db: Session, data: PatientCreate) -> Patient:
    for _ in range(UNIQUE_ID_ATTEMPTS):
        unique_id = generate_unique_id()
        if db.query(Patient.id).filter(Patient.unique_id == unique_id).first() is not None:
            continue

        patient = Patient(unique_id=unique_id, **data.model_dump())
        db.add(patient)
        try:
            db.commit()
        except IntegrityError:
            # another request registered the same id after the lookup above
            db.rollback()
            logger.warning(f"Patient id {unique_id} was taken concurrently, regenerating")
            continue

        db.refresh(patient)
        logger.info(f"Registered patient {patient.unique_id} (id {patient.id})")
        return patient

    raise ConstraintViolation("Could not allocate a unique patient id", field="unique_id")


def update_patient(db: Session, patient_id: int, data: PatientUpdate) -> Patient:
    patient = get_patient(db, patient_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(patient, field, value)
    db.commit()
    db.refresh(patient)
    return patient


def delete_patient(db: Session, patient_id: int):
    """Remove a patient with all of its visits and actions as one transaction.

    Actions are deleted first (by patient and by any of the patient's visits),
    then visits, then the patient row, so foreign keys never dangle.
    """
    patient = get_patient(db, patient_id)
    visit_ids = select(ClinicalVisit.id).where(ClinicalVisit.patient_id == patient_id)
    try:
        removed_actions = (
            db.query(ClinicalAction)
            .filter(or_(ClinicalAction.patient_id == patient_id, ClinicalAction.visit_id.in_(visit_ids)))
            .delete(synchronize_session=False)
        )
        removed_visits = (
            db.query(ClinicalVisit)
            .filter(ClinicalVisit.patient_id == patient_id)
            .delete(synchronize_session=False)
        )
        db.delete(patient)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Rolled back deletion of patient {patient_id}")
        raise
    logger.info(f"Deleted patient {patient_id} with {removed_visits} visits and {removed_actions} actions")
