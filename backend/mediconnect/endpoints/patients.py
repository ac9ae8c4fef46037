# mediconnect/endpoints/patients.py
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from mediconnect.database import get_db
from mediconnect.models.clinical_models import PatientCreate, PatientDetails, PatientOut, PatientUpdate
from mediconnect.services import patient_service, visit_service
from mediconnect.services.notifier import NEW_PATIENT, ConnectionRegistry, event, get_notifier

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("", response_model=List[PatientOut])
def list_patients(db: Session = Depends(get_db)):
    return patient_service.list_patients(db)


@router.post("", response_model=PatientOut)
def create_patient(
    payload: PatientCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: ConnectionRegistry = Depends(get_notifier),
):
    """Nurse check-in registers a patient in the global registry."""
    patient = PatientOut.model_validate(patient_service.create_patient(db, payload))
    background_tasks.add_task(notifier.broadcast, event(NEW_PATIENT, "patient", patient))
    return patient


@router.get("/search", response_model=List[PatientOut])
def search_patients(query: str = "", db: Session = Depends(get_db)):
    return patient_service.search_patients(db, query)


@router.get("/{patient_id}", response_model=PatientOut)
def get_patient(patient_id: int, db: Session = Depends(get_db)):
    return patient_service.get_patient(db, patient_id)


@router.put("/{patient_id}", response_model=PatientOut)
def update_patient(patient_id: int, payload: PatientUpdate, db: Session = Depends(get_db)):
    return patient_service.update_patient(db, patient_id, payload)


@router.delete("/{patient_id}")
def delete_patient(patient_id: int, db: Session = Depends(get_db)):
    patient_service.delete_patient(db, patient_id)
    return {"message": "Patient deleted successfully"}


@router.get("/{patient_id}/details", response_model=PatientDetails)
def patient_details(patient_id: int, db: Session = Depends(get_db)):
    """Visits and actions of one patient for the timeline view."""
    return visit_service.get_patient_details(db, patient_id)
