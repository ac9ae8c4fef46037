# mediconnect/services/stats_service.py
from sqlalchemy import func
from sqlalchemy.orm import Session

from mediconnect.models.clinical import ClinicalAction, ClinicalVisit, Patient
from mediconnect.models.clinical_models import StatsOut


def _count_actions(db: Session, status: str) -> int:
    return db.query(func.count(ClinicalAction.id)).filter(ClinicalAction.status == status).scalar() or 0


def get_stats(db: Session) -> StatsOut:
    return StatsOut(
        total_patients=db.query(func.count(Patient.id)).scalar() or 0,
        total_visits=db.query(func.count(ClinicalVisit.id)).scalar() or 0,
        pending_actions=_count_actions(db, "pending"),
        completed_actions=_count_actions(db, "completed"),
    )
