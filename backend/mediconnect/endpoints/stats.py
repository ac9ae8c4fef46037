# mediconnect/endpoints/stats.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mediconnect.database import get_db
from mediconnect.models.clinical_models import StatsOut
from mediconnect.services.stats_service import get_stats

router = APIRouter(tags=["Stats"])


@router.get("/stats", response_model=StatsOut)
def stats(db: Session = Depends(get_db)):
    return get_stats(db)
