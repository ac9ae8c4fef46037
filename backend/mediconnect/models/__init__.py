# mediconnect/models/__init__.py
from .clinical import Organization, User, Patient, ClinicalVisit, ClinicalAction

__all__ = ["Organization", "User", "Patient", "ClinicalVisit", "ClinicalAction"]
