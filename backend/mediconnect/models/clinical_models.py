# mediconnect/models/clinical_models.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Literal
from datetime import datetime

OrgType = Literal["hospital", "pharmacy", "lab", "platform"]
UserRole = Literal["doctor", "nurse", "pharmacy", "diagnostic", "admin", "super_admin"]
VisitPriority = Literal["normal", "emergency", "critical"]
ActionType = Literal["prescription", "lab_test", "radiology", "procedure", "observation", "transfer"]
ActionStatus = Literal["pending", "in_progress", "completed", "cancelled"]


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ------------------------------- Action payloads -------------------------------
class TransferPayload(BaseModel):
    kind: Literal["transfer"] = "transfer"
    target_org_id: int


# Only transfers carry a payload today; new variants join this union with their own `kind`.
ActionPayload = Optional[TransferPayload]


# ------------------------------- Organizations & staff -------------------------------
class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1)
    type: OrgType
    code: str = Field(min_length=1)
    address: Optional[str] = None


class OrganizationOut(ORMModel):
    id: int
    name: str
    type: str
    code: str
    address: Optional[str] = None


class StaffCreate(BaseModel):
    organization_id: int
    employee_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    role: UserRole
    password: str = Field(min_length=1)


class UserOut(ORMModel):
    id: int
    organization_id: int
    employee_id: str
    name: str
    role: str


class OrganizationRegistered(BaseModel):
    organization: OrganizationOut
    admin: UserOut


class LoginRequest(BaseModel):
    org_code: str
    employee_id: str
    password: str


class LoginResponse(UserOut):
    organization: OrganizationOut


# ------------------------------- Patients -------------------------------
class PatientCreate(BaseModel):
    name: str = Field(min_length=1)
    dob: datetime
    gender: str
    contact: Optional[str] = None
    blood_group: Optional[str] = None


class PatientUpdate(BaseModel):
    name: Optional[str] = None
    dob: Optional[datetime] = None
    gender: Optional[str] = None
    contact: Optional[str] = None
    blood_group: Optional[str] = None


class PatientOut(ORMModel):
    id: int
    unique_id: str
    name: str
    dob: datetime
    gender: str
    contact: Optional[str] = None
    blood_group: Optional[str] = None


# ------------------------------- Visits -------------------------------
class Vitals(BaseModel):
    weight: Optional[float] = None
    bp: Optional[str] = None
    temp: Optional[float] = None
    hr: Optional[int] = None
    spo2: Optional[int] = None


class VisitCreate(BaseModel):
    patient_id: int
    organization_id: int
    vitals: Optional[Vitals] = None
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    priority: VisitPriority = "normal"
    attended_by: Optional[int] = None


class VisitUpdate(BaseModel):
    diagnosis: Optional[str] = None
    symptoms: Optional[str] = None
    priority: Optional[VisitPriority] = None


class VisitOut(ORMModel):
    id: int
    patient_id: int
    organization_id: int
    date: datetime
    vitals: Optional[Vitals] = None
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    priority: str
    attended_by: Optional[int] = None


class EmergencyOut(BaseModel):
    visit: VisitOut
    patient: PatientOut
    attended_by: Optional[str] = None


class VisitDetail(BaseModel):
    visit: VisitOut
    org_name: Optional[str] = None
    staff_name: Optional[str] = None


# ------------------------------- Actions -------------------------------
class ActionCreate(BaseModel):
    patient_id: int
    author_id: int
    from_organization_id: int
    type: ActionType
    description: str = Field(min_length=1)
    visit_id: Optional[int] = None
    payload: ActionPayload = None


class ActionTransition(BaseModel):
    status: ActionStatus
    notes: Optional[str] = None
    completed_by: Optional[int] = None
    completed_by_organization_id: Optional[int] = None


class TransferCreate(BaseModel):
    patient_id: int
    author_id: int
    from_organization_id: int
    target_org_id: Optional[int] = None
    description: Optional[str] = None


class ActionOut(ORMModel):
    id: int
    patient_id: int
    visit_id: Optional[int] = None
    author_id: int
    from_organization_id: int
    type: str
    status: str
    description: str
    payload: ActionPayload = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    completed_by: Optional[int] = None
    completed_by_organization_id: Optional[int] = None
    notes: Optional[str] = None


class QueueItem(BaseModel):
    """Action flattened with display names for department dashboards."""

    id: int
    patient_id: int
    visit_id: Optional[int] = None
    type: str
    status: str
    description: str
    payload: ActionPayload = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    patient_name: str = "Unknown"
    unique_id: str = "N/A"
    author_name: str = "Unknown"
    org_name: str = "Unknown"


class PatientDetails(BaseModel):
    visits: List[VisitDetail]
    actions: List[QueueItem]


class StatsOut(BaseModel):
    total_patients: int
    total_visits: int
    pending_actions: int
    completed_actions: int
