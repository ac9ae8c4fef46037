# mediconnect/models/clinical.py
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, JSON, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from mediconnect.database import Base

ORG_TYPES = ("hospital", "pharmacy", "lab", "platform")
USER_ROLES = ("doctor", "nurse", "pharmacy", "diagnostic", "admin", "super_admin")
VISIT_PRIORITIES = ("normal", "emergency", "critical")
ACTION_TYPES = ("prescription", "lab_test", "radiology", "procedure", "observation", "transfer")
ACTION_STATUSES = ("pending", "in_progress", "completed", "cancelled")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    type = Column(String(20), nullable=False)
    code = Column(String(50), unique=True, nullable=False)  # tenant key used at login
    address = Column(Text, nullable=True)

    users = relationship("User", back_populates="organization", cascade="all, delete-orphan")


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("organization_id", "employee_id", name="uq_users_org_employee"),)

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    employee_id = Column(String(50), nullable=False)
    name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False)
    password = Column(String(200), nullable=False)

    organization = relationship("Organization", back_populates="users")


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    unique_id = Column(String(20), unique=True, nullable=False, index=True)  # PAT-######
    name = Column(String(200), nullable=False)
    dob = Column(DateTime, nullable=False)
    gender = Column(String(20), nullable=False)
    contact = Column(String(100), nullable=True)
    blood_group = Column(String(10), nullable=True)


class ClinicalVisit(Base):
    __tablename__ = "clinical_visits"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    vitals = Column(JSON, nullable=True)  # weight, bp, temp, hr, spo2
    symptoms = Column(Text, nullable=True)
    diagnosis = Column(Text, nullable=True)
    priority = Column(String(20), default="normal", nullable=False)
    attended_by = Column(Integer, ForeignKey("users.id"), nullable=True)


class ClinicalAction(Base):
    __tablename__ = "clinical_actions"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    visit_id = Column(Integer, ForeignKey("clinical_visits.id"), nullable=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    from_organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)

    type = Column(String(20), nullable=False, index=True)
    status = Column(String(20), default="pending", nullable=False)
    description = Column(Text, nullable=False)
    payload = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    completed_at = Column(DateTime(timezone=True), nullable=True)
    completed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    completed_by_organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True)
    notes = Column(Text, nullable=True)

    # bumped on every UPDATE; a flush against a stale row raises StaleDataError
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
