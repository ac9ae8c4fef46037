# mediconnect/services/organization_service.py
import logging
import os
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mediconnect.errors import AuthenticationFailed, ConstraintViolation, NotFound
from mediconnect.models.clinical import Organization, User
from mediconnect.models.clinical_models import LoginRequest, OrganizationCreate, StaffCreate

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "password")


def list_organizations(db: Session) -> List[Organization]:
    return db.query(Organization).order_by(Organization.id.desc()).all()


def register_organization(db: Session, data: OrganizationCreate) -> Tuple[Organization, User]:
    """Onboard a tenant together with its default ``<CODE>ADMIN`` account."""
    if db.query(Organization.id).filter(Organization.code == data.code).first() is not None:
        raise ConstraintViolation(f"Organization code {data.code} is already taken", field="code")

    organization = Organization(**data.model_dump())
    admin = User(
        organization=organization,
        employee_id=f"{data.code}ADMIN",
        name=f"{data.name} Admin",
        role="admin",
        password=DEFAULT_ADMIN_PASSWORD,
    )
    db.add_all([organization, admin])
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConstraintViolation(f"Organization code {data.code} is already taken", field="code")
    db.refresh(organization)
    db.refresh(admin)
    logger.info(f"Registered {organization.type} {organization.code} (id {organization.id})")
    return organization, admin


def list_staff(db: Session, organization_id: int) -> List[User]:
    return (
        db.query(User)
        .filter(User.organization_id == organization_id)
        .order_by(User.role.desc(), User.id)
        .all()
    )


def create_staff(db: Session, data: StaffCreate) -> User:
    if db.get(Organization, data.organization_id) is None:
        raise NotFound(f"Organization {data.organization_id} not found", field="organization_id")

    user = User(**data.model_dump())
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConstraintViolation(f"Employee ID {data.employee_id} is already taken", field="employee_id")
    db.refresh(user)
    logger.info(f"Added {user.role} {user.employee_id} to organization {user.organization_id}")
    return user


def authenticate(db: Session, data: LoginRequest) -> User:
    organization = db.query(Organization).filter(Organization.code == data.org_code).first()
    if organization is None:
        raise AuthenticationFailed("Invalid Organization Code", field="org_code")

    user = (
        db.query(User)
        .filter(
            User.organization_id == organization.id,
            User.employee_id == data.employee_id,
            User.password == data.password,
        )
        .first()
    )
    if user is None:
        raise AuthenticationFailed("Invalid Credentials")
    return user
