# mediconnect/endpoints/organizations.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mediconnect.database import get_db
from mediconnect.models.clinical_models import (
    LoginRequest, LoginResponse, OrganizationCreate, OrganizationOut, OrganizationRegistered,
    StaffCreate, UserOut,
)
from mediconnect.services import organization_service

router = APIRouter(tags=["Organizations"])


@router.get("/admin/organizations", response_model=List[OrganizationOut])
def list_organizations(db: Session = Depends(get_db)):
    return organization_service.list_organizations(db)


@router.post("/admin/organizations", response_model=OrganizationRegistered)
def register_organization(payload: OrganizationCreate, db: Session = Depends(get_db)):
    organization, admin = organization_service.register_organization(db, payload)
    return OrganizationRegistered(
        organization=OrganizationOut.model_validate(organization),
        admin=UserOut.model_validate(admin),
    )


@router.get("/staff", response_model=List[UserOut])
def list_staff(organization_id: int, db: Session = Depends(get_db)):
    return organization_service.list_staff(db, organization_id)


@router.post("/staff", response_model=UserOut)
def create_staff(payload: StaffCreate, db: Session = Depends(get_db)):
    return organization_service.create_staff(db, payload)


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    return organization_service.authenticate(db, payload)
