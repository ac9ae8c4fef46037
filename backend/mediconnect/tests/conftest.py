# tests/conftest.py
import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mediconnect.database import Base, create_db_engine, get_db
from mediconnect.main import app
from mediconnect.models.clinical import Organization, Patient, User
from mediconnect.services.notifier import get_notifier


@pytest.fixture
def engine():
    # one shared in-memory connection per test, reachable from TestClient's worker threads
    test_engine = create_db_engine("sqlite://", poolclass=StaticPool)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def tables(engine):
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db_session(engine, tables):
    SessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = SessionLocal()

    yield session

    session.close()


class RecordingNotifier:
    """Stands in for the WebSocket registry and keeps every broadcast message."""

    def __init__(self):
        self.events = []

    async def broadcast(self, message):
        self.events.append(message)

    def types(self):
        return [e["type"] for e in self.events]


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db_session, notifier):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def world(db_session):
    """Two hospitals, a pharmacy and a lab with their staff, plus one patient."""
    city = Organization(name="City General Hospital", type="hospital", code="CITY", address="123 Health Ave")
    metro = Organization(name="Metro Hospital", type="hospital", code="METRO")
    pharmacy = Organization(name="Corner Pharmacy", type="pharmacy", code="RX1")
    lab = Organization(name="Central Lab", type="lab", code="LAB1")
    db_session.add_all([city, metro, pharmacy, lab])
    db_session.flush()

    doctor = User(organization_id=city.id, employee_id="DOC001", name="Dr. Sarah Chen", role="doctor", password="password")
    nurse = User(organization_id=city.id, employee_id="NUR001", name="Nurse Priya Sharma", role="nurse", password="password")
    metro_nurse = User(organization_id=metro.id, employee_id="NUR001", name="Nurse Ada Obi", role="nurse", password="password")
    pharmacist = User(organization_id=pharmacy.id, employee_id="PHARM001", name="John Doe", role="pharmacy", password="password")
    lab_tech = User(organization_id=lab.id, employee_id="LAB001", name="Mike Ross", role="diagnostic", password="password")
    patient = Patient(unique_id="PAT-123456", name="Jane Roe", dob=datetime(1985, 4, 12), gender="female", blood_group="O+")
    db_session.add_all([doctor, nurse, metro_nurse, pharmacist, lab_tech, patient])
    db_session.commit()

    return {
        "city": city, "metro": metro, "pharmacy": pharmacy, "lab": lab,
        "doctor": doctor, "nurse": nurse, "metro_nurse": metro_nurse,
        "pharmacist": pharmacist, "lab_tech": lab_tech, "patient": patient,
    }
