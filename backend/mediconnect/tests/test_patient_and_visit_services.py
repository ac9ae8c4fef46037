# tests/test_patient_and_visit_services.py
import pytest
from datetime import datetime
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from mediconnect.errors import ConstraintViolation, NotFound
from mediconnect.models.clinical import ClinicalAction, ClinicalVisit, Patient
from mediconnect.models.clinical_models import (
    ActionCreate, PatientCreate, PatientUpdate, TransferCreate, VisitCreate, VisitUpdate,
)
from mediconnect.services import patient_service
from mediconnect.services.action_service import create_action, create_transfer
from mediconnect.services.patient_service import (
    create_patient, delete_patient, search_patients, update_patient,
)
from mediconnect.services.visit_service import (
    create_visit, get_active_emergencies, get_patient_details, update_visit,
)


def _visit(db_session, world, priority="normal", patient=None, attended_by=None):
    return create_visit(db_session, VisitCreate(
        patient_id=(patient or world["patient"]).id,
        organization_id=world["city"].id,
        vitals={"weight": 64.5, "bp": "120/80", "temp": 37.1, "hr": 78, "spo2": 98},
        symptoms="fever and cough",
        priority=priority,
        attended_by=attended_by,
    ))


def _action(db_session, world, patient_id, visit_id=None, action_type="prescription"):
    return create_action(db_session, ActionCreate(
        patient_id=patient_id,
        author_id=world["doctor"].id,
        from_organization_id=world["city"].id,
        type=action_type,
        description="order",
        visit_id=visit_id,
    ))


# ------------------------------- Patients -------------------------------
def test_create_patient_assigns_unique_id(db_session):
    patient = create_patient(db_session, PatientCreate(name="Ali Khan", dob=datetime(1990, 2, 3), gender="male"))

    assert patient.unique_id.startswith("PAT-")
    assert len(patient.unique_id) == 10
    assert patient.unique_id[4:].isdigit()


def test_create_patient_retries_on_collision(db_session, world, monkeypatch):
    ids = iter(["PAT-123456", "PAT-777777"])
    monkeypatch.setattr(patient_service, "generate_unique_id", lambda: next(ids))

    patient = create_patient(db_session, PatientCreate(name="Ali Khan", dob=datetime(1990, 2, 3), gender="male"))
    assert patient.unique_id == "PAT-777777"


def test_create_patient_gives_up_after_repeated_collisions(db_session, world, monkeypatch):
    monkeypatch.setattr(patient_service, "generate_unique_id", lambda: "PAT-123456")

    with pytest.raises(ConstraintViolation):
        create_patient(db_session, PatientCreate(name="Ali Khan", dob=datetime(1990, 2, 3), gender="male"))


def test_create_patient_recovers_when_id_is_taken_concurrently(db_session, engine, monkeypatch):
    """A rival registration commits the same id between the lookup and our commit."""
    ids = iter(["PAT-424242", "PAT-555555"])
    monkeypatch.setattr(patient_service, "generate_unique_id", lambda: next(ids))
    add = db_session.add

    def add_after_rival(instance):
        if instance.unique_id == "PAT-424242":
            with sessionmaker(bind=engine)() as rival:
                rival.add(Patient(unique_id="PAT-424242", name="Rival", dob=datetime(1980, 1, 1), gender="male"))
                rival.commit()
        add(instance)

    monkeypatch.setattr(db_session, "add", add_after_rival)
    patient = create_patient(db_session, PatientCreate(name="Ali Khan", dob=datetime(1990, 2, 3), gender="male"))

    assert patient.unique_id == "PAT-555555"
    assert db_session.query(Patient).filter_by(unique_id="PAT-424242").one().name == "Rival"


def test_create_patient_raises_constraint_violation_when_every_commit_collides(db_session, engine, monkeypatch):
    counter = iter(range(100000, 100100))
    monkeypatch.setattr(patient_service, "generate_unique_id", lambda: f"PAT-{next(counter)}")
    add = db_session.add

    def add_after_rival(instance):
        with sessionmaker(bind=engine)() as rival:
            rival.add(Patient(unique_id=instance.unique_id, name="Rival", dob=datetime(1980, 1, 1), gender="male"))
            rival.commit()
        add(instance)

    monkeypatch.setattr(db_session, "add", add_after_rival)
    with pytest.raises(ConstraintViolation) as exc:
        create_patient(db_session, PatientCreate(name="Ali Khan", dob=datetime(1990, 2, 3), gender="male"))
    assert exc.value.field == "unique_id"


def test_search_patients(db_session, world):
    assert [p.id for p in search_patients(db_session, "PAT-123456")] == [world["patient"].id]
    assert [p.id for p in search_patients(db_session, "roe")] == [world["patient"].id]
    assert [p.id for p in search_patients(db_session, "1234")] == [world["patient"].id]
    assert search_patients(db_session, "nobody") == []
    assert search_patients(db_session, "") == []


def test_search_treats_wildcards_literally(db_session, world):
    db_session.add(Patient(unique_id="PAT-200300", name="Mary_Ann 100% Smith", dob=datetime(1975, 6, 1), gender="female"))
    db_session.commit()

    assert [p.name for p in search_patients(db_session, "%")] == ["Mary_Ann 100% Smith"]
    assert [p.name for p in search_patients(db_session, "_")] == ["Mary_Ann 100% Smith"]
    assert [p.name for p in search_patients(db_session, "y_a")] == ["Mary_Ann 100% Smith"]
    assert search_patients(db_session, "e_R") == []


def test_update_patient_keeps_unset_fields(db_session, world):
    patient = update_patient(db_session, world["patient"].id, PatientUpdate(contact="555-0101"))
    assert patient.contact == "555-0101"
    assert patient.name == "Jane Roe"

    with pytest.raises(NotFound):
        update_patient(db_session, 999, PatientUpdate(name="x"))


def test_delete_patient_cascades(db_session, world):
    patient = world["patient"]
    visit = _visit(db_session, world)
    _action(db_session, world, patient.id, visit_id=visit.id)
    _action(db_session, world, patient.id)
    create_transfer(db_session, TransferCreate(
        patient_id=patient.id, author_id=world["doctor"].id,
        from_organization_id=world["city"].id, target_org_id=world["metro"].id,
    ))

    bystander = Patient(unique_id="PAT-999999", name="Bystander", dob=datetime(2000, 1, 1), gender="male")
    db_session.add(bystander)
    db_session.commit()
    kept_id = _action(db_session, world, bystander.id).id
    patient_id, visit_id = patient.id, visit.id

    delete_patient(db_session, patient_id)

    assert db_session.get(Patient, patient_id) is None
    assert db_session.query(ClinicalVisit).filter_by(patient_id=patient_id).count() == 0
    assert db_session.query(ClinicalAction).filter_by(patient_id=patient_id).count() == 0
    assert db_session.query(ClinicalAction).filter_by(visit_id=visit_id).count() == 0
    assert [a.id for a in db_session.query(ClinicalAction).all()] == [kept_id]


def test_delete_missing_patient_is_not_found(db_session, world):
    patient_id = world["patient"].id
    delete_patient(db_session, patient_id)

    with pytest.raises(NotFound):
        delete_patient(db_session, patient_id)


def test_delete_patient_is_all_or_nothing(db_session, world, monkeypatch):
    patient_id = world["patient"].id
    visit = _visit(db_session, world)
    _action(db_session, world, patient_id, visit_id=visit.id)

    def fail(instance):
        raise OperationalError("DELETE FROM patients", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "delete", fail)
    with pytest.raises(OperationalError):
        delete_patient(db_session, patient_id)
    monkeypatch.undo()

    assert db_session.get(Patient, patient_id) is not None
    assert db_session.query(ClinicalVisit).filter_by(patient_id=patient_id).count() == 1
    assert db_session.query(ClinicalAction).filter_by(patient_id=patient_id).count() == 1


# ------------------------------- Visits -------------------------------
def test_create_visit_requires_patient(db_session, world):
    with pytest.raises(NotFound) as exc:
        create_visit(db_session, VisitCreate(patient_id=999, organization_id=world["city"].id))
    assert exc.value.field == "patient_id"


def test_update_visit(db_session, world):
    visit = _visit(db_session, world)
    visit = update_visit(db_session, visit.id, VisitUpdate(diagnosis="Influenza A"))

    assert visit.diagnosis == "Influenza A"
    assert visit.priority == "normal"
    assert visit.symptoms == "fever and cough"

    visit = update_visit(db_session, visit.id, VisitUpdate(symptoms=None, priority=None, diagnosis="Influenza B"))
    assert visit.symptoms == "fever and cough"
    assert visit.priority == "normal"
    assert visit.diagnosis == "Influenza B"

    with pytest.raises(NotFound):
        update_visit(db_session, 999, VisitUpdate(priority="critical"))


def test_active_emergencies_follow_priority(db_session, world):
    routine = _visit(db_session, world)
    emergency = _visit(db_session, world, priority="emergency", attended_by=world["nurse"].id)
    critical = _visit(db_session, world, priority="critical")

    result = get_active_emergencies(db_session)
    assert [e.visit.id for e in result] == [critical.id, emergency.id]
    assert result[1].attended_by == "Nurse Priya Sharma"
    assert result[0].attended_by is None
    assert result[0].patient.unique_id == "PAT-123456"
    assert routine.id not in [e.visit.id for e in result]

    update_visit(db_session, emergency.id, VisitUpdate(priority="normal"))
    assert [e.visit.id for e in get_active_emergencies(db_session)] == [critical.id]


def test_patient_details(db_session, world):
    visit = _visit(db_session, world, attended_by=world["nurse"].id)
    action = _action(db_session, world, world["patient"].id, visit_id=visit.id, action_type="lab_test")

    details = get_patient_details(db_session, world["patient"].id)

    assert [v.visit.id for v in details.visits] == [visit.id]
    assert details.visits[0].org_name == "City General Hospital"
    assert details.visits[0].staff_name == "Nurse Priya Sharma"
    assert details.visits[0].visit.vitals.bp == "120/80"
    assert [a.id for a in details.actions] == [action.id]
    assert details.actions[0].author_name == "Dr. Sarah Chen"

    with pytest.raises(NotFound):
        get_patient_details(db_session, 999)
