# tests/test_patient_visit_service.py
from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from app.core.exceptions import ConflictError, NotFoundError
from app.models.patient import Gender
from app.models.user import RoleName
from app.schemas.patient import PatientCreate, PatientUpdate
from app.schemas.visit import VisitCreate, VisitUpdate
from app.services import patient_service, visit_service


def test_patient_phone_is_normalized(make_patient):
    patient = make_patient(phone="+1 (555) 123-4567")

    assert patient.phone == "+15551234567"
    assert patient.full_name.startswith("Jane ")


def test_patient_validation_rules():
    base = {
        "first_name": "Ann",
        "last_name": "Lee",
        "date_of_birth": date(1980, 5, 5),
        "gender": Gender.FEMALE,
        "phone": "5551234567",
    }
    with pytest.raises(ValidationError):
        PatientCreate(**{**base, "phone": "12"})
    with pytest.raises(ValidationError):
        PatientCreate(**{**base, "date_of_birth": date.today() + timedelta(days=1)})
    with pytest.raises(ValidationError):
        PatientCreate(**{**base, "unexpected": "field"})

    patient = PatientCreate(**{**base, "email": "", "allergies": "  "})
    assert patient.email is None


def test_search_patients_by_name_and_phone(db, make_patient):
    alice = make_patient(first_name="Alice", last_name="Walker", phone="+15550001111")
    make_patient(first_name="Bob", last_name="Stone", phone="+15550002222")

    assert [p.id for p in patient_service.search_patients(db, query="walk")] == [alice.id]
    assert [p.id for p in patient_service.search_patients(db, query="0001111")] == [alice.id]


def test_update_patient_ignores_null_required_fields(db, patient):
    updated = patient_service.update_patient(
        db,
        patient_id=patient.id,
        payload=PatientUpdate(first_name=None, allergies="Peanuts"),
    )

    assert updated.first_name == "Jane"
    assert updated.allergies == "Peanuts"


def test_delete_patient_with_visits_conflicts(db, patient, make_patient, doctor):
    visit_service.create_visit(
        db, payload=VisitCreate(patient_id=patient.id, doctor_id=doctor.id, reason_for_visit="Cough")
    )

    with pytest.raises(ConflictError):
        patient_service.delete_patient(db, patient_id=patient.id)

    fresh = make_patient()
    patient_service.delete_patient(db, patient_id=fresh.id)
    with pytest.raises(NotFoundError):
        patient_service.get_patient(db, patient_id=fresh.id)


def test_visit_lifecycle(db, patient, doctor):
    visit = visit_service.create_visit(
        db, payload=VisitCreate(patient_id=patient.id, doctor_id=doctor.id, reason_for_visit="Headache")
    )
    assert visit.visit_date is not None

    updated = visit_service.update_visit(
        db, visit_id=visit.id, payload=VisitUpdate(diagnosis="Migraine", reason_for_visit=None)
    )
    assert updated.diagnosis == "Migraine"
    assert updated.reason_for_visit == "Headache"

    assert [v.id for v in visit_service.list_visits_for_patient(db, patient_id=patient.id)] == [visit.id]
    assert [v.id for v in visit_service.list_visits_for_doctor(db, doctor_id=doctor.id)] == [visit.id]


def test_visit_requires_doctor_role(db, patient, make_user):
    pharmacist = make_user(RoleName.PHARMACIST)

    with pytest.raises(NotFoundError, match="Doctor"):
        visit_service.create_visit(
            db, payload=VisitCreate(patient_id=patient.id, doctor_id=pharmacist.id, reason_for_visit="Rash")
        )
    with pytest.raises(NotFoundError, match="Patient"):
        visit_service.create_visit(
            db, payload=VisitCreate(patient_id=999, doctor_id=pharmacist.id, reason_for_visit="Rash")
        )
