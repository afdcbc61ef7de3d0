# tests/conftest.py
from datetime import date
from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient

from app.core.database import Database
from app.main import create_app
from app.models.patient import Gender
from app.models.user import RoleName
from app.schemas.medicine import MedicineCreate
from app.schemas.patient import PatientCreate
from app.schemas.prescription import PrescriptionCreate, PrescriptionItemCreate
from app.schemas.user import UserCreate
from app.services import medicine_service, patient_service, prescription_service, user_service

TEST_PASSWORD = "S3cret-pass"

_sequence = count(1)


@pytest.fixture()
def database():
    database = Database("sqlite://")
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture()
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(database):
    app = create_app(database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_user(db):
    def _make_user(role: RoleName = RoleName.PHARMACIST, **overrides):
        n = next(_sequence)
        data = {
            "username": f"user{n}",
            "email": f"user{n}@example.com",
            "role": role,
            "first_name": "Test",
            "last_name": f"User{n}",
            "password": TEST_PASSWORD,
        }
        data.update(overrides)
        return user_service.create_user(db, UserCreate(**data))

    return _make_user


@pytest.fixture()
def doctor(make_user):
    return make_user(RoleName.DOCTOR)


@pytest.fixture()
def pharmacist(make_user):
    return make_user(RoleName.PHARMACIST)


@pytest.fixture()
def make_patient(db):
    def _make_patient(**overrides):
        n = next(_sequence)
        data = {
            "first_name": "Jane",
            "last_name": f"Patient{n}",
            "date_of_birth": date(1990, 1, 1),
            "gender": Gender.FEMALE,
            "phone": f"+1555000{n:04d}",
        }
        data.update(overrides)
        return patient_service.create_patient(db, payload=PatientCreate(**data))

    return _make_patient


@pytest.fixture()
def patient(make_patient):
    return make_patient()


@pytest.fixture()
def make_medicine(db):
    def _make_medicine(**overrides):
        n = next(_sequence)
        data = {
            "name": f"Medicine {n}",
            "unit_price": Decimal("10.00"),
            "current_stock": 100,
            "minimum_stock_level": 10,
        }
        data.update(overrides)
        return medicine_service.create_medicine(db, payload=MedicineCreate(**data))

    return _make_medicine


@pytest.fixture()
def make_prescription(db):
    def _make_prescription(patient, doctor, items):
        """`items` is a list of (medicine, quantity) pairs."""
        payload = PrescriptionCreate(
            patient_id=patient.id,
            doctor_id=doctor.id,
            items=[
                PrescriptionItemCreate(
                    medicine_id=medicine.id,
                    quantity=quantity,
                    dosage_instructions="1 tablet twice daily",
                )
                for medicine, quantity in items
            ],
        )
        return prescription_service.create_prescription(db, payload=payload)

    return _make_prescription
