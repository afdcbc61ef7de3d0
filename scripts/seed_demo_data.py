#!/usr/bin/env python3
# scripts/seed_demo_data.py
"""
Pharmacy demo data seeder.

Creates (idempotently, through the service layer):
- an admin, a doctor, a pharmacist and a cashier with password Demo@12345
- a small medicine catalogue, some of it below minimum stock
- one patient with a visit, a prescription, a partial dispense and a payment

Rows that already exist (matched by username, medicine name or patient
phone) are left alone, so the script can be re-run safely.

Run:
  python -m scripts.seed_demo_data
  python -m scripts.seed_demo_data --database-url sqlite:///./demo.db
"""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Allow "python -m scripts.seed_demo_data" from repo root
REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import Database
from app.models.medicine import Medicine
from app.models.patient import Gender, Patient
from app.models.payment import PaymentMethod
from app.models.prescription import Prescription
from app.models.user import RoleName, User
from app.schemas.medicine import MedicineCreate
from app.schemas.patient import PatientCreate
from app.schemas.payment import PaymentCreate
from app.schemas.prescription import PrescriptionCreate, PrescriptionItemCreate
from app.schemas.user import UserCreate
from app.schemas.visit import VisitCreate
from app.services import (
    medicine_service,
    patient_service,
    payment_service,
    prescription_service,
    user_service,
    visit_service,
)

logger = logging.getLogger("seed_demo_data")

DEMO_PASSWORD = "Demo@12345"

DEMO_USERS = [
    ("admin", RoleName.ADMIN, "Ada", "Admin"),
    ("dr.house", RoleName.DOCTOR, "Gregory", "House"),
    ("pharma.lee", RoleName.PHARMACIST, "Lee", "Chen"),
    ("cash.ortiz", RoleName.CASHIER, "Maria", "Ortiz"),
]

DEMO_MEDICINES = [
    # name, price, stock, minimum, expiry offset (days), requires prescription
    ("Paracetamol 500mg", "10.50", 240, 50, 540, False),
    ("Amoxicillin 250mg", "25.75", 80, 40, 365, True),
    ("Ibuprofen 400mg", "12.00", 15, 30, 420, False),
    ("Metformin 500mg", "18.40", 5, 25, 300, True),
    ("Cetirizine 10mg", "6.25", 60, 20, -10, False),
]


def _seed_users(db: Session) -> dict[str, User]:
    users: dict[str, User] = {}
    for username, role, first_name, last_name in DEMO_USERS:
        user = user_service.get_user_by_username(db, username)
        if user is None:
            user = user_service.create_user(
                db,
                UserCreate(
                    username=username,
                    email=f"{username.replace('.', '_')}@pharmacy.example.com",
                    role=role,
                    first_name=first_name,
                    last_name=last_name,
                    password=DEMO_PASSWORD,
                ),
            )
        users[username] = user
    return users


def _seed_medicines(db: Session) -> dict[str, Medicine]:
    medicines: dict[str, Medicine] = {}
    today = date.today()
    for name, price, stock, minimum, expiry_offset, requires_rx in DEMO_MEDICINES:
        medicine = db.query(Medicine).filter(Medicine.name == name).first()
        if medicine is None:
            medicine = medicine_service.create_medicine(
                db,
                payload=MedicineCreate(
                    name=name,
                    unit_price=Decimal(price),
                    current_stock=stock,
                    minimum_stock_level=minimum,
                    supplier_name="Demo Pharma Supplies",
                    batch_number=f"DEMO-{len(medicines) + 1:03d}",
                    expiry_date=today + timedelta(days=expiry_offset),
                    requires_prescription=requires_rx,
                ),
            )
        medicines[name] = medicine
    return medicines


def _seed_patient_journey(db: Session, users: dict[str, User], medicines: dict[str, Medicine]) -> None:
    phone = "+15550100200"
    patient = db.query(Patient).filter(Patient.phone == phone).first()
    if patient is not None:
        logger.info("Demo patient already present (id=%s); skipping journey", patient.id)
        return

    patient = patient_service.create_patient(
        db,
        payload=PatientCreate(
            first_name="John",
            last_name="Doe",
            date_of_birth=date(1985, 4, 12),
            gender=Gender.MALE,
            phone=phone,
            email="john.doe@patients.example.com",
            allergies="Penicillin",
        ),
    )
    doctor = users["dr.house"]
    visit = visit_service.create_visit(
        db,
        payload=VisitCreate(
            patient_id=patient.id,
            doctor_id=doctor.id,
            reason_for_visit="Fever and sore throat",
            diagnosis="Pharyngitis",
            vital_signs="T 38.4C, HR 92",
        ),
    )

    paracetamol = medicines["Paracetamol 500mg"]
    ibuprofen = medicines["Ibuprofen 400mg"]
    prescription: Prescription = prescription_service.create_prescription(
        db,
        payload=PrescriptionCreate(
            patient_id=patient.id,
            doctor_id=doctor.id,
            visit_id=visit.id,
            diagnosis="Pharyngitis",
            items=[
                PrescriptionItemCreate(
                    medicine_id=paracetamol.id,
                    quantity=10,
                    dosage_instructions="1 tablet every 6 hours as needed",
                    duration_days=5,
                ),
                PrescriptionItemCreate(
                    medicine_id=ibuprofen.id,
                    quantity=6,
                    dosage_instructions="1 tablet twice daily after meals",
                    duration_days=3,
                ),
            ],
        ),
    )

    prescription_service.dispense_medicine(
        db,
        prescription_id=prescription.id,
        medicine_id=paracetamol.id,
        quantity=10,
        performed_by=users["pharma.lee"].id,
    )

    payment_service.create_payment(
        db,
        payload=PaymentCreate(
            patient_id=patient.id,
            prescription_id=prescription.id,
            amount=prescription.total_amount,
            payment_method=PaymentMethod.CASH,
            processed_by=users["cash.ortiz"].id,
        ),
    )


def seed(database: Database) -> None:
    database.create_all()
    db = database.session()
    try:
        users = _seed_users(db)
        medicines = _seed_medicines(db)
        _seed_patient_journey(db, users, medicines)
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed pharmacy demo data")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL from settings",
    )
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s [%(name)s] %(message)s")

    database = Database(args.database_url or settings.database_url)
    try:
        seed(database)
    finally:
        database.dispose()

    logger.info("Demo data ready. Log in as 'admin' / %s", DEMO_PASSWORD)


if __name__ == "__main__":
    main()
