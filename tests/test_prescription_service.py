# tests/test_prescription_service.py
from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.dialects import postgresql

from app.core.exceptions import (
    InsufficientStockError,
    InvalidArgumentError,
    NotFoundError,
    OverDispenseError,
)
from app.models.inventory import InventoryTransaction, TransactionType
from app.models.prescription import PrescriptionStatus
from app.models.user import RoleName
from app.schemas.medicine import MedicineUpdate
from app.schemas.prescription import PrescriptionCreate, PrescriptionItemCreate
from app.schemas.visit import VisitCreate
from app.services import medicine_service, prescription_service, visit_service


def _ledger(db, medicine_id):
    return (
        db.query(InventoryTransaction)
        .filter(InventoryTransaction.medicine_id == medicine_id)
        .order_by(InventoryTransaction.id)
        .all()
    )


def test_total_is_sum_of_price_times_quantity(db, patient, doctor, make_medicine, make_prescription):
    first = make_medicine(unit_price=Decimal("10.50"))
    second = make_medicine(unit_price=Decimal("25.75"))

    prescription = make_prescription(patient, doctor, [(first, 2), (second, 1)])

    assert prescription.total_amount == Decimal("46.75")
    assert prescription.status == PrescriptionStatus.PENDING
    assert not prescription.is_filled
    assert [item.quantity_dispensed for item in prescription.items] == [0, 0]
    assert [item.total_price for item in prescription.items] == [Decimal("21.00"), Decimal("25.75")]


def test_price_change_does_not_alter_existing_prescription(db, patient, doctor, make_medicine, make_prescription):
    medicine = make_medicine(unit_price=Decimal("10.50"))
    prescription = make_prescription(patient, doctor, [(medicine, 3)])

    medicine_service.update_medicine(
        db, medicine_id=medicine.id, payload=MedicineUpdate(unit_price=Decimal("99.99"))
    )

    reloaded = prescription_service.get_prescription(db, prescription_id=prescription.id)
    assert reloaded.total_amount == Decimal("31.50")
    assert reloaded.items[0].unit_price == Decimal("10.50")


def test_create_with_unknown_medicine_fails(db, patient, doctor):
    payload = PrescriptionCreate(
        patient_id=patient.id,
        doctor_id=doctor.id,
        items=[PrescriptionItemCreate(medicine_id=999, quantity=1, dosage_instructions="once")],
    )
    with pytest.raises(NotFoundError, match="Medicine with id 999 not found"):
        prescription_service.create_prescription(db, payload=payload)


def test_create_requires_a_doctor(db, patient, make_user, make_medicine):
    cashier = make_user(RoleName.CASHIER)
    medicine = make_medicine()
    payload = PrescriptionCreate(
        patient_id=patient.id,
        doctor_id=cashier.id,
        items=[PrescriptionItemCreate(medicine_id=medicine.id, quantity=1, dosage_instructions="once")],
    )
    with pytest.raises(NotFoundError, match="Doctor"):
        prescription_service.create_prescription(db, payload=payload)


def test_create_rejects_visit_of_other_patient(db, patient, make_patient, doctor, make_medicine):
    other = make_patient()
    visit = visit_service.create_visit(
        db, payload=VisitCreate(patient_id=other.id, doctor_id=doctor.id, reason_for_visit="Checkup")
    )
    medicine = make_medicine()
    payload = PrescriptionCreate(
        patient_id=patient.id,
        doctor_id=doctor.id,
        visit_id=visit.id,
        items=[PrescriptionItemCreate(medicine_id=medicine.id, quantity=1, dosage_instructions="once")],
    )
    with pytest.raises(InvalidArgumentError):
        prescription_service.create_prescription(db, payload=payload)


def test_dispense_decrements_stock_and_logs_subtraction(
    db, patient, doctor, pharmacist, make_medicine, make_prescription
):
    medicine = make_medicine(current_stock=50)
    prescription = make_prescription(patient, doctor, [(medicine, 10)])

    result = prescription_service.dispense_medicine(
        db,
        prescription_id=prescription.id,
        medicine_id=medicine.id,
        quantity=4,
        performed_by=pharmacist.id,
    )

    assert result.remaining_stock == 46
    assert result.item.quantity_dispensed == 4
    assert result.prescription.status == PrescriptionStatus.PARTIALLY_FILLED

    ledger = _ledger(db, medicine.id)
    assert len(ledger) == 1
    assert ledger[0].transaction_type == TransactionType.SUBTRACTION
    assert ledger[0].quantity == 4
    assert ledger[0].reference_id == prescription.id
    assert ledger[0].reference_type == "prescription"
    assert ledger[0].performed_by == pharmacist.id


def test_dispensing_everything_fills_prescription(
    db, patient, doctor, pharmacist, make_medicine, make_prescription
):
    first = make_medicine()
    second = make_medicine()
    prescription = make_prescription(patient, doctor, [(first, 2), (second, 3)])

    for medicine, quantity in ((first, 2), (second, 1), (second, 2)):
        result = prescription_service.dispense_medicine(
            db,
            prescription_id=prescription.id,
            medicine_id=medicine.id,
            quantity=quantity,
            performed_by=pharmacist.id,
        )

    assert result.prescription.status == PrescriptionStatus.FILLED
    assert result.prescription.is_filled


def test_over_dispense_leaves_state_unchanged(
    db, patient, doctor, pharmacist, make_medicine, make_prescription
):
    medicine = make_medicine(current_stock=100)
    prescription = make_prescription(patient, doctor, [(medicine, 5)])
    prescription_service.dispense_medicine(
        db, prescription_id=prescription.id, medicine_id=medicine.id, quantity=3, performed_by=pharmacist.id
    )

    with pytest.raises(OverDispenseError):
        prescription_service.dispense_medicine(
            db, prescription_id=prescription.id, medicine_id=medicine.id, quantity=3, performed_by=pharmacist.id
        )

    db.expire_all()
    assert medicine_service.get_medicine(db, medicine_id=medicine.id).current_stock == 97
    items = prescription_service.list_prescription_items(db, prescription_id=prescription.id)
    assert items[0].quantity_dispensed == 3
    assert len(_ledger(db, medicine.id)) == 1


def test_over_dispense_is_an_invalid_argument(db, patient, doctor, pharmacist, make_medicine, make_prescription):
    medicine = make_medicine()
    prescription = make_prescription(patient, doctor, [(medicine, 1)])

    with pytest.raises(InvalidArgumentError):
        prescription_service.dispense_medicine(
            db, prescription_id=prescription.id, medicine_id=medicine.id, quantity=2, performed_by=pharmacist.id
        )


def test_insufficient_stock_leaves_state_unchanged(
    db, patient, doctor, pharmacist, make_medicine, make_prescription
):
    medicine = make_medicine(current_stock=2)
    prescription = make_prescription(patient, doctor, [(medicine, 5)])

    with pytest.raises(InsufficientStockError) as exc_info:
        prescription_service.dispense_medicine(
            db, prescription_id=prescription.id, medicine_id=medicine.id, quantity=3, performed_by=pharmacist.id
        )

    assert exc_info.value.available == 2
    assert exc_info.value.requested == 3

    db.expire_all()
    assert medicine_service.get_medicine(db, medicine_id=medicine.id).current_stock == 2
    reloaded = prescription_service.get_prescription(db, prescription_id=prescription.id)
    assert reloaded.items[0].quantity_dispensed == 0
    assert reloaded.status == PrescriptionStatus.PENDING
    assert _ledger(db, medicine.id) == []


def test_dispense_unknown_item_or_performer(db, patient, doctor, pharmacist, make_medicine, make_prescription):
    prescribed = make_medicine()
    other = make_medicine()
    prescription = make_prescription(patient, doctor, [(prescribed, 1)])

    with pytest.raises(NotFoundError):
        prescription_service.dispense_medicine(
            db, prescription_id=prescription.id, medicine_id=other.id, quantity=1, performed_by=pharmacist.id
        )
    with pytest.raises(NotFoundError, match="User with id 4242 not found"):
        prescription_service.dispense_medicine(
            db, prescription_id=prescription.id, medicine_id=prescribed.id, quantity=1, performed_by=4242
        )
    with pytest.raises(NotFoundError, match="Prescription with id 999 not found"):
        prescription_service.dispense_medicine(
            db, prescription_id=999, medicine_id=prescribed.id, quantity=1, performed_by=pharmacist.id
        )


def test_dispense_locks_prescription_before_item_and_medicine(
    db, patient, doctor, pharmacist, make_medicine, make_prescription
):
    first = make_medicine()
    second = make_medicine()
    prescription = make_prescription(patient, doctor, [(first, 1), (second, 1)])
    locked_tables = []

    def record_locks(state):
        if not state.is_select:
            return
        sql = str(state.statement.compile(dialect=postgresql.dialect()))
        if "FOR UPDATE" in sql:
            locked_tables.append(sql.split(" FROM ", 1)[1].split()[0])

    event.listen(db, "do_orm_execute", record_locks)
    try:
        for medicine in (first, second):
            result = prescription_service.dispense_medicine(
                db, prescription_id=prescription.id, medicine_id=medicine.id, quantity=1, performed_by=pharmacist.id
            )
    finally:
        event.remove(db, "do_orm_execute", record_locks)

    assert locked_tables == ["prescriptions", "prescription_items", "medicines"] * 2
    assert result.prescription.status == PrescriptionStatus.FILLED


def test_queries_by_patient_doctor_and_pending(
    db, make_patient, doctor, make_user, pharmacist, make_medicine, make_prescription
):
    other_doctor = make_user(RoleName.DOCTOR)
    alice = make_patient(first_name="Alice")
    bob = make_patient(first_name="Bob")
    medicine = make_medicine()

    first = make_prescription(alice, doctor, [(medicine, 1)])
    second = make_prescription(bob, other_doctor, [(medicine, 2)])
    prescription_service.dispense_medicine(
        db, prescription_id=first.id, medicine_id=medicine.id, quantity=1, performed_by=pharmacist.id
    )

    assert [p.id for p in prescription_service.list_prescriptions_for_patient(db, patient_id=alice.id)] == [first.id]
    assert [p.id for p in prescription_service.list_prescriptions_for_doctor(db, doctor_id=other_doctor.id)] == [
        second.id
    ]
    assert [p.id for p in prescription_service.list_pending_prescriptions(db)] == [second.id]


def test_manual_status_update(db, patient, doctor, make_medicine, make_prescription):
    prescription = make_prescription(patient, doctor, [(make_medicine(), 1)])

    updated = prescription_service.update_status(
        db, prescription_id=prescription.id, status=PrescriptionStatus.FILLED
    )

    assert updated.status == PrescriptionStatus.FILLED
    assert updated.is_filled
