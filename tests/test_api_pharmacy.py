# tests/test_api_pharmacy.py
from decimal import Decimal

from app.utils.datetime_utils import utc_today

API = "/api/v1"


def _create_medicine(client, **overrides):
    payload = {
        "name": "Paracetamol 500mg",
        "unit_price": "10.50",
        "current_stock": 100,
        "minimum_stock_level": 20,
    }
    payload.update(overrides)
    response = client.post(f"{API}/medicines", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _create_patient(client, **overrides):
    payload = {
        "first_name": "John",
        "last_name": "Doe",
        "date_of_birth": "1985-04-12",
        "gender": "male",
        "phone": "+1 555 010 0200",
    }
    payload.update(overrides)
    response = client.post(f"{API}/patients", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_patient_crud(client):
    patient = _create_patient(client)
    assert patient["phone"] == "+15550100200"
    assert patient["full_name"] == "John Doe"

    updated = client.patch(f"{API}/patients/{patient['id']}", json={"allergies": "Penicillin"})
    assert updated.status_code == 200
    assert updated.json()["allergies"] == "Penicillin"

    found = client.get(f"{API}/patients/search", params={"q": "doe"})
    assert found.status_code == 200
    assert [p["id"] for p in found.json()] == [patient["id"]]

    assert client.delete(f"{API}/patients/{patient['id']}").status_code == 204
    missing = client.get(f"{API}/patients/{patient['id']}")
    assert missing.status_code == 404
    assert missing.json()["detail"] == f"Patient with id {patient['id']} not found"


def test_patient_validation_errors(client):
    response = client.post(
        f"{API}/patients",
        json={
            "first_name": "",
            "last_name": "Doe",
            "date_of_birth": "2999-01-01",
            "gender": "unknown",
            "phone": "12",
        },
    )

    assert response.status_code == 422


def test_medicine_endpoints(client, pharmacist):
    medicine = _create_medicine(client, name="Ibuprofen 400mg", current_stock=5, minimum_stock_level=30)
    assert Decimal(medicine["unit_price"]) == Decimal("10.50")
    assert medicine["is_low_stock"] is True
    assert medicine["shortage"] == 25

    low = client.get(f"{API}/medicines/low-stock").json()
    assert [item["medicine_id"] for item in low] == [medicine["id"]]

    restocked = client.post(
        f"{API}/medicines/{medicine['id']}/stock",
        json={"new_stock": 60, "performed_by": pharmacist.id, "reason": "Delivery"},
    )
    assert restocked.status_code == 200
    assert restocked.json()["current_stock"] == 60

    ledger = client.get(f"{API}/inventory/transactions", params={"medicine_id": medicine["id"]}).json()
    assert [(t["transaction_type"], t["quantity"]) for t in ledger] == [("addition", 55)]

    # Medicines with ledger history are kept
    assert client.delete(f"{API}/medicines/{medicine['id']}").status_code == 409


def test_prescription_dispense_and_payment_flow(client, doctor, pharmacist):
    patient = _create_patient(client)
    paracetamol = _create_medicine(client, name="Paracetamol", unit_price="10.50", current_stock=50)
    amoxicillin = _create_medicine(client, name="Amoxicillin", unit_price="25.75", current_stock=1)

    visit = client.post(
        f"{API}/visits",
        json={"patient_id": patient["id"], "doctor_id": doctor.id, "reason_for_visit": "Sore throat"},
    )
    assert visit.status_code == 201

    created = client.post(
        f"{API}/prescriptions",
        json={
            "patient_id": patient["id"],
            "doctor_id": doctor.id,
            "visit_id": visit.json()["id"],
            "items": [
                {"medicine_id": paracetamol["id"], "quantity": 2, "dosage_instructions": "Twice daily"},
                {"medicine_id": amoxicillin["id"], "quantity": 1, "dosage_instructions": "Once daily"},
            ],
        },
    )
    assert created.status_code == 201, created.text
    prescription = created.json()
    assert Decimal(prescription["total_amount"]) == Decimal("46.75")
    assert prescription["status"] == "pending"

    dispense_url = f"{API}/prescriptions/{prescription['id']}/dispense"
    first = client.post(
        dispense_url, json={"medicine_id": paracetamol["id"], "quantity": 2, "performed_by": pharmacist.id}
    )
    assert first.status_code == 200, first.text
    assert first.json()["remaining_stock"] == 48
    assert first.json()["prescription_status"] == "partially_filled"

    too_many = client.post(
        dispense_url, json={"medicine_id": paracetamol["id"], "quantity": 1, "performed_by": pharmacist.id}
    )
    assert too_many.status_code == 400

    second = client.post(
        dispense_url, json={"medicine_id": amoxicillin["id"], "quantity": 1, "performed_by": pharmacist.id}
    )
    assert second.json()["prescription_status"] == "filled"

    paid = client.post(
        f"{API}/payments",
        json={
            "patient_id": patient["id"],
            "prescription_id": prescription["id"],
            "amount": "46.75",
            "payment_method": "card",
            "processed_by": pharmacist.id,
        },
    )
    assert paid.status_code == 201, paid.text

    today = utc_today().isoformat()
    total = client.get(f"{API}/payments/total-by-date", params={"date": today}).json()
    assert Decimal(total["total_amount"]) == Decimal("46.75")
    assert total["payment_count"] == 1

    sales = client.get(f"{API}/reports/sales", params={"start_date": today, "end_date": today}).json()
    assert Decimal(sales["total_sales"]) == Decimal("46.75")

    open_range = {"start_date": "2024-01-01", "end_date": "9999-12-31"}
    open_sales = client.get(f"{API}/reports/sales", params=open_range)
    assert open_sales.status_code == 200, open_sales.text
    assert Decimal(open_sales.json()["total_sales"]) == Decimal("46.75")
    open_daily = client.get(f"{API}/reports/daily-sales", params=open_range)
    assert [row["date"] for row in open_daily.json()] == [today]
    open_payments = client.get(f"{API}/payments/by-date-range", params=open_range)
    assert [p["id"] for p in open_payments.json()] == [paid.json()["id"]]
    open_ledger = client.get(f"{API}/inventory/transactions", params=open_range)
    assert open_ledger.status_code == 200
    assert len(open_ledger.json()) == 2
    assert client.get(f"{API}/reports/top-selling", params={"end_date": "9999-12-31"}).status_code == 200

    top = client.get(f"{API}/reports/top-selling", params={"order_by": "revenue"}).json()
    assert [item["medicine_name"] for item in top] == ["Amoxicillin", "Paracetamol"]


def test_dispense_with_insufficient_stock_returns_conflict(client, doctor, pharmacist):
    patient = _create_patient(client)
    medicine = _create_medicine(client, current_stock=1)
    prescription = client.post(
        f"{API}/prescriptions",
        json={
            "patient_id": patient["id"],
            "doctor_id": doctor.id,
            "items": [{"medicine_id": medicine["id"], "quantity": 5, "dosage_instructions": "Daily"}],
        },
    ).json()

    response = client.post(
        f"{API}/prescriptions/{prescription['id']}/dispense",
        json={"medicine_id": medicine["id"], "quantity": 2, "performed_by": pharmacist.id},
    )

    assert response.status_code == 409
    assert "Available: 1, Required: 2" in response.json()["detail"]
    assert client.get(f"{API}/medicines/{medicine['id']}").json()["current_stock"] == 1


def test_prescription_with_duplicate_medicine_is_rejected(client, doctor):
    patient = _create_patient(client)
    medicine = _create_medicine(client)
    item = {"medicine_id": medicine["id"], "quantity": 1, "dosage_instructions": "Daily"}

    response = client.post(
        f"{API}/prescriptions",
        json={"patient_id": patient["id"], "doctor_id": doctor.id, "items": [item, item]},
    )

    assert response.status_code == 422


def test_bulk_update_is_all_or_nothing(client, pharmacist):
    medicine = _create_medicine(client, current_stock=10)

    response = client.post(
        f"{API}/inventory/bulk-update",
        json={
            "performed_by": pharmacist.id,
            "updates": [
                {"medicine_id": medicine["id"], "transaction_type": "addition", "quantity": 5, "reason": "In"},
                {"medicine_id": 999, "transaction_type": "addition", "quantity": 5, "reason": "In"},
            ],
        },
    )

    assert response.status_code == 404
    assert client.get(f"{API}/medicines/{medicine['id']}").json()["current_stock"] == 10
    assert client.get(f"{API}/inventory/transactions").json() == []


def test_report_export_download(client):
    _create_medicine(client, name="Low", current_stock=1, minimum_stock_level=5)

    response = client.get(f"{API}/reports/export", params={"report_type": "low_stock", "format": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == "attachment; filename=low_stock_report.csv"
    assert response.text.splitlines()[0] == "Medicine ID,Medicine,Current Stock,Minimum Level,Shortage,Supplier"

    missing_range = client.get(f"{API}/reports/export", params={"report_type": "sales", "format": "pdf"})
    assert missing_range.status_code == 400


def test_dashboard_summarizes_today(client, doctor):
    patient = _create_patient(client)
    _create_medicine(client, name="Low", current_stock=1, minimum_stock_level=5)
    medicine = _create_medicine(client, name="Stocked")
    client.post(
        f"{API}/prescriptions",
        json={
            "patient_id": patient["id"],
            "doctor_id": doctor.id,
            "items": [{"medicine_id": medicine["id"], "quantity": 1, "dosage_instructions": "Daily"}],
        },
    )

    response = client.get(f"{API}/reports/dashboard")

    assert response.status_code == 200, response.text
    assert response.json() == {
        "date": utc_today().isoformat(),
        "today_sales": "0.00",
        "today_transactions": 0,
        "pending_prescriptions": 1,
        "low_stock_items": 1,
        "expired_items": 0,
    }
