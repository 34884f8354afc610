from decimal import Decimal


def _create_patient(api_client, name="Mary Seacole"):
    res = api_client.post(
        "/patients",
        json={"name": name, "age": 48, "gender": "female", "phone": "07700 900456"},
    )
    assert res.status_code == 201, res.text
    return res.json()["id"]


def _create_visit(api_client, patient_id, charges, visit_date="2026-03-02T09:30:00"):
    return api_client.post(
        "/visits",
        json={
            "patient_id": patient_id,
            "visit_date": visit_date,
            "treatment_provided": "Shoulder mobilisation",
            "duration": 40,
            "charges": charges,
        },
    )


def _create_payment(api_client, patient_id, amount, payment_type="payment", visit_id=None):
    return api_client.post(
        "/payments",
        json={
            "patient_id": patient_id,
            "visit_id": visit_id,
            "amount": amount,
            "payment_type": payment_type,
            "payment_method": "cash",
            "payment_date": "2026-03-02T10:15:00",
        },
    )


def _balance(api_client, patient_id) -> Decimal:
    res = api_client.get(f"/patients/{patient_id}")
    assert res.status_code == 200, res.text
    return Decimal(res.json()["balance"])


def test_visit_payment_and_advance_move_the_balance(api_client):
    patient_id = _create_patient(api_client)
    assert _balance(api_client, patient_id) == Decimal("0")

    res = _create_visit(api_client, patient_id, "500")
    assert res.status_code == 201, res.text
    assert _balance(api_client, patient_id) == Decimal("-500")

    res = _create_payment(api_client, patient_id, "300", payment_type="payment")
    assert res.status_code == 201, res.text
    assert _balance(api_client, patient_id) == Decimal("-200")

    res = _create_payment(api_client, patient_id, "1000", payment_type="advance")
    assert res.status_code == 201, res.text
    assert _balance(api_client, patient_id) == Decimal("800")

    res = api_client.get(f"/patients/{patient_id}/balance")
    assert res.status_code == 200, res.text
    body = res.json()
    assert Decimal(body["balance"]) == Decimal("800")
    assert Decimal(body["recomputed_balance"]) == Decimal("800")
    assert Decimal(body["drift"]) == Decimal("0")


def test_advance_and_payment_apply_the_same_delta(api_client):
    paying = _create_patient(api_client, name="Paying Patient")
    advancing = _create_patient(api_client, name="Advancing Patient")

    assert _create_payment(api_client, paying, "125.50", payment_type="payment").status_code == 201
    assert (
        _create_payment(api_client, advancing, "125.50", payment_type="advance").status_code == 201
    )

    assert _balance(api_client, paying) == Decimal("125.50")
    assert _balance(api_client, advancing) == Decimal("125.50")


def test_payment_linked_to_visit_settles_the_charge(api_client):
    patient_id = _create_patient(api_client)
    visit_id = _create_visit(api_client, patient_id, "75.00").json()["id"]

    res = _create_payment(api_client, patient_id, "75.00", visit_id=visit_id)
    assert res.status_code == 201, res.text
    assert res.json()["visit_id"] == visit_id
    assert _balance(api_client, patient_id) == Decimal("0")


def test_editing_visit_charges_does_not_repost_balance(api_client):
    patient_id = _create_patient(api_client)
    visit_id = _create_visit(api_client, patient_id, "500").json()["id"]

    res = api_client.put(f"/visits/{visit_id}", json={"charges": "650.00"})
    assert res.status_code == 200, res.text
    assert Decimal(res.json()["charges"]) == Decimal("650")

    assert _balance(api_client, patient_id) == Decimal("-500")
    body = api_client.get(f"/patients/{patient_id}/balance").json()
    assert Decimal(body["recomputed_balance"]) == Decimal("-650")
    assert Decimal(body["drift"]) == Decimal("150")


def test_deleting_a_payment_does_not_reverse_balance(api_client):
    patient_id = _create_patient(api_client)
    payment_id = _create_payment(api_client, patient_id, "40.00").json()["id"]
    assert _balance(api_client, patient_id) == Decimal("40")

    res = api_client.delete(f"/payments/{payment_id}")
    assert res.status_code == 204

    assert _balance(api_client, patient_id) == Decimal("40")
    body = api_client.get(f"/patients/{patient_id}/balance").json()
    assert Decimal(body["recomputed_balance"]) == Decimal("0")


def test_visit_for_unknown_patient_is_rejected_without_a_row(api_client):
    res = _create_visit(api_client, 424242, "90")
    assert res.status_code == 404
    assert res.json()["detail"] == "Patient not found"
    assert api_client.get("/visits").json() == []


def test_payment_for_unknown_patient_is_rejected_without_a_row(api_client):
    res = _create_payment(api_client, 424242, "90")
    assert res.status_code == 404
    assert api_client.get("/payments").json() == []


def test_payment_against_another_patients_visit_is_rejected(api_client):
    owner = _create_patient(api_client, name="Visit Owner")
    other = _create_patient(api_client, name="Someone Else")
    visit_id = _create_visit(api_client, owner, "60").json()["id"]

    res = _create_payment(api_client, other, "60", visit_id=visit_id)
    assert res.status_code == 400
    assert res.json()["detail"] == "Visit does not belong to this patient"
    assert _balance(api_client, other) == Decimal("0")


def test_balance_endpoint_unknown_patient(api_client):
    res = api_client.get("/patients/31337/balance")
    assert res.status_code == 404


def _failing_posting(*args, **kwargs):
    raise RuntimeError("ledger unavailable")


def test_visit_row_is_not_saved_when_balance_posting_fails(api_client, monkeypatch):
    patient_id = _create_patient(api_client)
    monkeypatch.setattr("physiotrack.routers.visits.apply_balance_delta", _failing_posting)

    res = _create_visit(api_client, patient_id, "500")
    assert res.status_code == 500
    assert res.json()["detail"] == "Internal server error"

    assert api_client.get(f"/patients/{patient_id}/visits").json() == []
    assert _balance(api_client, patient_id) == Decimal("0")


def test_payment_row_is_not_saved_when_balance_posting_fails(api_client, monkeypatch):
    patient_id = _create_patient(api_client)
    monkeypatch.setattr("physiotrack.routers.payments.apply_balance_delta", _failing_posting)

    res = _create_payment(api_client, patient_id, "300")
    assert res.status_code == 500

    assert api_client.get(f"/patients/{patient_id}/payments").json() == []
    assert _balance(api_client, patient_id) == Decimal("0")
