from datetime import datetime
from decimal import Decimal


def _patient_payload(**overrides):
    payload = {
        "name": "Ada Lovelace",
        "age": 36,
        "gender": "female",
        "phone": "07700 900123",
        "email": "ada@example.com",
        "address": "12 St James's Square",
        "medical_history": "Lower back pain",
        "emergency_contact": "William King",
    }
    payload.update(overrides)
    return payload


def test_create_then_read_round_trip(api_client):
    payload = _patient_payload()
    res = api_client.post("/patients", json=payload)
    assert res.status_code == 201, res.text
    created = res.json()

    fetched = api_client.get(f"/patients/{created['id']}")
    assert fetched.status_code == 200, fetched.text
    body = fetched.json()
    for field, value in payload.items():
        assert body[field] == value
    assert Decimal(body["balance"]) == Decimal("0")
    assert isinstance(body["id"], int)
    assert datetime.fromisoformat(body["created_at"])


def test_balance_cannot_be_supplied_on_create_or_update(api_client):
    res = api_client.post("/patients", json=_patient_payload(balance="250.00"))
    assert res.status_code == 201, res.text
    patient_id = res.json()["id"]
    assert Decimal(res.json()["balance"]) == Decimal("0")

    res = api_client.put(f"/patients/{patient_id}", json={"balance": "999.00", "age": 37})
    assert res.status_code == 200, res.text
    assert res.json()["age"] == 37
    assert Decimal(res.json()["balance"]) == Decimal("0")


def test_create_patient_validation_errors_are_listed(api_client):
    res = api_client.post("/patients", json={"name": "", "age": "old"})
    assert res.status_code == 422
    detail = res.json()["detail"]
    assert isinstance(detail, list)
    fields = {tuple(item["loc"][-1:]) for item in detail}
    assert ("name",) in fields
    assert ("age",) in fields
    assert ("phone",) in fields


def test_update_is_partial_and_can_clear_optional_fields(api_client):
    patient_id = api_client.post("/patients", json=_patient_payload()).json()["id"]

    res = api_client.put(
        f"/patients/{patient_id}", json={"phone": "020 7946 0000", "email": None, "name": None}
    )
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["phone"] == "020 7946 0000"
    assert body["email"] is None
    assert body["name"] == "Ada Lovelace"


def test_missing_patient_returns_404(api_client):
    assert api_client.get("/patients/999999").status_code == 404
    assert api_client.put("/patients/999999", json={"age": 40}).status_code == 404
    assert api_client.delete("/patients/999999").status_code == 404
    assert api_client.get("/patients/999999/visits").status_code == 404
    assert api_client.get("/patients/999999/payments").status_code == 404
    assert api_client.get("/patients/999999").json()["detail"] == "Patient not found"


def test_list_patients_newest_first_with_search(api_client):
    first = api_client.post("/patients", json=_patient_payload(name="Grace Hopper")).json()
    second = api_client.post(
        "/patients", json=_patient_payload(name="Alan Turing", phone="01234 567890")
    ).json()

    res = api_client.get("/patients")
    assert res.status_code == 200, res.text
    ids = [item["id"] for item in res.json()]
    assert ids.index(second["id"]) < ids.index(first["id"])

    res = api_client.get("/patients", params={"q": "hopper"})
    assert [item["id"] for item in res.json()] == [first["id"]]

    res = api_client.get("/patients", params={"q": "567890"})
    assert [item["id"] for item in res.json()] == [second["id"]]


def test_delete_patient_cascades_visits_and_payments(api_client):
    patient_id = api_client.post("/patients", json=_patient_payload()).json()["id"]
    visit = api_client.post(
        "/visits",
        json={
            "patient_id": patient_id,
            "visit_date": "2026-02-03T10:00:00",
            "treatment_provided": "Manual therapy",
            "duration": 45,
            "charges": "60.00",
        },
    ).json()
    payment = api_client.post(
        "/payments",
        json={
            "patient_id": patient_id,
            "visit_id": visit["id"],
            "amount": "60.00",
            "payment_type": "payment",
            "payment_method": "card",
            "payment_date": "2026-02-03T11:00:00",
        },
    ).json()

    res = api_client.delete(f"/patients/{patient_id}")
    assert res.status_code == 204

    assert api_client.get(f"/patients/{patient_id}").status_code == 404
    assert api_client.get(f"/visits/{visit['id']}").status_code == 404
    assert api_client.get(f"/payments/{payment['id']}").status_code == 404


def test_scoped_reads_only_return_the_patients_rows(api_client):
    ada = api_client.post("/patients", json=_patient_payload()).json()["id"]
    alan = api_client.post("/patients", json=_patient_payload(name="Alan Turing")).json()["id"]
    for patient_id, day in ((ada, 3), (ada, 10), (alan, 5)):
        res = api_client.post(
            "/visits",
            json={
                "patient_id": patient_id,
                "visit_date": f"2026-02-{day:02d}T09:00:00",
                "treatment_provided": "Assessment",
                "duration": 30,
                "charges": "40.00",
            },
        )
        assert res.status_code == 201, res.text

    res = api_client.get(f"/patients/{ada}/visits")
    assert res.status_code == 200, res.text
    dates = [item["visit_date"] for item in res.json()]
    assert dates == ["2026-02-10T09:00:00", "2026-02-03T09:00:00"]
    assert api_client.get(f"/patients/{ada}/payments").json() == []


def test_blank_email_is_stored_as_missing(api_client):
    res = api_client.post("/patients", json=_patient_payload(email=""))
    assert res.status_code == 201, res.text
    patient_id = res.json()["id"]
    assert res.json()["email"] is None

    res = api_client.put(f"/patients/{patient_id}", json={"email": "ada@example.org"})
    assert res.json()["email"] == "ada@example.org"
    res = api_client.put(f"/patients/{patient_id}", json={"email": ""})
    assert res.status_code == 200, res.text
    assert res.json()["email"] is None

    res = api_client.post("/patients", json=_patient_payload(email="not-an-email"))
    assert res.status_code == 422


def test_list_patients_returns_everyone_unless_limited(api_client):
    for index in range(3):
        api_client.post("/patients", json=_patient_payload(name=f"Patient {index}"))

    assert len(api_client.get("/patients").json()) == 3
    assert len(api_client.get("/patients", params={"limit": 2}).json()) == 2
    assert len(api_client.get("/patients", params={"offset": 1}).json()) == 2
