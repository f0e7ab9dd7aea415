import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from conftest import next_weekday
from medbook.application.scheduling.policy import SchedulingPolicy
from medbook.config import settings
from medbook.database import build_engine
from medbook.db.models import Notification
from medbook.dependencies import CurrentUser, get_current_user
from medbook.main import create_app
from medbook.utils import create_jwt_token


class RecordingNotifier:
    def __init__(self):
        self.booked = []
        self.confirmed = []

    async def appointment_booked(self, appointment):
        self.booked.append(appointment.reference)

    async def appointment_confirmed(self, appointment):
        self.confirmed.append(appointment.reference)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def user():
    return {"current": CurrentUser(id="u1", name="Jane Doe", phone="+250788000000", role="admin")}


@pytest.fixture
def client(tmp_path, notifier, user):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/api.db", poolclass=NullPool)
    app = create_app(db_engine=engine, notifier=notifier, policy=SchedulingPolicy(), rate_limit=1000)
    app.dependency_overrides[get_current_user] = lambda: user["current"]
    with TestClient(app) as c:
        yield c


@pytest.fixture
def catalog(client):
    hospital = client.post(
        "/admin/hospitals",
        json={"name": "King Faisal Hospital", "email": "info@kfh.rw", "phone": "+250788100000", "facilities": ["MRI"]},
    )
    assert hospital.status_code == 201
    test = client.post(
        "/admin/medical-tests",
        json={
            "name": "Chest X-Ray",
            "description": "PA view",
            "category": "radiology",
            "price": 15000,
            "duration": "30",
            "hospital_id": hospital.json()["id"],
        },
    )
    assert test.status_code == 201
    return {"hospital_id": hospital.json()["id"], "test_id": test.json()["id"]}


def _payload(catalog, day, time_slot):
    return {**catalog, "appointment_date": day.isoformat(), "time_slot": time_slot}


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["database"]["dialect"] == "sqlite"


def test_availability_config(client):
    body = client.get("/config/availability").json()
    assert body["availability"] == {
        "allowedDays": ["Monday", "Thursday"],
        "opens": "08:00",
        "closes": "17:00",
        "stepMinutes": 15,
        "defaultDurationMinutes": 45,
    }


def test_catalog_listing(client, catalog):
    hospitals = client.get("/hospitals/").json()
    assert [h["name"] for h in hospitals] == ["King Faisal Hospital"]
    assert hospitals[0]["facilities"] == ["MRI"]
    tests = client.get("/medical-tests/", params={"category": "radiology"}).json()
    assert [t["id"] for t in tests] == [catalog["test_id"]]
    assert client.get("/medical-tests/", params={"category": "cardiology"}).json() == []
    assert client.get(f"/medical-tests/{catalog['test_id']}").json()["duration"] == "30"
    assert client.get("/hospitals/missing").status_code == 404


def test_book_and_fetch(client, catalog, notifier):
    monday = next_weekday("monday")
    resp = client.post("/appointments/", json=_payload(catalog, monday, "09:00"))
    assert resp.status_code == 201
    appt = resp.json()
    assert appt["reference"].startswith("APT-")
    assert appt["status"] == "pending"
    assert appt["appointment_date"] == monday.isoformat()
    assert appt["hospital"]["name"] == "King Faisal Hospital"
    assert appt["patient_name"] == "Jane Doe"
    assert notifier.booked == [appt["reference"]]

    mine = client.get("/appointments/my").json()
    assert [a["id"] for a in mine] == [appt["id"]]
    assert client.get(f"/appointments/{appt['id']}").json()["reference"] == appt["reference"]
    assert client.get(f"/appointments/reference/{appt['reference']}").json()["id"] == appt["id"]


def test_overlap_returns_409(client, catalog, notifier):
    monday = next_weekday("monday")
    assert client.post("/appointments/", json=_payload(catalog, monday, "09:00")).status_code == 201
    resp = client.post("/appointments/", json=_payload(catalog, monday, "09:15"))
    assert resp.status_code == 409
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "slot_conflict"
    assert body["field"] == "time_slot"
    assert len(notifier.booked) == 1


def test_policy_and_validation_errors(client, catalog):
    saturday = next_weekday("saturday")
    resp = client.post("/appointments/", json=_payload(catalog, saturday, "09:00"))
    assert resp.status_code == 400
    assert resp.json()["error"] == "Appointments can only be scheduled Monday to Friday."

    resp = client.post("/appointments/", json={"hospital_id": catalog["hospital_id"]})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Hospital, test, date, and time are required"

    resp = client.post("/appointments/", json=_payload(catalog, next_weekday("monday"), "9h"))
    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"

    resp = client.post("/appointments/", json={**_payload(catalog, next_weekday("monday"), "09:00"), "test_id": "nope"})
    assert resp.status_code == 404


def test_availability_endpoint(client, catalog):
    monday = next_weekday("monday")
    client.post("/appointments/", json=_payload(catalog, monday, "09:00"))
    resp = client.get(
        "/appointments/availability",
        params={"hospital_id": catalog["hospital_id"], "date": monday.isoformat(), "test_id": catalog["test_id"]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["duration"] == 30
    assert "09:00" not in body["slots"]
    assert "08:00" in body["slots"]
    assert client.get("/appointments/availability", params={"date": monday.isoformat()}).status_code == 400


def test_admin_status_update_notifies_on_confirm(client, catalog, notifier):
    appt = client.post("/appointments/", json=_payload(catalog, next_weekday("monday"), "10:00")).json()

    resp = client.put(f"/admin/appointments/{appt['id']}/status", json={"status": "confirmed"})
    assert resp.status_code == 200
    assert resp.json()["appointment"]["status"] == "confirmed"
    assert notifier.confirmed == [appt["reference"]]

    listed = client.get("/admin/appointments", params={"status": "confirmed"}).json()["appointments"]
    assert [a["id"] for a in listed] == [appt["id"]]
    assert client.get("/admin/appointments", params={"status": "all"}).status_code == 200

    assert client.put(f"/admin/appointments/{appt['id']}/status", json={"status": "bogus"}).status_code == 400
    assert client.put("/admin/appointments/9999/status", json={"status": "confirmed"}).status_code == 404


def test_patient_cannot_use_admin_routes_or_others_appointments(client, catalog, user):
    appt = client.post("/appointments/", json=_payload(catalog, next_weekday("monday"), "11:00")).json()
    user["current"] = CurrentUser(id="u2", name="John Roe")
    assert client.get("/admin/appointments").status_code == 403
    assert client.get(f"/appointments/{appt['id']}").status_code == 404
    assert client.get("/appointments/my").json() == []


def test_requires_authentication(client):
    client.app.dependency_overrides.clear()
    resp = client.get("/appointments/my")
    assert resp.status_code == 401
    assert resp.json()["error"] == "Authentication required"


def test_bearer_token_identity_reaches_booking(client, catalog, monkeypatch):
    monkeypatch.setattr(settings, "SECRET_KEY", "test-secret")
    client.app.dependency_overrides.clear()
    token = create_jwt_token({"sub": "u9", "name": "Token User", "phone": "0788 000 009", "role": "patient"})
    headers = {"Authorization": f"Bearer {token}"}

    resp = client.post("/appointments/", json=_payload(catalog, next_weekday("thursday"), "14:00"), headers=headers)
    assert resp.status_code == 201
    assert resp.json()["patient_id"] == "u9"
    assert resp.json()["patient_phone"] == "+250788000009"
    assert client.get("/admin/appointments", headers=headers).status_code == 403
    assert client.get("/appointments/my", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_openapi_documents_booking_errors(client):
    responses = client.get("/openapi.json").json()["paths"]["/appointments/"]["post"]["responses"]
    assert {"201", "400", "404", "409"} <= set(responses)


def test_run_serves_on_configured_host_and_port(monkeypatch):
    import uvicorn
    from medbook import main

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    monkeypatch.setattr(settings, "HOST", "127.0.0.1")
    monkeypatch.setattr(settings, "PORT", 9123)
    main.run()
    target, kwargs = calls[0]
    assert target == "medbook.main:app"
    assert (kwargs["host"], kwargs["port"]) == ("127.0.0.1", 9123)


def test_admin_catalog_maintenance(client, catalog):
    hospital_id, test_id = catalog["hospital_id"], catalog["test_id"]

    resp = client.put(f"/admin/medical-tests/{test_id}", json={"price": 18000, "is_available": False})
    assert resp.status_code == 200
    assert resp.json()["price"] == 18000
    assert resp.json()["duration"] == "30"
    assert client.get("/medical-tests/").json() == []
    assert [t["id"] for t in client.get("/admin/medical-tests").json()] == [test_id]

    resp = client.put(f"/admin/hospitals/{hospital_id}", json={"phone": "0788 100 001", "facilities": ["MRI", "CT"]})
    assert resp.status_code == 200
    assert resp.json()["phone"] == "+250788100001"
    assert resp.json()["facilities"] == ["MRI", "CT"]
    assert resp.json()["name"] == "King Faisal Hospital"
    assert [h["id"] for h in client.get("/admin/hospitals").json()] == [hospital_id]

    assert client.put("/admin/hospitals/missing", json={"name": "Nowhere"}).status_code == 404
    assert client.put("/admin/medical-tests/missing", json={"price": 1}).status_code == 404
    assert client.delete("/admin/medical-tests/missing").status_code == 404

    resp = client.delete(f"/admin/hospitals/{hospital_id}")
    assert resp.status_code == 409
    assert resp.json()["code"] == "catalog_conflict"

    assert client.delete(f"/admin/medical-tests/{test_id}").status_code == 204
    assert client.delete(f"/admin/hospitals/{hospital_id}").status_code == 204
    assert client.get(f"/hospitals/{hospital_id}").status_code == 404


def test_booked_catalog_entries_cannot_be_deleted(client, catalog):
    assert client.post("/appointments/", json=_payload(catalog, next_weekday("monday"), "09:00")).status_code == 201
    assert client.delete(f"/admin/medical-tests/{catalog['test_id']}").status_code == 409
    assert client.delete(f"/admin/hospitals/{catalog['hospital_id']}").status_code == 409
    assert client.get(f"/medical-tests/{catalog['test_id']}").status_code == 200


def test_catalog_writes_report_conflicts_and_missing_hospital(client, catalog):
    duplicate = client.post(
        "/admin/hospitals",
        json={"name": "Another Hospital", "email": "info@kfh.rw", "phone": "+250788200000"},
    )
    assert duplicate.status_code == 409
    orphan = client.post(
        "/admin/medical-tests",
        json={"name": "CT Scan", "description": "Head", "category": "radiology", "price": 1, "hospital_id": "missing"},
    )
    assert orphan.status_code == 404


def test_patient_cannot_change_catalog(client, catalog, user):
    user["current"] = CurrentUser(id="u2", name="John Roe")
    assert client.put(f"/admin/hospitals/{catalog['hospital_id']}", json={"name": "Renamed"}).status_code == 403
    assert client.delete(f"/admin/medical-tests/{catalog['test_id']}").status_code == 403
    assert client.get("/admin/medical-tests").status_code == 403


def _add_notifications(client, *rows):
    async def insert():
        async with client.app.state.session_factory() as session:
            for row in rows:
                session.add(row)
            await session.commit()

    asyncio.run(insert())


def test_my_notifications_newest_first_and_mark_read(client):
    base = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    _add_notifications(
        client,
        Notification(
            patient_id="u1",
            type="appointment_confirmation",
            title="Appointment booked",
            message="Appointment APT-2026-000001 booked",
            data='{"appointmentId": 1, "reference": "APT-2026-000001"}',
            created_at=base,
        ),
        Notification(
            patient_id="u1",
            type="appointment_confirmation",
            title="Appointment confirmed",
            message="Your appointment APT-2026-000001 has been confirmed",
            channels='["sms", "in_app"]',
            priority="high",
            created_at=base + timedelta(hours=1),
        ),
        Notification(patient_id="u2", type="appointment_confirmation", title="Other", message="Not yours", created_at=base),
    )

    body = client.get("/notifications/my").json()
    assert [n["title"] for n in body["notifications"]] == ["Appointment confirmed", "Appointment booked"]
    assert body["unread"] == 2
    assert body["notifications"][0]["channels"] == ["sms", "in_app"]
    assert body["notifications"][1]["data"] == {"appointmentId": 1, "reference": "APT-2026-000001"}

    target = body["notifications"][1]["id"]
    resp = client.post(f"/notifications/{target}/read")
    assert resp.status_code == 200
    marked = resp.json()["notification"]
    assert marked["read"] is True
    assert marked["read_at"] is not None
    assert client.get("/notifications/my").json()["unread"] == 1

    assert client.put("/notifications/read-all").json()["updated_count"] == 1
    assert client.get("/notifications/my").json()["unread"] == 0


def test_cannot_read_someone_elses_notification(client):
    _add_notifications(client, Notification(patient_id="u2", type="appointment_confirmation", title="Other", message="Not yours"))
    resp = client.post("/notifications/1/read")
    assert resp.status_code == 404
    assert resp.json()["error"] == "Notification not found"
    assert client.post("/notifications/999/read").status_code == 404


def test_infinite_duration_does_not_break_availability(client, catalog):
    monday = next_weekday("monday")
    resp = client.get(
        "/appointments/availability",
        params={"hospital_id": catalog["hospital_id"], "date": monday.isoformat(), "duration": "Infinity"},
    )
    assert resp.status_code == 200
    assert resp.json()["duration"] == 45

    client.put(f"/admin/medical-tests/{catalog['test_id']}", json={"duration": "inf"})
    assert client.post("/appointments/", json=_payload(catalog, monday, "09:00")).status_code == 201
    assert client.post("/appointments/", json=_payload(catalog, monday, "09:30")).status_code == 409
