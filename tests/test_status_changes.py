from halo.domain.scheduling import notifications
from halo.email_service import EmailNotConfiguredError

from .conftest import OWNER_EMAIL, sample_document, signup


def complete(client, appointment_id):
    return client.patch(f"/appointments/{appointment_id}/status", json={"status": "COMPLETED"})


def test_completing_sends_exactly_one_rating_email(client, owner, sent_emails):
    client.post("/save", json=sample_document())

    first = complete(client, "a1")
    assert first.status_code == 200
    assert first.json()["ratingRequestSent"] is True
    assert first.json()["previousStatus"] == "CONFIRMED"

    second = complete(client, "a1")
    assert second.json()["ratingRequestSent"] is False

    assert len(sent_emails) == 1
    email = sent_emails[0]
    assert email["to"] == "alice@example.com"
    assert email["business_name"] == "Glow Studio"
    assert email["service_name"] == "Haircut"
    assert "/rate/a1?token=" in email["rating_link"]

    stored = client.get("/load").json()
    assert stored["appointments"][0]["status"] == "COMPLETED"


def test_no_email_for_client_without_address(client, owner, sent_emails):
    client.post("/save", json=sample_document())

    response = complete(client, "a2")
    assert response.status_code == 200
    assert response.json()["ratingRequestSent"] is False
    assert sent_emails == []


def test_no_email_for_other_transitions(client, owner, sent_emails):
    client.post("/save", json=sample_document())

    response = client.patch("/appointments/a1/status", json={"status": "CANCELLED"})
    assert response.json()["appointment"]["status"] == "CANCELLED"
    assert sent_emails == []


def test_completing_recurring_occurrences(client, owner, sent_emails):
    client.post("/save", json=sample_document())

    week2 = {"status": "COMPLETED", "occurrenceDate": "2026-03-09"}
    response = client.patch("/appointments/a3/status", json=week2)
    instance = response.json()["appointment"]
    assert instance["id"].endswith("_completed")
    assert instance["seriesId"] == "a3"
    assert instance["date"] == "2026-03-09"
    assert response.json()["ratingRequestSent"] is True
    assert f"/rate/{instance['id']}?token=" in sent_emails[0]["rating_link"]

    again = client.patch("/appointments/a3/status", json=week2)
    assert again.json()["ratingRequestSent"] is False
    assert again.json()["appointment"]["id"] == instance["id"]

    week1 = client.patch("/appointments/a3/status", json={"status": "COMPLETED"})
    assert week1.json()["appointment"]["date"] == "2026-03-02"
    assert len(sent_emails) == 2

    stored = [a for a in client.get("/load").json()["appointments"] if a.get("seriesId") == "a3"]
    assert sorted(a["date"] for a in stored) == ["2026-03-02", "2026-03-09"]


def test_occurrence_outside_series_is_rejected(client, owner, sent_emails):
    client.post("/save", json=sample_document())

    response = client.patch("/appointments/a3/status", json={"status": "COMPLETED", "occurrenceDate": "2026-03-10"})
    assert response.status_code == 400
    assert sent_emails == []


def test_email_failure_does_not_fail_the_change(client, owner, monkeypatch):
    async def unconfigured(**kwargs):
        raise EmailNotConfiguredError("Email service not configured")

    monkeypatch.setattr(notifications, "send_rating_request_email", unconfigured)
    client.post("/save", json=sample_document())

    response = complete(client, "a1")
    assert response.status_code == 200
    assert response.json()["ratingRequestSent"] is False
    assert client.get("/load").json()["appointments"][0]["status"] == "COMPLETED"


def test_status_change_errors(client, owner, sent_emails):
    client.post("/save", json=sample_document())

    assert complete(client, "missing").status_code == 404
    assert client.patch("/appointments/a1/status", json={"status": "DONE"}).status_code == 422


def test_rating_request_endpoint(client, owner, sent_emails):
    payload = {
        "appointmentId": "a9",
        "clientId": "c9",
        "clientName": "Erin",
        "clientEmail": "erin@example.com",
        "date": "2026-03-10",
        "time": "15:00",
        "serviceName": "Haircut",
        "businessName": "Glow Studio",
    }
    assert client.post("/notifications/rating-request", json=payload).json() == {"sent": True}
    assert sent_emails[0]["to"] == "erin@example.com"

    payload["clientEmail"] = None
    assert client.post("/notifications/rating-request", json=payload).json() == {"sent": False}
    assert len(sent_emails) == 1


def test_public_booking(client, sent_emails):
    signup(client)
    client.post("/save", json=sample_document())
    client.cookies.clear()

    page = client.get(f"/book/{OWNER_EMAIL}")
    assert page.status_code == 200
    assert page.json()["name"] == "Glow Studio"
    assert "clients" not in page.json()

    response = client.post(
        f"/book/{OWNER_EMAIL}",
        json={
            "name": "Alice",
            "email": "Alice@Example.com",
            "serviceId": "svc2",
            "date": "2026-03-12",
            "time": "13:00",
        },
    )
    assert response.status_code == 201
    body = response.json()
    assert body["appointment"]["status"] == "PENDING"
    assert body["appointment"]["clientId"] == "c1"
    assert body["client"]["name"] == "Alice Smith"

    response = client.post(
        f"/book/{OWNER_EMAIL}",
        json={"name": "Frank", "email": "frank@example.com", "serviceId": "svc1", "date": "2026-03-12", "time": "15:00"},
    )
    frank_id = response.json()["client"]["id"]

    client.post("/auth/email", json={"email": OWNER_EMAIL, "password": "secret123"})
    stored = client.get("/load").json()
    assert len(stored["appointments"]) == 5
    assert [c["id"] for c in stored["clients"]] == ["c1", "c2", frank_id]


def test_public_booking_unknown_business_or_service(client, owner):
    client.post("/save", json=sample_document())

    assert client.get("/book/nobody@example.com").status_code == 404
    response = client.post(
        f"/book/{OWNER_EMAIL}",
        json={"name": "Gus", "serviceId": "nope", "date": "2026-03-12", "time": "15:00"},
    )
    assert response.status_code == 400
