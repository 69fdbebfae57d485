from halo import database
from halo.models import UserData

from .conftest import OWNER_EMAIL, sample_document, signup


def test_load_returns_empty_document_for_new_account(client, owner):
    response = client.get("/load")

    assert response.status_code == 200
    assert response.json() == {
        "businessProfile": None,
        "clients": [],
        "appointments": [],
        "expenses": [],
        "ratings": [],
        "bonusEntries": [],
    }


def test_save_then_load_round_trip(client, owner):
    document = sample_document()

    saved = client.post("/save", json=document)
    assert saved.status_code == 200
    assert saved.json() == {"success": True}

    loaded = client.get("/load").json()
    assert loaded["businessProfile"]["name"] == "Glow Studio"
    assert [c["id"] for c in loaded["clients"]] == ["c1", "c2"]
    assert [a["id"] for a in loaded["appointments"]] == ["a1", "a2", "a3"]
    assert loaded["appointments"][2]["recurrence"]["frequency"] == "WEEKLY"
    assert loaded["expenses"][0]["amount"] == 25.5
    assert loaded["bonusEntries"][0]["note"] == "Tips"

    # loading what was loaded and saving it again changes nothing
    client.post("/save", json=loaded)
    assert client.get("/load").json() == loaded


def test_save_replaces_whole_document(client, owner):
    client.post("/save", json=sample_document())
    client.post("/save", json={"clients": [{"id": "only", "name": "Only Client"}]})

    loaded = client.get("/load").json()
    assert [c["id"] for c in loaded["clients"]] == ["only"]
    assert loaded["appointments"] == []
    assert loaded["businessProfile"] is None


def test_unknown_fields_survive_round_trip(client, owner):
    document = sample_document()
    document["clients"][0]["birthday"] = "1990-05-01"
    document["businessProfile"]["staff"] = [{"id": "s1", "name": "Jo"}]

    client.post("/save", json=document)
    loaded = client.get("/load").json()

    assert loaded["clients"][0]["birthday"] == "1990-05-01"
    assert loaded["businessProfile"]["staff"] == [{"id": "s1", "name": "Jo"}]


def test_one_row_per_account(client, db):
    signup(client)
    client.post("/save", json=sample_document())
    client.post("/save", json=sample_document())

    assert db.query(UserData).filter(UserData.email == OWNER_EMAIL).count() == 1


def test_documents_are_isolated_between_accounts(client, engine):
    signup(client, "first@example.com")
    client.post("/save", json=sample_document())

    client.cookies.clear()
    signup(client, "second@example.com")
    assert client.get("/load").json()["clients"] == []


def test_load_and_save_require_session(client):
    assert client.get("/load").status_code == 401
    assert client.post("/save", json=sample_document()).status_code == 401


def test_missing_database_answers_503(client, owner, monkeypatch):
    monkeypatch.setattr(database, "engine", None)

    response = client.get("/load")
    assert response.status_code == 503
    assert response.json()["detail"] == "Database not configured"
