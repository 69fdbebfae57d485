import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from halo import database, rate_limiter
from halo.database import Base, configure_engine
from halo.domain.scheduling import notifications
from halo.main import app
from halo.sessions import sessions

OWNER_EMAIL = "owner@example.com"
OWNER_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _isolated_process_state(monkeypatch):
    """Sessions and rate limit counters are process globals; start every test clean"""
    monkeypatch.setattr(rate_limiter, "redis_client", None)
    monkeypatch.setattr(rate_limiter, "_redis_unavailable", True)
    sessions.clear()
    rate_limiter.reset_rate_limits()
    yield
    sessions.clear()
    rate_limiter.reset_rate_limits()


@pytest.fixture
def engine():
    engine = configure_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture rating request emails instead of sending them"""
    sent = []

    async def fake_send_rating_request_email(**kwargs):
        sent.append(kwargs)
        return {"id": f"email_{len(sent)}"}

    monkeypatch.setattr(notifications, "send_rating_request_email", fake_send_rating_request_email)
    return sent


def signup(client: TestClient, email: str = OWNER_EMAIL, password: str = OWNER_PASSWORD):
    response = client.post("/auth/signup", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def owner(client):
    """A signed-up account; ``client`` carries its session cookie"""
    return signup(client)


def sample_document() -> dict:
    return {
        "businessProfile": {
            "name": "Glow Studio",
            "ownerName": "Sam",
            "email": OWNER_EMAIL,
            "category": "Salon",
            "avatarUrl": None,
            "themePreference": "dark",
            "services": [
                {"id": "svc1", "name": "Haircut", "durationMin": 45, "price": 40, "description": ""},
                {"id": "svc2", "name": "Color Treatment", "durationMin": 90, "price": 120, "description": ""},
            ],
            "taxRate": 8.25,
            "monthlyRevenueGoal": 400,
            "workingHours": {"start": "09:00", "end": "18:00"},
        },
        "clients": [
            {
                "id": "c1",
                "name": "Alice Smith",
                "email": "alice@example.com",
                "phone": "555-0101",
                "notes": ["Prefers mornings"],
                "preferences": "Quiet chair",
                "lastVisit": None,
            },
            {
                "id": "c2",
                "name": "Bob Jones",
                "email": "",
                "phone": "555-0102",
                "notes": [],
                "preferences": "",
                "lastVisit": None,
            },
        ],
        "appointments": [
            {
                "id": "a1",
                "clientId": "c1",
                "clientName": "Alice Smith",
                "serviceId": "svc1",
                "date": "2026-03-02",
                "time": "10:00",
                "status": "CONFIRMED",
            },
            {
                "id": "a2",
                "clientId": "c2",
                "clientName": "Bob Jones",
                "serviceId": "svc2",
                "date": "2026-03-02",
                "time": "09:00",
                "status": "PENDING",
            },
            {
                "id": "a3",
                "clientId": "c1",
                "clientName": "Alice Smith",
                "serviceId": "svc1",
                "date": "2026-03-02",
                "time": "14:00",
                "status": "CONFIRMED",
                "recurrence": {"frequency": "WEEKLY", "interval": 1},
            },
        ],
        "expenses": [{"id": "e1", "name": "Shampoo", "amount": 25.5, "date": "2026-03-01", "category": "Supplies"}],
        "ratings": [],
        "bonusEntries": [{"id": "b1", "amount": 50, "date": "2026-03-01", "note": "Tips"}],
    }
