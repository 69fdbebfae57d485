from datetime import datetime, timedelta

from jose import jwt

from halo import rate_limiter
from halo.config import SECRET_KEY
from halo.security_headers import get_security_headers_dict
from halo.security_utils import (
    ALGORITHM,
    API_KEY_PREFIX,
    create_rating_token,
    generate_api_key,
    hash_api_key,
    hash_password_bcrypt,
    verify_password_bcrypt,
    verify_rating_token,
)


def test_password_hashing():
    hashed = hash_password_bcrypt("secret123")
    assert hashed != "secret123"
    assert verify_password_bcrypt("secret123", hashed)
    assert not verify_password_bcrypt("secret124", hashed)
    assert not verify_password_bcrypt("secret123", "not-a-hash")


class TestRatingTokens:
    def test_round_trip(self):
        token = create_rating_token("owner@example.com", "a1", "c1")
        payload = verify_rating_token(token, "a1")
        assert payload["sub"] == "owner@example.com"
        assert payload["cli"] == "c1"

    def test_bound_to_appointment(self):
        token = create_rating_token("owner@example.com", "a1", "c1")
        assert verify_rating_token(token, "a2") is None

    def test_expired(self):
        payload = {
            "sub": "owner@example.com",
            "apt": "a1",
            "cli": "c1",
            "purpose": "rating",
            "exp": datetime.utcnow() - timedelta(minutes=1),
        }
        token = jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)
        assert verify_rating_token(token, "a1") is None

    def test_wrong_purpose_or_signature(self):
        other_purpose = jwt.encode(
            {"sub": "owner@example.com", "apt": "a1", "purpose": "login"}, SECRET_KEY, algorithm=ALGORITHM
        )
        assert verify_rating_token(other_purpose, "a1") is None
        assert verify_rating_token("garbage", "a1") is None


def test_api_keys():
    key = generate_api_key()
    assert key.startswith(API_KEY_PREFIX)
    assert generate_api_key() != key
    assert hash_api_key(key) == hash_api_key(key)
    assert len(hash_api_key(key)) == 64


def test_rate_limit_window():
    key = "rate_limit:test:1.2.3.4"
    results = [rate_limiter.check_rate_limit(key, limit=3, window_seconds=60)[0] for _ in range(4)]
    assert results == [True, True, True, False]

    # separate keys are counted separately
    assert rate_limiter.check_rate_limit("rate_limit:test:5.6.7.8", limit=3, window_seconds=60)[0]


def test_security_headers_on_responses(client):
    response = client.get("/")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "default-src 'none'" in response.headers["Content-Security-Policy"]
    assert "Strict-Transport-Security" not in get_security_headers_dict("development")
    assert "Strict-Transport-Security" in get_security_headers_dict("production")

    health = client.get("/health")
    assert health.json()["status"] == "healthy"
    assert "Content-Security-Policy" not in health.headers
