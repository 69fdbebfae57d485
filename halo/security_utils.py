"""
Security helpers: password hashing, signed rating links and API keys
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import SECRET_KEY

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
RATING_TOKEN_TTL_DAYS = 60
API_KEY_PREFIX = "halo_"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password_bcrypt(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password_bcrypt(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# RATING LINK TOKENS
# ============================================================================


def create_rating_token(owner_email: str, appointment_id: str, client_id: str) -> str:
    expire = datetime.utcnow() + timedelta(days=RATING_TOKEN_TTL_DAYS)
    payload = {
        "sub": owner_email,
        "apt": appointment_id,
        "cli": client_id,
        "purpose": "rating",
        "exp": expire,
    }
    return jose_jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def verify_rating_token(token: str, appointment_id: str) -> Optional[dict[str, Any]]:
    """
    Decode a rating link token.

    Returns the payload if the signature is valid, the token has not expired
    and it was issued for ``appointment_id``; None otherwise.
    """
    try:
        payload = jose_jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rating token verification failed: {e}")
        return None

    if payload.get("purpose") != "rating" or payload.get("apt") != appointment_id:
        logger.warning(f"Rating token does not match appointment {appointment_id}")
        return None
    return payload


# ============================================================================
# API KEYS
# ============================================================================


def generate_api_key() -> str:
    return f"{API_KEY_PREFIX}{secrets.token_urlsafe(32)}"


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode()).hexdigest()
