import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import SESSION_COOKIE_NAME
from .database import get_db
from .models import ApiKey
from .security_utils import API_KEY_PREFIX, hash_api_key
from .sessions import sessions

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_session_id(request: Request) -> Optional[str]:
    return request.cookies.get(SESSION_COOKIE_NAME)


async def get_current_email(request: Request) -> str:
    """Resolve the signed-in account from the session cookie"""
    email = sessions.verify(get_session_id(request))
    if not email:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return email


async def get_api_key_owner(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> str:
    """Resolve the account behind an ``Authorization: Bearer halo_...`` key"""
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide an API key in the Authorization header.",
        )

    raw_key = credentials.credentials
    if not raw_key.startswith(API_KEY_PREFIX):
        logger.warning(f"⚠️ Malformed API key received, length: {len(raw_key)}")
        raise HTTPException(status_code=401, detail="Invalid API key")

    api_key = db.query(ApiKey).filter(ApiKey.key_hash == hash_api_key(raw_key)).first()
    if not api_key:
        logger.warning("⚠️ Unknown API key presented")
        raise HTTPException(status_code=401, detail="Invalid API key")

    api_key.last_used_at = datetime.now(timezone.utc)
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.warning(f"⚠️ Failed to record API key usage: {e}")

    logger.debug(f"✅ API key {api_key.key_prefix} authenticated for {api_key.user_email}")
    return api_key.user_email
