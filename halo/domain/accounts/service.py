"""Account service - signup, password and Google sign-in"""

import logging
from typing import Optional

import httpx
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import GOOGLE_USERINFO_URL
from ...security_utils import hash_password_bcrypt, verify_password_bcrypt
from ...sessions import sessions
from ..documents.repository import DocumentRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
GOOGLE_TIMEOUT_SECONDS = 10


def _require_email(email: Optional[str]) -> str:
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="Valid email required")
    return email.strip()


class AccountService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DocumentRepository()

    def signup(self, email: Optional[str], password: Optional[str]) -> str:
        """Create an account and return a fresh session id"""
        email = _require_email(email)
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        if self.repo.get_row(self.db, email):
            raise HTTPException(status_code=400, detail="Email already registered")

        try:
            self.repo.create_account(self.db, email, hash_password_bcrypt(password))
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Signup failed for {email}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create account") from e

        logger.info(f"✅ Account created: {email}")
        return sessions.create(email)

    def login(self, email: Optional[str], password: Optional[str]) -> str:
        email = _require_email(email)
        if not password:
            raise HTTPException(status_code=400, detail="Password required")

        row = self.repo.get_row(self.db, email)
        # Google-only accounts have no password and cannot sign in this way
        if not row or not row.password_hash or not verify_password_bcrypt(password, row.password_hash):
            logger.warning(f"⚠️ Failed email login for {email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")

        return sessions.create(email)

    async def google_login(self, access_token: Optional[str]) -> tuple[str, str]:
        """Verify a Google access token against the userinfo endpoint"""
        if not access_token:
            raise HTTPException(status_code=400, detail="Access token required")

        try:
            async with httpx.AsyncClient(timeout=GOOGLE_TIMEOUT_SECONDS) as client:
                response = await client.get(
                    GOOGLE_USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Google userinfo request failed: {e}")
            raise HTTPException(status_code=500, detail="Authentication failed") from e

        if response.status_code != 200:
            logger.warning(f"⚠️ Google rejected access token: HTTP {response.status_code}")
            raise HTTPException(status_code=401, detail="Invalid Google token")

        email = response.json().get("email")
        if not email:
            raise HTTPException(status_code=400, detail="Email not found in Google account")

        if self.repo.get_row(self.db, email) is None:
            try:
                self.repo.create_account(self.db, email)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Could not create Google account row for {email}: {e}")
                raise HTTPException(status_code=500, detail="Authentication failed") from e
            logger.info(f"✅ Account created via Google: {email}")

        return email, sessions.create(email)
