"""API key management for the /ai endpoints"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import ApiKey
from ...security_utils import generate_api_key, hash_api_key
from .schemas import ApiKeyCreated

logger = logging.getLogger(__name__)

# "halo_" plus four characters of the secret, enough to tell keys apart
KEY_PREFIX_LENGTH = 9


class ApiKeyService:
    def __init__(self, db: Session):
        self.db = db

    def create(self, email: str, label: Optional[str] = None) -> ApiKeyCreated:
        raw_key = generate_api_key()
        api_key = ApiKey(
            user_email=email,
            label=label or "API Key",
            key_prefix=raw_key[:KEY_PREFIX_LENGTH],
            key_hash=hash_api_key(raw_key),
        )
        try:
            self.db.add(api_key)
            self.db.commit()
            self.db.refresh(api_key)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create API key for {email}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create API key") from e

        logger.info(f"🔑 API key {api_key.key_prefix} created for {email}")
        return ApiKeyCreated(
            id=api_key.id,
            label=api_key.label,
            key_prefix=api_key.key_prefix,
            created_at=api_key.created_at,
            last_used_at=None,
            key=raw_key,
        )

    def list_keys(self, email: str) -> list[ApiKey]:
        return (
            self.db.query(ApiKey)
            .filter(ApiKey.user_email == email)
            .order_by(ApiKey.created_at.desc())
            .all()
        )

    def revoke(self, email: str, key_id: str) -> None:
        api_key = self.db.query(ApiKey).filter(ApiKey.id == key_id, ApiKey.user_email == email).first()
        if not api_key:
            raise HTTPException(status_code=404, detail="API key not found")
        self.db.delete(api_key)
        self.db.commit()
        logger.info(f"🗑️ API key {api_key.key_prefix} revoked for {email}")
