"""Document service - load and save the whole account document"""

import logging

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...schemas import UserDocument
from .repository import DocumentRepository

logger = logging.getLogger(__name__)


class DocumentService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DocumentRepository()

    def load(self, email: str) -> UserDocument:
        return self.repo.to_document(self.repo.get_row(self.db, email))

    def save(self, email: str, document: UserDocument) -> UserDocument:
        """Upsert the document; last writer wins"""
        try:
            row = self.repo.upsert_document(self.db, email, document)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save document for {email}: {e}")
            raise HTTPException(status_code=500, detail="Failed to save data") from e
        logger.info(
            f"💾 Saved document for {email}: {len(row.clients or [])} clients, "
            f"{len(row.appointments or [])} appointments"
        )
        return self.repo.to_document(row)
