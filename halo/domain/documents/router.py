"""Document router - GET /load and POST /save"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_email
from ...database import get_db
from ...schemas import MessageResponse, UserDocument
from .service import DocumentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])


def get_document_service(db: Session = Depends(get_db)) -> DocumentService:
    """Dependency injection for DocumentService"""
    return DocumentService(db)


@router.get("/load")
async def load_document(
    email: str = Depends(get_current_email),
    service: DocumentService = Depends(get_document_service),
):
    """Return the signed-in account's document, empty if nothing was saved yet"""
    return service.load(email).to_json()


@router.post("/save", response_model=MessageResponse)
async def save_document(
    document: UserDocument,
    email: str = Depends(get_current_email),
    service: DocumentService = Depends(get_document_service),
):
    service.save(email, document)
    return MessageResponse()
