"""Save point router"""

from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from ...auth import get_current_email
from ...database import get_db
from ...schemas import MessageResponse
from .schemas import SavePointCreate, SavePointDetail, SavePointSummary
from .service import SavePointService

router = APIRouter(prefix="/savepoints", tags=["Save Points"])


def get_savepoint_service(db: Session = Depends(get_db)) -> SavePointService:
    return SavePointService(db)


@router.post("", response_model=SavePointSummary, status_code=201)
async def create_savepoint(
    data: SavePointCreate,
    email: str = Depends(get_current_email),
    service: SavePointService = Depends(get_savepoint_service),
    x_device_fingerprint: Optional[str] = Header(None),
    user_agent: Optional[str] = Header(None),
):
    return service.create(email, data, x_device_fingerprint, user_agent)


@router.get("", response_model=list[SavePointSummary])
async def list_savepoints(
    email: str = Depends(get_current_email),
    service: SavePointService = Depends(get_savepoint_service),
):
    """Newest first, at most 50, without snapshot bodies"""
    return service.list_savepoints(email)


@router.get("/{savepoint_id}", response_model=SavePointDetail)
async def get_savepoint(
    savepoint_id: str,
    email: str = Depends(get_current_email),
    service: SavePointService = Depends(get_savepoint_service),
):
    return service.get(savepoint_id, email)


@router.delete("/{savepoint_id}", response_model=MessageResponse)
async def delete_savepoint(
    savepoint_id: str,
    email: str = Depends(get_current_email),
    service: SavePointService = Depends(get_savepoint_service),
):
    service.delete(savepoint_id, email)
    return MessageResponse()
