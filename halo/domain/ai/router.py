"""
AI integration router

Key management is authenticated with the session cookie; everything else is
meant for assistants and MCP bridges and takes ``Authorization: Bearer <key>``.
"""

import logging
from datetime import date as date_cls
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_api_key_owner, get_current_email
from ...database import get_db
from ...schemas import MessageResponse
from ..documents.service import DocumentService
from ..scheduling import service as scheduling
from ..scheduling.schemas import StatusChangeResponse
from ..scheduling.workflow import SchedulingService
from .keys import ApiKeyService
from .schemas import (
    AIAppointmentCreate,
    AIAppointmentCreated,
    AIClientCreate,
    AIClientCreated,
    AIStatusUpdate,
    ApiKeyCreate,
    ApiKeyCreated,
    ApiKeySummary,
    ScheduleResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


def get_api_key_service(db: Session = Depends(get_db)) -> ApiKeyService:
    return ApiKeyService(db)


def get_document_service(db: Session = Depends(get_db)) -> DocumentService:
    return DocumentService(db)


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    return SchedulingService(db)


# ============================================================================
# API KEYS (session auth)
# ============================================================================


@router.post("/keys", response_model=ApiKeyCreated, status_code=201)
async def create_api_key(
    data: ApiKeyCreate,
    email: str = Depends(get_current_email),
    service: ApiKeyService = Depends(get_api_key_service),
):
    return service.create(email, data.label)


@router.get("/keys", response_model=list[ApiKeySummary])
async def list_api_keys(
    email: str = Depends(get_current_email),
    service: ApiKeyService = Depends(get_api_key_service),
):
    return service.list_keys(email)


@router.delete("/keys/{key_id}", response_model=MessageResponse)
async def revoke_api_key(
    key_id: str,
    email: str = Depends(get_current_email),
    service: ApiKeyService = Depends(get_api_key_service),
):
    service.revoke(email, key_id)
    return MessageResponse()


# ============================================================================
# ASSISTANT ENDPOINTS (API key auth)
# ============================================================================


@router.get("/schedule", response_model=ScheduleResponse)
async def get_schedule(
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today"),
    email: str = Depends(get_api_key_owner),
    documents: DocumentService = Depends(get_document_service),
):
    day = date or date_cls.today().isoformat()
    document = documents.load(email)
    return ScheduleResponse(date=day, appointments=scheduling.schedule_for(document, day))


@router.post("/appointments", response_model=AIAppointmentCreated, status_code=201)
async def create_appointment(
    data: AIAppointmentCreate,
    email: str = Depends(get_api_key_owner),
    documents: DocumentService = Depends(get_document_service),
):
    document = documents.load(email)
    try:
        appointment, service = scheduling.book_appointment(
            document, data.clientName, data.date, data.time, data.serviceName, data.notes
        )
    except scheduling.NoServicesConfigured as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    documents.save(email, document)
    return AIAppointmentCreated(appointment=appointment, serviceName=service.name)


@router.patch("/appointments/{appointment_id}", response_model=StatusChangeResponse)
async def update_appointment(
    appointment_id: str,
    data: AIStatusUpdate,
    email: str = Depends(get_api_key_owner),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return await service.change_status(email, appointment_id, data.status, data.occurrenceDate)


@router.get("/clients")
async def list_clients(
    search: Optional[str] = Query(None),
    email: str = Depends(get_api_key_owner),
    documents: DocumentService = Depends(get_document_service),
):
    clients = scheduling.search_clients(documents.load(email), search)
    return [c.model_dump(mode="json") for c in clients]


@router.post("/clients", response_model=AIClientCreated, status_code=201)
async def create_client(
    data: AIClientCreate,
    email: str = Depends(get_api_key_owner),
    documents: DocumentService = Depends(get_document_service),
):
    document = documents.load(email)
    client = scheduling.add_client(
        document,
        name=data.name,
        email=data.clientEmail or "",
        phone=data.phone or "",
        preferences=data.preferences or "",
    )
    documents.save(email, document)
    return AIClientCreated(client=client)


@router.get("/business")
async def get_business(
    email: str = Depends(get_api_key_owner),
    documents: DocumentService = Depends(get_document_service),
):
    document = documents.load(email)
    profile = document.businessProfile
    return {
        "profile": profile.model_dump(mode="json") if profile else None,
        "stats": scheduling.business_stats(document),
    }
