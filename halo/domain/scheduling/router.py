"""Scheduling router - status changes, rating requests and public booking"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_email
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from .notifications import send_rating_request
from .schemas import (
    PublicBookingRequest,
    PublicBookingResponse,
    RatingRequestCreate,
    RatingRequestResponse,
    StatusChangeResponse,
    StatusUpdate,
)
from .workflow import SchedulingService

router = APIRouter(tags=["Scheduling"])

rate_limit_booking = create_rate_limiter(limit=20, window_seconds=3600, key_prefix="public_booking")


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    return SchedulingService(db)


@router.patch("/appointments/{appointment_id}/status", response_model=StatusChangeResponse)
async def update_appointment_status(
    appointment_id: str,
    data: StatusUpdate,
    email: str = Depends(get_current_email),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return await service.change_status(email, appointment_id, data.status, data.occurrenceDate)


@router.post("/notifications/rating-request", response_model=RatingRequestResponse)
async def request_rating(data: RatingRequestCreate, email: str = Depends(get_current_email)):
    """Send a rating request for an appointment a client app completed locally"""
    sent = await send_rating_request(
        owner_email=email,
        appointment_id=data.appointmentId,
        client_id=data.clientId,
        client_name=data.clientName,
        client_email=data.clientEmail,
        appointment_date=data.date,
        appointment_time=data.time,
        service_name=data.serviceName,
        business_name=data.businessName,
    )
    return RatingRequestResponse(sent=sent)


@router.get("/book/{owner_email}")
async def get_booking_page(owner_email: str, service: SchedulingService = Depends(get_scheduling_service)):
    return service.public_profile(owner_email)


@router.post("/book/{owner_email}", response_model=PublicBookingResponse, status_code=201)
async def create_public_booking(
    owner_email: str,
    data: PublicBookingRequest,
    _: None = Depends(rate_limit_booking),
    service: SchedulingService = Depends(get_scheduling_service),
):
    appointment, client = service.book_public(owner_email, data)
    return PublicBookingResponse(appointment=appointment, client=client)
