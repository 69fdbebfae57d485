"""Scheduling workflow - document operations that read and write the store"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...schemas import Appointment, AppointmentStatus, Client, UserDocument
from ..documents.repository import DocumentRepository
from ..documents.service import DocumentService
from . import service as scheduling
from .notifications import dispatch_rating_request
from .schemas import PublicBookingRequest, StatusChangeResponse

logger = logging.getLogger(__name__)


class SchedulingService:
    """Loads the owner's document, applies a scheduling operation and saves it back"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DocumentRepository()
        self.documents = DocumentService(db)

    def load_existing(self, owner_email: str) -> UserDocument:
        row = self.repo.get_row(self.db, owner_email)
        if row is None:
            raise HTTPException(status_code=404, detail="Business not found")
        return self.repo.to_document(row)

    async def change_status(
        self, owner_email: str, appointment_id: str, status, occurrence_date: Optional[str] = None
    ) -> StatusChangeResponse:
        """Apply a status change, save, then send the rating request if it just completed"""
        document = self.documents.load(owner_email)
        try:
            change = scheduling.set_appointment_status(document, appointment_id, status, occurrence_date)
        except scheduling.AppointmentNotFound as e:
            raise HTTPException(status_code=404, detail="Appointment not found") from e
        except scheduling.InvalidOccurrence as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}") from e

        self.documents.save(owner_email, document)

        sent = False
        if change.completed_now:
            sent = await dispatch_rating_request(owner_email, document, change.appointment)

        return StatusChangeResponse(
            appointment=change.appointment,
            previousStatus=change.previous_status,
            ratingRequestSent=sent,
        )

    def public_profile(self, owner_email: str) -> dict:
        """What the public booking page needs to render; no client data"""
        document = self.load_existing(owner_email)
        profile = document.businessProfile
        if profile is None:
            raise HTTPException(status_code=404, detail="Business not found")
        return {
            "name": profile.name,
            "category": profile.category,
            "avatarUrl": profile.avatarUrl,
            "services": [s.model_dump(mode="json") for s in profile.services],
            "workingHours": profile.workingHours.model_dump(mode="json"),
        }

    def book_public(self, owner_email: str, data: PublicBookingRequest) -> tuple[Appointment, Client]:
        document = self.load_existing(owner_email)
        if scheduling.get_service(document.businessProfile, data.serviceId) is None:
            raise HTTPException(status_code=400, detail="Unknown service")

        client = Client(
            id=scheduling.new_id(),
            name=data.name,
            email=data.email,
            phone=data.phone,
            preferences="",
            lastVisit=None,
        )
        appointment = Appointment(
            id=scheduling.new_id(),
            clientName=data.name,
            serviceId=data.serviceId,
            date=data.date,
            time=data.time,
            status=AppointmentStatus.PENDING,
            notes=data.notes,
        )
        scheduling.record_public_booking(document, appointment, client)
        self.documents.save(owner_email, document)

        booked_client = scheduling.get_client(document, appointment.clientId) or client
        logger.info(f"🌐 Public booking for {owner_email}: {booked_client.name} on {data.date} {data.time}")
        return appointment, booked_client
