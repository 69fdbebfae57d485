"""Rating service - public, token-authenticated ratings of completed appointments"""

import logging
from datetime import date

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...schemas import AppointmentStatus, Rating, UserDocument
from ...security_utils import verify_rating_token
from ..documents.repository import DocumentRepository
from ..documents.service import DocumentService
from ..scheduling.service import AppointmentNotFound, get_appointment, get_client, get_service, new_id
from .schemas import RatingContext, RatingSubmit

logger = logging.getLogger(__name__)


class RatingService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DocumentRepository()
        self.documents = DocumentService(db)

    def _resolve(self, appointment_id: str, token: str) -> tuple[str, dict, UserDocument]:
        payload = verify_rating_token(token, appointment_id) if token else None
        if payload is None:
            raise HTTPException(status_code=401, detail="Invalid or expired rating link")

        owner_email = payload["sub"]
        row = self.repo.get_row(self.db, owner_email)
        if row is None:
            raise HTTPException(status_code=404, detail="Business not found")
        return owner_email, payload, self.repo.to_document(row)

    def get_context(self, appointment_id: str, token: str) -> RatingContext:
        _, payload, document = self._resolve(appointment_id, token)
        try:
            appointment = get_appointment(document, appointment_id)
        except AppointmentNotFound as e:
            raise HTTPException(status_code=404, detail="Appointment not found") from e

        profile = document.businessProfile
        client = get_client(document, payload.get("cli", ""))
        service = get_service(profile, appointment.serviceId)
        return RatingContext(
            appointmentId=appointment.id,
            businessName=profile.name if profile else "",
            clientName=client.name if client else appointment.clientName,
            serviceName=service.name if service else "",
            date=appointment.date,
            time=appointment.time,
            staff=(profile.model_extra or {}).get("staff", []) if profile else [],
            alreadyRated=any(r.appointmentId == appointment_id for r in document.ratings),
        )

    def submit(self, appointment_id: str, token: str, data: RatingSubmit) -> Rating:
        """Store one rating per completed appointment on the owner's document"""
        owner_email, payload, document = self._resolve(appointment_id, token)

        if data.businessRating is None and data.staffRating is None:
            raise HTTPException(status_code=400, detail="Please provide at least one rating")

        try:
            appointment = get_appointment(document, appointment_id)
        except AppointmentNotFound as e:
            raise HTTPException(status_code=404, detail="Appointment not found") from e

        if appointment.status != AppointmentStatus.COMPLETED:
            raise HTTPException(status_code=400, detail="Only completed appointments can be rated")
        if any(r.appointmentId == appointment_id for r in document.ratings):
            raise HTTPException(status_code=409, detail="This appointment has already been rated")

        rating = Rating(
            id=new_id(),
            appointmentId=appointment_id,
            clientId=payload.get("cli") or appointment.clientId,
            businessRating=data.businessRating,
            staffRating=data.staffRating,
            staffId=data.staffId,
            comment=data.comment,
            date=date.today().isoformat(),
        )
        document.ratings.append(rating)
        self.documents.save(owner_email, document)
        logger.info(f"⭐ Rating stored for appointment {appointment_id} of {owner_email}")
        return rating
