"""Scheduling request/response schemas"""

from typing import Optional

from pydantic import BaseModel

from ...schemas import Appointment, AppointmentStatus, Client


class StatusUpdate(BaseModel):
    status: AppointmentStatus
    # Which occurrence of a recurring appointment is meant (YYYY-MM-DD)
    occurrenceDate: Optional[str] = None


class StatusChangeResponse(BaseModel):
    appointment: Appointment
    previousStatus: str
    ratingRequestSent: bool


class RatingRequestCreate(BaseModel):
    """Sent by a client app after it marks an appointment completed locally"""

    appointmentId: str
    clientId: str
    clientName: str = ""
    clientEmail: Optional[str] = None
    date: str
    time: str
    serviceName: str = ""
    businessName: str = ""


class RatingRequestResponse(BaseModel):
    sent: bool


class PublicBookingRequest(BaseModel):
    name: str
    email: str = ""
    phone: str = ""
    serviceId: str
    date: str
    time: str
    notes: Optional[str] = None


class PublicBookingResponse(BaseModel):
    appointment: Appointment
    client: Client
