"""AI integration schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ...schemas import Appointment, AppointmentStatus, Client


class ApiKeyCreate(BaseModel):
    label: Optional[str] = None


class ApiKeySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    label: Optional[str] = None
    key_prefix: str
    created_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None


class ApiKeyCreated(ApiKeySummary):
    """Returned once, on creation; the only time the raw key is visible"""

    key: str


class AIAppointmentCreate(BaseModel):
    clientName: str
    serviceName: Optional[str] = None
    date: str
    time: str
    notes: Optional[str] = None


class AIAppointmentCreated(BaseModel):
    success: bool = True
    appointment: Appointment
    serviceName: str


class AIStatusUpdate(BaseModel):
    status: AppointmentStatus
    occurrenceDate: Optional[str] = None


class AIClientCreate(BaseModel):
    name: str
    clientEmail: Optional[str] = None
    phone: Optional[str] = None
    preferences: Optional[str] = None


class AIClientCreated(BaseModel):
    success: bool = True
    client: Client


class ScheduleResponse(BaseModel):
    date: str
    appointments: list[Appointment]
