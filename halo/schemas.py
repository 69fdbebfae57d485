"""
Pydantic models for the account document.

The document is stored and exchanged in camelCase exactly as the frontend
writes it. Every model allows extra keys so that fields added by newer
frontends survive a save/load cycle untouched.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AppointmentStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    BLOCKED = "BLOCKED"


class DocumentModel(BaseModel):
    model_config = ConfigDict(extra="allow", use_enum_values=True)


class Service(DocumentModel):
    id: str
    name: str
    durationMin: int = 60
    price: float = 0
    description: str = ""
    pricePerPerson: Optional[bool] = None


class WorkingHours(DocumentModel):
    start: str = "09:00"
    end: str = "18:00"


class BusinessProfile(DocumentModel):
    name: str = ""
    ownerName: str = ""
    email: str = ""
    category: str = ""
    avatarUrl: Optional[str] = None
    themePreference: str = "dark"
    services: list[Service] = Field(default_factory=list)
    taxRate: float = 0
    monthlyRevenueGoal: float = 0
    workingHours: WorkingHours = Field(default_factory=WorkingHours)
    dailyEmailEnabled: Optional[bool] = None


class Client(DocumentModel):
    id: str
    name: str
    email: str = ""
    phone: str = ""
    notes: list[str] = Field(default_factory=list)
    preferences: str = ""
    lastVisit: Optional[str] = None


class RecurrenceRule(DocumentModel):
    frequency: str  # WEEKLY or MONTHLY
    interval: int = 1
    endDate: Optional[str] = None


class Appointment(DocumentModel):
    id: str
    clientId: str = ""
    clientIds: Optional[list[str]] = None
    clientName: str = ""
    serviceId: str = ""
    date: str  # YYYY-MM-DD
    time: str  # HH:mm
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None
    recurrence: Optional[RecurrenceRule] = None
    # Set on the one-off COMPLETED instance of a recurring appointment
    seriesId: Optional[str] = None


class Expense(DocumentModel):
    id: str
    name: str
    amount: float
    date: str
    category: str = "Other"  # Supplies, Rent, Marketing, Other


class Rating(DocumentModel):
    id: str
    appointmentId: str
    clientId: str = ""
    businessRating: Optional[int] = Field(default=None, ge=1, le=5)
    staffRating: Optional[int] = Field(default=None, ge=1, le=5)
    staffId: Optional[str] = None
    comment: Optional[str] = None
    date: str


class BonusEntry(DocumentModel):
    id: str
    amount: float
    date: str
    note: Optional[str] = None


class UserDocument(DocumentModel):
    """Everything one account owns. Saved wholesale, never merged per field."""

    businessProfile: Optional[BusinessProfile] = None
    clients: list[Client] = Field(default_factory=list)
    appointments: list[Appointment] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    ratings: list[Rating] = Field(default_factory=list)
    bonusEntries: list[BonusEntry] = Field(default_factory=list)

    def to_json(self) -> dict:
        return self.model_dump(mode="json")


class MessageResponse(BaseModel):
    success: bool = True
