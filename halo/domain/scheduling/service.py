"""Scheduling operations on an account document.

These functions mutate a ``UserDocument`` in place and know nothing about
HTTP or persistence, so the backend routes, the client-side state container
and the AI chat tools all share them.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date as date_cls
from typing import Optional

from ...schemas import (
    Appointment,
    AppointmentStatus,
    BusinessProfile,
    Client,
    Service,
    UserDocument,
)

logger = logging.getLogger(__name__)

COMPLETED_SUFFIX = "_completed"


class SchedulingError(Exception):
    pass


class AppointmentNotFound(SchedulingError, LookupError):
    pass


class InvalidOccurrence(SchedulingError, ValueError):
    pass


class NoServicesConfigured(SchedulingError):
    pass


def new_id() -> str:
    return uuid.uuid4().hex[:9]


@dataclass
class StatusChange:
    appointment: Appointment
    previous_status: str
    # True only on a transition into COMPLETED; drives the rating request email
    completed_now: bool


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def find_service(profile: Optional[BusinessProfile], service_name: Optional[str] = None) -> Optional[Service]:
    """Case-insensitive partial match on the service name, else the first service"""
    if not profile or not profile.services:
        return None
    if service_name:
        needle = service_name.lower()
        for service in profile.services:
            if needle in service.name.lower():
                return service
    return profile.services[0]


def get_service(profile: Optional[BusinessProfile], service_id: str) -> Optional[Service]:
    if not profile:
        return None
    return next((s for s in profile.services if s.id == service_id), None)


def find_client_by_email(document: UserDocument, email: str) -> Optional[Client]:
    if not email:
        return None
    needle = email.lower()
    return next((c for c in document.clients if c.email and c.email.lower() == needle), None)


def find_client_by_name(document: UserDocument, name: str) -> Optional[Client]:
    needle = name.strip().lower()
    return next((c for c in document.clients if c.name.strip().lower() == needle), None)


def get_client(document: UserDocument, client_id: str) -> Optional[Client]:
    return next((c for c in document.clients if c.id == client_id), None)


def get_appointment(document: UserDocument, appointment_id: str) -> Appointment:
    for appointment in document.appointments:
        if appointment.id == appointment_id:
            return appointment
    raise AppointmentNotFound(f"Appointment {appointment_id} not found")


def search_clients(document: UserDocument, search: Optional[str] = None) -> list[Client]:
    if not search:
        return list(document.clients)
    needle = search.lower()
    return [
        c for c in document.clients if needle in c.name.lower() or needle in (c.email or "").lower()
    ]


# ---------------------------------------------------------------------------
# Recurrence
# ---------------------------------------------------------------------------


def occurs_on(appointment: Appointment, day: str) -> bool:
    """Whether ``appointment`` takes place on ``day`` (YYYY-MM-DD), following its recurrence"""
    if appointment.date == day:
        return True
    rule = appointment.recurrence
    if rule is None:
        return False

    try:
        start = date_cls.fromisoformat(appointment.date)
        target = date_cls.fromisoformat(day)
    except ValueError:
        return False

    if target < start:
        return False
    if rule.endDate and day > rule.endDate:
        return False

    interval = max(1, rule.interval or 1)
    if rule.frequency == "WEEKLY":
        return (target - start).days % (7 * interval) == 0
    if rule.frequency == "MONTHLY":
        months = (target.year - start.year) * 12 + (target.month - start.month)
        return target.day == start.day and months % interval == 0
    return False


def schedule_for(document: UserDocument, day: str) -> list[Appointment]:
    """Appointments happening on ``day``, cancelled ones excluded, ordered by time"""
    completed_series = {a.seriesId for a in document.appointments if a.seriesId and a.date == day}
    result = []
    for appointment in document.appointments:
        if appointment.status == AppointmentStatus.CANCELLED:
            continue
        if not occurs_on(appointment, day):
            continue
        # A completed one-off instance replaces the series occurrence on that day
        if appointment.recurrence and appointment.id in completed_series:
            continue
        result.append(appointment)
    return sorted(result, key=lambda a: a.time)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def add_client(
    document: UserDocument,
    name: str,
    email: str = "",
    phone: str = "",
    preferences: str = "",
) -> Client:
    client = Client(
        id=new_id(),
        name=name,
        email=email or "",
        phone=phone or "",
        notes=[],
        preferences=preferences or "",
        lastVisit=None,
    )
    document.clients.append(client)
    logger.info(f"👤 Client added: {name}")
    return client


def book_appointment(
    document: UserDocument,
    client_name: str,
    date: str,
    time: str,
    service_name: Optional[str] = None,
    notes: Optional[str] = None,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
) -> tuple[Appointment, Service]:
    """Book ``client_name`` into the service best matching ``service_name``"""
    service = find_service(document.businessProfile, service_name)
    if service is None:
        raise NoServicesConfigured("No services configured. Please add a service in Settings first.")

    client = find_client_by_name(document, client_name)
    appointment = Appointment(
        id=new_id(),
        clientId=client.id if client else "",
        clientName=client.name if client else client_name,
        serviceId=service.id,
        date=date,
        time=time,
        status=status,
        notes=notes,
    )
    document.appointments.append(appointment)
    logger.info(f"📅 Booked {appointment.clientName} for {service.name} at {time} on {date}")
    return appointment, service


def record_public_booking(document: UserDocument, appointment: Appointment, client: Client) -> Appointment:
    """Store a booking made on the public page, reusing a client with the same email"""
    existing = find_client_by_email(document, client.email)
    if existing:
        appointment.clientId = existing.id
        appointment.clientName = existing.name
    else:
        document.clients.append(client)
        appointment.clientId = client.id
        appointment.clientName = client.name
    document.appointments.append(appointment)
    return appointment


def find_completed_instance(document: UserDocument, series_id: str, day: str) -> Optional[Appointment]:
    return next((a for a in document.appointments if a.seriesId == series_id and a.date == day), None)


def set_appointment_status(
    document: UserDocument,
    appointment_id: str,
    status,
    occurrence_date: Optional[str] = None,
) -> StatusChange:
    """
    Move an appointment to ``status``.

    Completing a recurring appointment adds a one-off COMPLETED instance
    dated ``occurrence_date`` (the series start date when omitted) and leaves
    the series alone; each occurrence is completed at most once. Raises
    ``AppointmentNotFound`` for an unknown id, ``InvalidOccurrence`` when the
    series does not run on ``occurrence_date`` and ``ValueError`` for an
    unknown status.
    """
    new_status = AppointmentStatus(status)
    appointment = get_appointment(document, appointment_id)
    previous = AppointmentStatus(appointment.status)

    if new_status == AppointmentStatus.COMPLETED and appointment.recurrence is not None:
        day = occurrence_date or appointment.date
        if not occurs_on(appointment, day):
            raise InvalidOccurrence(f"Appointment {appointment_id} does not occur on {day}")

        existing = find_completed_instance(document, appointment.id, day)
        if existing is not None:
            return StatusChange(appointment=existing, previous_status=existing.status, completed_now=False)

        instance = appointment.model_copy(deep=True)
        instance.id = f"{new_id()}{COMPLETED_SUFFIX}"
        instance.seriesId = appointment.id
        instance.date = day
        instance.status = AppointmentStatus.COMPLETED.value
        instance.recurrence = None
        document.appointments.append(instance)
        _record_visit(document, instance)
        logger.info(f"✅ Recurring appointment {appointment_id} completed for {day} as {instance.id}")
        return StatusChange(appointment=instance, previous_status=previous.value, completed_now=True)

    appointment.status = new_status.value
    completed_now = new_status == AppointmentStatus.COMPLETED and previous != AppointmentStatus.COMPLETED
    if completed_now:
        _record_visit(document, appointment)
    logger.info(f"🔄 Appointment {appointment_id}: {previous.value} -> {new_status.value}")
    return StatusChange(appointment=appointment, previous_status=previous.value, completed_now=completed_now)


def _record_visit(document: UserDocument, appointment: Appointment):
    client = get_client(document, appointment.clientId)
    if client is not None:
        client.lastVisit = appointment.date


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


def business_stats(document: UserDocument) -> dict:
    """Headline numbers for the assistant: revenue from completed work and goal progress"""
    profile = document.businessProfile
    gross_revenue = 0.0
    for appointment in document.appointments:
        if appointment.status != AppointmentStatus.COMPLETED:
            continue
        service = get_service(profile, appointment.serviceId)
        if service:
            gross_revenue += service.price

    monthly_goal = profile.monthlyRevenueGoal if profile else 0
    goal_progress = min(100.0, gross_revenue / (monthly_goal or 1) * 100)
    return {
        "businessName": profile.name if profile else "",
        "grossRevenue": gross_revenue,
        "appointmentsCount": len(document.appointments),
        "clientCount": len(document.clients),
        "monthlyGoal": monthly_goal,
        "goalProgress": f"{goal_progress:.1f}%",
    }
