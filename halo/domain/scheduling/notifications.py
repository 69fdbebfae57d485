"""Rating request emails sent when an appointment is completed"""

import logging
from typing import Optional
from urllib.parse import quote

from ...config import FRONTEND_URL
from ...email_service import EmailNotConfiguredError, send_rating_request_email
from ...schemas import Appointment, UserDocument
from ...security_utils import create_rating_token
from .service import get_client, get_service

logger = logging.getLogger(__name__)


def build_rating_link(owner_email: str, appointment_id: str, client_id: str) -> str:
    token = create_rating_token(owner_email, appointment_id, client_id)
    return f"{FRONTEND_URL}/rate/{quote(appointment_id)}?token={token}"


async def send_rating_request(
    owner_email: str,
    appointment_id: str,
    client_id: str,
    client_name: str,
    client_email: Optional[str],
    appointment_date: str,
    appointment_time: str,
    service_name: str = "",
    business_name: str = "",
) -> bool:
    """Email the client a rating link. Never raises; returns whether an email went out."""
    if not client_email:
        logger.info(f"⏭️ No email on file for {client_name or client_id}, skipping rating request")
        return False

    try:
        await send_rating_request_email(
            to=client_email,
            client_name=client_name or "there",
            business_name=business_name or "us",
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            service_name=service_name or "Appointment",
            rating_link=build_rating_link(owner_email, appointment_id, client_id),
        )
    except EmailNotConfiguredError:
        logger.warning(f"⚠️ Email not configured, rating request for {appointment_id} not sent")
        return False
    except Exception as e:
        logger.error(f"❌ Rating request email failed for {appointment_id}: {e}")
        return False

    logger.info(f"⭐ Rating request sent for appointment {appointment_id}")
    return True


async def dispatch_rating_request(owner_email: str, document: UserDocument, appointment: Appointment) -> bool:
    """Send the rating request for a freshly completed appointment in ``document``"""
    client = get_client(document, appointment.clientId)
    if client is None:
        logger.info(f"⏭️ Appointment {appointment.id} has no known client, skipping rating request")
        return False

    profile = document.businessProfile
    service = get_service(profile, appointment.serviceId)
    return await send_rating_request(
        owner_email=owner_email,
        appointment_id=appointment.id,
        client_id=client.id,
        client_name=client.name,
        client_email=client.email,
        appointment_date=appointment.date,
        appointment_time=appointment.time,
        service_name=service.name if service else "",
        business_name=profile.name if profile else "",
    )
