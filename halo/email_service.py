"""
Outgoing email.

Templates are MJML, compiled to HTML here. Mail goes out through Resend when
RESEND_API_KEY is set, otherwise through a plain JSON relay at EMAIL_API_URL
(``{to, subject, html, from}``). With neither configured sending raises
``EmailNotConfiguredError`` so callers can tell "not set up" from "failed".
"""

import logging
from typing import Optional, Union

import httpx
import resend
from mjml import mjml_to_html
from resend.exceptions import ResendError

from .config import EMAIL_API_URL, EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import rating_request_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY

EMAIL_TIMEOUT_SECONDS = 10


class EmailNotConfiguredError(Exception):
    """Neither Resend nor an email relay is configured"""


class EmailDeliveryError(Exception):
    pass


def compile_mjml_to_html(mjml_content: str) -> str:
    result = mjml_to_html(mjml_content)
    # Depending on the mjml release the result is a dict or an object with .html/.errors
    if isinstance(result, dict):
        html, errors = result.get("html", ""), result.get("errors")
    else:
        html, errors = getattr(result, "html", str(result)), getattr(result, "errors", None)
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    return html


async def _send_via_relay(recipients: list[str], subject: str, html: str, sender: str) -> dict:
    payload = {
        "to": recipients[0] if len(recipients) == 1 else recipients,
        "subject": subject,
        "html": html,
        "from": sender,
    }
    async with httpx.AsyncClient(timeout=EMAIL_TIMEOUT_SECONDS) as client:
        response = await client.post(EMAIL_API_URL, json=payload)
    if response.status_code >= 400:
        raise EmailDeliveryError(f"Email relay returned HTTP {response.status_code}")
    return {"id": None, "success": True}


def _send_via_resend(recipients: list[str], subject: str, html: str, sender: str) -> dict:
    return resend.Emails.send({"from": sender, "to": recipients, "subject": subject, "html": html})


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Compile ``mjml_content`` and send it to ``to``.

    Raises:
        EmailNotConfiguredError: no provider is configured
        EmailDeliveryError: the provider rejected or could not take the message
    """
    if not RESEND_API_KEY and not EMAIL_API_URL:
        logger.error("❌ No email service configured - set RESEND_API_KEY or EMAIL_API_URL")
        raise EmailNotConfiguredError("Email service not configured")

    recipients = [to] if isinstance(to, str) else list(to)
    sender = from_address or EMAIL_FROM_ADDRESS
    html = compile_mjml_to_html(mjml_content)

    try:
        if RESEND_API_KEY:
            result = _send_via_resend(recipients, subject, html, sender)
        else:
            result = await _send_via_relay(recipients, subject, html, sender)
    except EmailDeliveryError:
        logger.error(f"❌ Email relay rejected message to {recipients}")
        raise
    except (ResendError, httpx.HTTPError) as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(str(e)) from e

    logger.info(f"📧 Email '{subject}' sent to {recipients}")
    return result


async def send_rating_request_email(
    to: str,
    client_name: str,
    business_name: str,
    appointment_date: str,
    appointment_time: str,
    service_name: str,
    rating_link: str,
) -> dict:
    """Ask a client to rate the appointment that was just completed"""
    mjml_content = rating_request_template(
        client_name, business_name, appointment_date, appointment_time, service_name, rating_link
    )
    return await send_email(
        to=to,
        subject=f"How was your visit to {business_name}?",
        mjml_content=mjml_content,
    )
