"""
Response headers for a JSON-only API.

Nothing the API returns is meant to be framed, rendered as a document or
cached by a shared proxy, so the policy denies all of it. HSTS is only sent
in production where the API sits behind TLS.
"""

import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .config import ENVIRONMENT

logger = logging.getLogger(__name__)

CONTENT_SECURITY_POLICY = "; ".join(
    ["default-src 'none'", "frame-ancestors 'none'", "base-uri 'none'", "form-action 'none'"]
)
PERMISSIONS_POLICY = ", ".join(
    f"{feature}=()" for feature in ("camera", "geolocation", "microphone", "payment", "usb", "interest-cohort")
)


def get_security_headers_dict(environment: str = ENVIRONMENT) -> dict[str, str]:
    headers = {
        "Content-Security-Policy": CONTENT_SECURITY_POLICY,
        "Permissions-Policy": PERMISSIONS_POLICY,
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "no-referrer",
        "Cross-Origin-Resource-Policy": "same-site",
    }
    if environment.lower() == "production":
        headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds ``get_security_headers_dict()`` to every response outside ``exclude_paths``"""

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = tuple(exclude_paths or ())
        self.headers = get_security_headers_dict()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        if request.url.path.startswith(self.exclude_paths):
            return response

        response.headers.update(self.headers)
        response.headers.setdefault("Cache-Control", "no-store")
        return response
