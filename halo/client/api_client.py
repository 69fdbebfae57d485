"""
HTTP client for the Halo backend.

Every call returns an ``ApiResponse`` instead of raising. When the backend
cannot be reached (connection error or timeout) the error is the
``API_UNAVAILABLE`` sentinel so callers can fall back to the local cache.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..config import HALO_API_URL, SESSION_COOKIE_NAME

logger = logging.getLogger(__name__)

API_UNAVAILABLE = "API_UNAVAILABLE"
DEFAULT_TIMEOUT_SECONDS = 5.0


@dataclass
class ApiResponse:
    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def unavailable(self) -> bool:
        return self.error == API_UNAVAILABLE


class ApiClient:
    def __init__(
        self,
        base_url: str = HALO_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.session_id: Optional[str] = None
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    def set_session(self, session_id: Optional[str]):
        self.session_id = session_id

    async def _request(
        self,
        method: str,
        path: str,
        fallback_error: str,
        json: Any = None,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> ApiResponse:
        request_headers = dict(headers or {})
        if self.session_id:
            request_headers["Cookie"] = f"{SESSION_COOKIE_NAME}={self.session_id}"

        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=request_headers
            )
        except (httpx.TimeoutException, httpx.TransportError) as e:
            logger.warning(f"⚠️ Backend API not available for {method} {path}: {e}")
            return ApiResponse(error=API_UNAVAILABLE)
        finally:
            # The session lives in AuthContext, not in the cookie jar
            self._client.cookies.clear()

        if response.status_code >= 400:
            if response.status_code == 401:
                return ApiResponse(error="Not authenticated", status_code=401)
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = None
            if not isinstance(detail, str):
                detail = fallback_error
            logger.warning(f"⚠️ {method} {path} failed: HTTP {response.status_code} {detail}")
            return ApiResponse(error=detail, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            data = None
        return ApiResponse(data=data, status_code=response.status_code)

    # Auth

    async def authenticate_with_google(self, access_token: str) -> ApiResponse:
        return await self._request(
            "POST", "/auth/google", "Authentication failed", json={"accessToken": access_token}
        )

    async def signup(self, email: str, password: str) -> ApiResponse:
        return await self._request(
            "POST", "/auth/signup", "Failed to create account", json={"email": email, "password": password}
        )

    async def authenticate_with_email(self, email: str, password: str) -> ApiResponse:
        return await self._request(
            "POST", "/auth/email", "Authentication failed", json={"email": email, "password": password}
        )

    async def get_current_user(self) -> ApiResponse:
        return await self._request("GET", "/me", "Failed to get user")

    async def logout(self) -> ApiResponse:
        return await self._request("POST", "/logout", "Failed to log out")

    # Document

    async def load_user_data(self) -> ApiResponse:
        return await self._request("GET", "/load", "Failed to load data")

    async def save_user_data(self, document: dict) -> ApiResponse:
        return await self._request("POST", "/save", "Failed to save data", json=document)

    # Save points

    async def create_savepoint(
        self,
        snapshot: dict,
        fingerprint: str,
        label: Optional[str] = None,
        snapshot_version: Optional[int] = None,
    ) -> ApiResponse:
        payload = {"label": label, "snapshot": snapshot, "snapshotVersion": snapshot_version}
        return await self._request(
            "POST",
            "/savepoints",
            "Failed to create save point",
            json=payload,
            headers={"X-Device-Fingerprint": fingerprint},
        )

    async def list_savepoints(self) -> ApiResponse:
        return await self._request("GET", "/savepoints", "Failed to list save points")

    async def get_savepoint(self, savepoint_id: str) -> ApiResponse:
        return await self._request("GET", f"/savepoints/{savepoint_id}", "Failed to get save point")

    async def delete_savepoint(self, savepoint_id: str) -> ApiResponse:
        return await self._request("DELETE", f"/savepoints/{savepoint_id}", "Failed to delete save point")

    # Notifications

    async def request_rating_email(self, payload: dict) -> ApiResponse:
        return await self._request(
            "POST", "/notifications/rating-request", "Failed to send rating request", json=payload
        )

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
