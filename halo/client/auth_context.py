"""
Client-side session state.

The session token handed out by the backend is kept in memory and mirrored
to local storage so a restarted client is still signed in. Restoring never
leaves ``loading`` stuck: whatever happens while reading storage, the
context ends up either authenticated or not.
"""

import logging
from typing import Callable, Optional

from .api_client import ApiClient, ApiResponse
from .storage import LocalStorage

logger = logging.getLogger(__name__)

TOKEN_STORAGE_KEY = "halo_session_token"
EMAIL_STORAGE_KEY = "halo_user_email"


class AuthContext:
    def __init__(self, storage: LocalStorage, api: Optional[ApiClient] = None):
        self.storage = storage
        self.api = api
        self.loading = True
        self.token: Optional[str] = None
        self.email: Optional[str] = None
        self._listeners: list[Callable[[Optional[str]], None]] = []

    def subscribe(self, listener: Callable[[Optional[str]], None]):
        """Call ``listener(token)`` whenever the session starts or ends"""
        self._listeners.append(listener)

    def _notify(self):
        for listener in list(self._listeners):
            listener(self.token)

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def restore(self):
        try:
            token = self.storage.get_item(TOKEN_STORAGE_KEY)
            if token:
                self.token = token
                self.email = self.storage.get_item(EMAIL_STORAGE_KEY)
                if self.api:
                    self.api.set_session(token)
        except Exception as e:
            logger.error(f"Error reading auth state from storage: {e}")
            self.token = None
            self.email = None
        finally:
            self.loading = False

    def login(self, token: str, email: Optional[str] = None):
        self.storage.set_item(TOKEN_STORAGE_KEY, token)
        if email:
            self.storage.set_item(EMAIL_STORAGE_KEY, email)
        self.token = token
        self.email = email
        if self.api:
            self.api.set_session(token)
        self._notify()

    def logout(self):
        """Forget the local session only; see ``sign_out`` for the server side"""
        self.storage.remove_item(TOKEN_STORAGE_KEY)
        self.storage.remove_item(EMAIL_STORAGE_KEY)
        self.token = None
        self.email = None
        if self.api:
            self.api.set_session(None)
        self._notify()

    def _accept(self, response: ApiResponse) -> ApiResponse:
        if response.ok:
            self.login(response.data["sessionId"], response.data.get("email"))
        return response

    async def sign_in_with_google(self, access_token: str) -> ApiResponse:
        return self._accept(await self.api.authenticate_with_google(access_token))

    async def sign_in_with_email(self, email: str, password: str) -> ApiResponse:
        return self._accept(await self.api.authenticate_with_email(email, password))

    async def sign_up(self, email: str, password: str) -> ApiResponse:
        return self._accept(await self.api.signup(email, password))

    async def sign_out(self):
        """End the server session, then clear local state even if the server was unreachable"""
        try:
            if self.api and self.token:
                response = await self.api.logout()
                if not response.ok:
                    logger.warning(f"⚠️ Server logout failed: {response.error}")
        finally:
            self.logout()
