"""
Optimistic in-memory application state with a debounced remote save.

Mutations apply immediately to ``document`` and schedule a save after
``save_delay`` seconds; another mutation inside that window restarts the
timer, so a burst of edits becomes one write. A save that comes due while
another is still in flight is dropped, not queued. When the backend cannot
be reached the document is written to local storage under
``halo_data_{email}`` and that copy is used the next time loading fails.

Must be driven from a running asyncio event loop.
"""

import asyncio
import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from ..domain.scheduling import service as scheduling
from ..domain.scheduling.schemas import RatingRequestCreate
from ..schemas import (
    Appointment,
    BonusEntry,
    BusinessProfile,
    Client,
    Expense,
    Rating,
    UserDocument,
)
from ..snapshots import SNAPSHOT_VERSION, create_snapshot, snapshot_to_document
from .api_client import ApiClient, ApiResponse
from .auth_context import AuthContext
from .device import get_device_fingerprint
from .storage import LocalStorage

logger = logging.getLogger(__name__)

DEFAULT_SAVE_DELAY = 1.0
CACHE_KEY_PREFIX = "halo_data_"


class AppStateContainer:
    def __init__(
        self,
        auth: AuthContext,
        api: ApiClient,
        storage: LocalStorage,
        save_delay: float = DEFAULT_SAVE_DELAY,
    ):
        self.auth = auth
        self.api = api
        self.storage = storage
        self.save_delay = save_delay

        self.document = UserDocument()
        self.loaded = False
        self.is_saving = False

        self._save_timer: Optional[asyncio.TimerHandle] = None
        self._pending: set[asyncio.Task] = set()
        # Token the current document was loaded under
        self._session_token: Optional[str] = None
        auth.subscribe(self._on_session_change)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def business_profile(self) -> Optional[BusinessProfile]:
        return self.document.businessProfile

    @property
    def clients(self) -> list[Client]:
        return self.document.clients

    @property
    def appointments(self) -> list[Appointment]:
        return self.document.appointments

    @property
    def expenses(self) -> list[Expense]:
        return self.document.expenses

    @property
    def ratings(self) -> list[Rating]:
        return self.document.ratings

    @property
    def bonus_entries(self) -> list[BonusEntry]:
        return self.document.bonusEntries

    @property
    def cache_key(self) -> Optional[str]:
        return f"{CACHE_KEY_PREFIX}{self.auth.email}" if self.auth.email else None

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    async def load(self) -> bool:
        """
        Fetch the document once per session.

        Returns True when it came from the backend. On any failure other than
        an expired session the cached copy is used instead.
        """
        if self.loaded and self._session_token != self.auth.token:
            self.reset()
        if not self.auth.is_authenticated or self.loaded:
            return False

        response = await self.api.load_user_data()
        if response.status_code == 401:
            logger.warning("⚠️ Session rejected by backend, signing out locally")
            self.auth.logout()
            return False

        from_remote = False
        if response.ok:
            try:
                self.document = UserDocument.model_validate(response.data or {})
                from_remote = True
            except ValidationError as e:
                logger.error(f"❌ Backend returned an unreadable document: {e}")

        if not from_remote:
            self._restore_from_cache()

        self.loaded = True
        self._session_token = self.auth.token
        logger.info(
            f"📥 State loaded from {'backend' if from_remote else 'local cache'}: "
            f"{len(self.clients)} clients, {len(self.appointments)} appointments"
        )
        return from_remote

    async def save_now(self) -> bool:
        """Push the whole document. Returns False if dropped or not accepted."""
        if self.is_saving:
            logger.debug("Save already in flight, dropping this one")
            return False

        self.is_saving = True
        try:
            response = await self.api.save_user_data(self.document.to_json())
        finally:
            self.is_saving = False

        if response.ok:
            return True

        logger.warning(f"⚠️ Remote save failed ({response.error}), writing local cache")
        self._write_cache()
        return False

    async def flush(self):
        """Run a pending debounced save right away and wait for background work"""
        if self._save_timer is not None:
            self._save_timer.cancel()
            self._save_timer = None
            self._track(self.save_now())
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def reset(self):
        """Forget everything in memory, e.g. after signing out"""
        if self._save_timer is not None:
            self._save_timer.cancel()
            self._save_timer = None
        self.document = UserDocument()
        self.loaded = False
        self._session_token = None

    def _on_session_change(self, token: Optional[str]):
        # Another account must never receive this document
        if token != self._session_token:
            self.reset()

    def _schedule_save(self):
        # Nothing is pushed before the first load; it would overwrite the remote copy
        if not self.loaded or not self.auth.is_authenticated:
            return
        if self._save_timer is not None:
            self._save_timer.cancel()
        loop = asyncio.get_running_loop()
        self._save_timer = loop.call_later(self.save_delay, self._start_save)

    def _start_save(self):
        self._save_timer = None
        self._track(self.save_now())

    def _track(self, coro):
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _write_cache(self):
        if not self.cache_key:
            return
        try:
            self.storage.set_item(self.cache_key, self.document.to_json())
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"❌ Could not write local cache: {e}")

    def _restore_from_cache(self):
        if not self.cache_key:
            return
        try:
            cached = self.storage.get_item(self.cache_key)
            if cached:
                self.document = UserDocument.model_validate(cached)
        except (OSError, ValueError) as e:
            logger.error(f"❌ Could not read local cache: {e}")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_business_profile(self, profile: Union[BusinessProfile, dict]):
        self.document.businessProfile = BusinessProfile.model_validate(profile)
        self._schedule_save()

    def add_client(self, name: str, email: str = "", phone: str = "", preferences: str = "") -> Client:
        client = scheduling.add_client(self.document, name, email, phone, preferences)
        self._schedule_save()
        return client

    def update_client(self, client_id: str, **changes: Any) -> Client:
        client = scheduling.get_client(self.document, client_id)
        if client is None:
            raise KeyError(client_id)
        for key, value in changes.items():
            setattr(client, key, value)
        self._schedule_save()
        return client

    def delete_client(self, client_id: str):
        # Appointments keep their clientId; orphans are tolerated
        self.document.clients = [c for c in self.document.clients if c.id != client_id]
        self._schedule_save()

    def add_appointment(self, appointment: Union[Appointment, dict]) -> Appointment:
        appointment = Appointment.model_validate(appointment)
        self.document.appointments.append(appointment)
        self._schedule_save()
        return appointment

    def book_appointment(
        self,
        client_name: str,
        date: str,
        time: str,
        service_name: Optional[str] = None,
        notes: Optional[str] = None,
    ):
        appointment, service = scheduling.book_appointment(
            self.document, client_name, date, time, service_name, notes
        )
        self._schedule_save()
        return appointment, service

    def update_appointment_status(
        self, appointment_id: str, status, occurrence_date: Optional[str] = None
    ) -> scheduling.StatusChange:
        """Change status; a transition into COMPLETED sends exactly one rating request"""
        change = scheduling.set_appointment_status(self.document, appointment_id, status, occurrence_date)
        self._schedule_save()
        if change.completed_now:
            self._track(self._request_rating(change.appointment))
        return change

    def delete_appointment(self, appointment_id: str):
        self.document.appointments = [a for a in self.document.appointments if a.id != appointment_id]
        self._schedule_save()

    def add_expense(self, name: str, amount: float, date: str, category: str = "Other") -> Expense:
        expense = Expense(id=scheduling.new_id(), name=name, amount=amount, date=date, category=category)
        self.document.expenses.append(expense)
        self._schedule_save()
        return expense

    def delete_expense(self, expense_id: str):
        self.document.expenses = [e for e in self.document.expenses if e.id != expense_id]
        self._schedule_save()

    def add_bonus_entry(self, amount: float, date: str, note: Optional[str] = None) -> BonusEntry:
        entry = BonusEntry(id=scheduling.new_id(), amount=amount, date=date, note=note)
        self.document.bonusEntries.append(entry)
        self._schedule_save()
        return entry

    def replace_document(self, document: UserDocument):
        self.document = document
        self._schedule_save()

    async def _request_rating(self, appointment: Appointment) -> bool:
        client = scheduling.get_client(self.document, appointment.clientId)
        if client is None or not client.email:
            logger.info(f"⏭️ No client email for appointment {appointment.id}, no rating request")
            return False

        profile = self.document.businessProfile
        service = scheduling.get_service(profile, appointment.serviceId)
        payload = RatingRequestCreate(
            appointmentId=appointment.id,
            clientId=client.id,
            clientName=client.name,
            clientEmail=client.email,
            date=appointment.date,
            time=appointment.time,
            serviceName=service.name if service else "",
            businessName=profile.name if profile else "",
        )
        response = await self.api.request_rating_email(payload.model_dump())
        if not response.ok:
            logger.warning(f"⚠️ Rating request for {appointment.id} failed: {response.error}")
            return False
        return bool(response.data and response.data.get("sent"))

    # ------------------------------------------------------------------
    # Save points
    # ------------------------------------------------------------------

    async def create_save_point(self, label: Optional[str] = None) -> ApiResponse:
        return await self.api.create_savepoint(
            create_snapshot(self.document),
            get_device_fingerprint(self.storage),
            label=label,
            snapshot_version=SNAPSHOT_VERSION,
        )

    async def list_save_points(self) -> ApiResponse:
        return await self.api.list_savepoints()

    async def restore_save_point(self, savepoint_id: str) -> bool:
        """Replace the current state with a save point and save it"""
        response = await self.api.get_savepoint(savepoint_id)
        if not response.ok:
            logger.warning(f"⚠️ Could not fetch save point {savepoint_id}: {response.error}")
            return False

        snapshot = dict(response.data["snapshot_json"])
        snapshot.setdefault("version", response.data.get("snapshot_version"))
        try:
            document = snapshot_to_document(snapshot)
        except ValidationError as e:
            logger.error(f"❌ Save point {savepoint_id} is not a valid document: {e}")
            return False

        self.replace_document(document)
        logger.info(f"⏪ Restored save point {savepoint_id}")
        return True

    async def delete_save_point(self, savepoint_id: str) -> ApiResponse:
        return await self.api.delete_savepoint(savepoint_id)
