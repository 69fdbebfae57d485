"""Save point service"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import SavePoint
from ...snapshots import SNAPSHOT_VERSION
from .devices import parse_user_agent
from .repository import SavePointRepository
from .schemas import SavePointCreate

logger = logging.getLogger(__name__)


class SavePointService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SavePointRepository()

    def create(
        self,
        email: str,
        data: SavePointCreate,
        fingerprint: Optional[str],
        user_agent: Optional[str],
    ) -> SavePoint:
        """
        Store a snapshot of the account document.

        When the caller sends a device fingerprint the device row is upserted
        first and linked; that write and the save point insert are separate
        commits. Without a fingerprint the device is described from the
        User-Agent only.
        """
        if not data.snapshot:
            raise HTTPException(status_code=400, detail="Snapshot data required")

        info = parse_user_agent(user_agent or "")
        device_id = None
        if fingerprint:
            try:
                device = self.repo.upsert_device(
                    self.db, email, fingerprint, info.device_type, info.device_name
                )
                device_id = device.id
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.warning(f"⚠️ Device upsert failed for {email}, saving without device: {e}")

        label = data.label or f"Save Point - {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        try:
            savepoint = self.repo.create_savepoint(
                self.db,
                email,
                device_id=device_id,
                label=label,
                snapshot_json=data.snapshot,
                snapshot_version=data.snapshotVersion or SNAPSHOT_VERSION,
                device_type=info.device_type,
                device_name=info.device_name,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Create save point failed for {email}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create save point") from e

        logger.info(f"📸 Save point {savepoint.id} created for {email} from {info.device_name}")
        return savepoint

    def list_savepoints(self, email: str) -> list[SavePoint]:
        return self.repo.list_savepoints(self.db, email)

    def get(self, savepoint_id: str, email: str) -> SavePoint:
        savepoint = self.repo.get_savepoint(self.db, savepoint_id, email)
        if not savepoint:
            raise HTTPException(status_code=404, detail="Save point not found")
        return savepoint

    def delete(self, savepoint_id: str, email: str) -> None:
        """Delete one of the caller's save points; ids owned by others are left alone"""
        try:
            deleted = self.repo.delete_savepoint(self.db, savepoint_id, email)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Delete save point failed: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete save point") from e
        if deleted:
            logger.info(f"🗑️ Save point {savepoint_id} deleted")
