"""Save point repository - devices and snapshots"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Device, SavePoint

MAX_LISTED_SAVEPOINTS = 50


class SavePointRepository:
    @staticmethod
    def upsert_device(
        db: Session, email: str, fingerprint: str, device_type: str, device_name: str
    ) -> Device:
        """Find the device by (email, fingerprint) and refresh it, or register it"""
        device = (
            db.query(Device)
            .filter(Device.user_email == email, Device.device_fingerprint == fingerprint)
            .first()
        )
        if device:
            device.last_seen_at = datetime.now(timezone.utc)
            device.device_type = device_type
            device.device_name = device_name
        else:
            device = Device(
                user_email=email,
                device_fingerprint=fingerprint,
                device_type=device_type,
                device_name=device_name,
            )
            db.add(device)
        db.commit()
        db.refresh(device)
        return device

    @staticmethod
    def create_savepoint(db: Session, email: str, **fields) -> SavePoint:
        savepoint = SavePoint(user_email=email, **fields)
        db.add(savepoint)
        db.commit()
        db.refresh(savepoint)
        return savepoint

    @staticmethod
    def list_savepoints(db: Session, email: str) -> list[SavePoint]:
        return (
            db.query(SavePoint)
            .filter(SavePoint.user_email == email)
            .order_by(SavePoint.created_at.desc())
            .limit(MAX_LISTED_SAVEPOINTS)
            .all()
        )

    @staticmethod
    def get_savepoint(db: Session, savepoint_id: str, email: str) -> Optional[SavePoint]:
        return (
            db.query(SavePoint)
            .filter(SavePoint.id == savepoint_id, SavePoint.user_email == email)
            .first()
        )

    @staticmethod
    def delete_savepoint(db: Session, savepoint_id: str, email: str) -> int:
        deleted = (
            db.query(SavePoint)
            .filter(SavePoint.id == savepoint_id, SavePoint.user_email == email)
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted
