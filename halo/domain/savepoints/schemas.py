"""Save point schemas"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class SavePointCreate(BaseModel):
    label: Optional[str] = None
    snapshot: Optional[dict[str, Any]] = None
    snapshotVersion: Optional[int] = None


class SavePointSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    label: str
    snapshot_version: int
    device_type: Optional[str] = None
    device_name: Optional[str] = None
    created_at: Optional[datetime] = None


class SavePointDetail(SavePointSummary):
    user_email: str
    device_id: Optional[str] = None
    snapshot_json: dict[str, Any]
