"""
Save point snapshot versioning.

A snapshot is the account document plus a ``version``. When the document
shape changes, bump ``SNAPSHOT_VERSION`` and register a function in
``MIGRATIONS`` under the version it upgrades *from*; restoring an older
snapshot runs the steps in order.
"""

import logging
from typing import Callable, Optional

from .schemas import UserDocument

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

# source version -> function returning the snapshot at source version + 1
MIGRATIONS: dict[int, Callable[[dict], dict]] = {}


def create_snapshot(document: UserDocument) -> dict:
    snapshot = document.to_json()
    snapshot["version"] = SNAPSHOT_VERSION
    return snapshot


def migrate_snapshot(
    snapshot: dict,
    migrations: Optional[dict[int, Callable[[dict], dict]]] = None,
    target_version: int = SNAPSHOT_VERSION,
) -> dict:
    """Bring ``snapshot`` up to ``target_version``; the input is not modified"""
    steps = MIGRATIONS if migrations is None else migrations
    current = dict(snapshot)
    if not current.get("version"):
        current["version"] = 1

    while current["version"] < target_version:
        migrate = steps.get(current["version"])
        if migrate is None:
            logger.warning(
                f"⚠️ No snapshot migration from v{current['version']} to v{current['version'] + 1}, "
                "forcing current version"
            )
            current["version"] = target_version
            break
        logger.info(f"🔄 Migrating snapshot v{current['version']} -> v{current['version'] + 1}")
        current = migrate(current)

    return current


def snapshot_to_document(snapshot: dict) -> UserDocument:
    migrated = migrate_snapshot(snapshot)
    migrated.pop("version", None)
    return UserDocument.model_validate(migrated)
