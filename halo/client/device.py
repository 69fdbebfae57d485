"""Privacy-safe device fingerprint: a random id generated once per device"""

import uuid

from .storage import LocalStorage

FINGERPRINT_STORAGE_KEY = "halo_device_fingerprint"


def get_device_fingerprint(storage: LocalStorage) -> str:
    fingerprint = storage.get_item(FINGERPRINT_STORAGE_KEY)
    if not fingerprint:
        fingerprint = str(uuid.uuid4())
        storage.set_item(FINGERPRINT_STORAGE_KEY, fingerprint)
    return fingerprint
