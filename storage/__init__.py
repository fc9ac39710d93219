"""
Storage - Where uploaded student documents are kept.

Backends:
- DriveStorage: Google Drive
- LocalStorage: local disk stand-in ("mock mode")
- FailoverStorage: Drive first, local disk when a call fails
"""

from storage.base import StorageBackend, UploadResult, is_local_id
from storage.drive_storage import DriveStorage
from storage.local_storage import LocalStorage
from storage.failover import FailoverStorage
from storage.factory import create_storage_backend

__all__ = [
    "StorageBackend",
    "UploadResult",
    "is_local_id",
    "DriveStorage",
    "LocalStorage",
    "FailoverStorage",
    "create_storage_backend",
]
