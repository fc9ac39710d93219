#!/usr/bin/env python3
"""
Storage Factory - Pick the storage backend once, at startup.

- STORAGE_PROVIDER=local, or no Google credentials: LocalStorage
- Drive configured but the parent folder is unreachable: LocalStorage
  for the lifetime of the process (the cause is logged)
- Otherwise: FailoverStorage(DriveStorage, LocalStorage)
"""

import logging
from typing import Optional

from googleapiclient.errors import HttpError

from config import Config, get_config
from google_services.auth import GoogleAuth
from google_services.drive_service import DriveService
from storage.base import StorageBackend
from storage.drive_storage import DriveStorage
from storage.failover import FailoverStorage
from storage.local_storage import LocalStorage

logger = logging.getLogger(__name__)

LOCAL_URL_PREFIX = "/uploads/mock_drive"


def _http_status(error: Exception) -> Optional[int]:
    if isinstance(error, HttpError):
        status = getattr(error, "status_code", None) or getattr(error.resp, "status", None)
        return int(status) if status else None
    return None


def _explain_access_failure(error: Exception, auth: GoogleAuth, folder_id: str):
    """Log why the Drive parent folder could not be reached."""
    status = _http_status(error)
    logger.error("GOOGLE DRIVE CONNECTION FAILED")
    logger.error(f"  Error Code: {status or 'n/a'}")
    logger.error(f"  Error Message: {error}")
    logger.error(f"  Folder ID: {folder_id}")

    if status == 404:
        logger.error("  Cause: folder ID not found. Check GOOGLE_DRIVE_PARENT_FOLDER_ID in .env")
    elif status == 403:
        email = auth.service_account_email or "the service account email"
        logger.error(f"  Cause: permission denied. Share the folder with: {email}")


def create_local_storage(config: Config) -> LocalStorage:
    return LocalStorage(config.storage.mock_drive_dir, url_prefix=LOCAL_URL_PREFIX)


def create_storage_backend(
    config: Optional[Config] = None,
    auth: Optional[GoogleAuth] = None,
    drive: Optional[DriveService] = None,
) -> StorageBackend:
    """
    Build the storage backend for this process.

    Args:
        config: App config (global config if omitted)
        auth: GoogleAuth instance (built from config if omitted)
        drive: Pre-built DriveService (built from auth if omitted)

    Returns:
        A StorageBackend that is not reconfigured afterwards
    """
    config = config or get_config()
    local = create_local_storage(config)

    if config.storage.provider == "local":
        logger.info("Storage provider set to local; using local storage")
        return local

    auth = auth or GoogleAuth(config.drive)
    if drive is None:
        if not auth.has_credentials():
            logger.warning("GOOGLE DRIVE NOT CONFIGURED: running with local storage (mock mode)")
            return local
        drive = DriveService(auth)

    remote = DriveStorage(drive, config.drive.parent_folder_id)
    try:
        remote.verify_access()
    except Exception as e:
        _explain_access_failure(e, auth, config.drive.parent_folder_id)
        logger.warning("Switching to local storage (mock mode) for this process")
        return local

    return FailoverStorage(remote, local)
