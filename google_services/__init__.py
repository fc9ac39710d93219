"""
Google Workspace integration for Campus Connector.

Provides authentication and the Drive API wrapper used by the
storage layer.
"""

from google_services.auth import GoogleAuth
from google_services.drive_service import DriveService, FOLDER_MIME_TYPE

__all__ = [
    "GoogleAuth",
    "DriveService",
    "FOLDER_MIME_TYPE",
]
