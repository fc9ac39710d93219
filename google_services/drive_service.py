#!/usr/bin/env python3
"""
Google Drive Service - Folder and file operations on Google Drive.

Thin wrapper over the Drive v3 API used by the storage layer. Errors
from the API (googleapiclient.errors.HttpError) propagate to the caller.
"""

import logging
from typing import Optional, Dict, Any

from googleapiclient.http import MediaFileUpload

from google_services.auth import GoogleAuth

logger = logging.getLogger(__name__)

# Google Drive folder MIME type
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


def _escape(value: str) -> str:
    """Escape a literal for use inside a Drive query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveService:
    """
    Google Drive API service wrapper.

    Provides methods for finding and creating folders, uploading,
    sharing, and deleting files.
    """

    def __init__(self, auth: Optional[GoogleAuth] = None, service: Any = None):
        """
        Initialize Drive service.

        Args:
            auth: GoogleAuth instance (creates one if not provided)
            service: Pre-built Drive API resource (skips auth)
        """
        self._auth = auth
        self._service = service

    @property
    def service(self):
        """Get the Drive API service (lazy load)."""
        if self._service is None:
            if self._auth is None:
                self._auth = GoogleAuth()
            self._service = self._auth.get_service("drive")
        return self._service

    def get_file_metadata(self, file_id: str, fields: str = "id, name") -> Dict[str, Any]:
        """
        Get file metadata.

        Args:
            file_id: Google Drive file ID
            fields: Partial response field selector

        Returns:
            File metadata dict
        """
        return self.service.files().get(fileId=file_id, fields=fields).execute()

    def find_folder(self, name: str, parent_id: Optional[str] = None) -> Optional[str]:
        """
        Find a folder by exact name.

        Args:
            name: Folder name
            parent_id: Restrict the search to this parent (any parent if None)

        Returns:
            ID of the first matching folder, or None
        """
        query = (
            f"name='{_escape(name)}' and "
            f"mimeType='{FOLDER_MIME_TYPE}' and "
            f"trashed=false"
        )
        if parent_id:
            query += f" and '{_escape(parent_id)}' in parents"

        response = self.service.files().list(
            q=query,
            spaces="drive",
            fields="files(id, name)",
        ).execute()

        files = response.get("files", [])
        if files:
            return files[0]["id"]
        return None

    def create_folder(self, name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a folder.

        Args:
            name: Folder name
            parent_id: Parent folder ID (Drive root if None)

        Returns:
            Dict with id, name and webViewLink
        """
        folder_metadata = {
            "name": name,
            "mimeType": FOLDER_MIME_TYPE,
            "parents": [parent_id] if parent_id else [],
        }

        folder = self.service.files().create(
            body=folder_metadata,
            fields="id, name, webViewLink",
        ).execute()

        logger.info(f"Created folder '{name}' in Drive ({folder['id']})")
        return folder

    def get_or_create_subfolder(self, parent_folder_id: str, folder_name: str) -> str:
        """
        Get existing subfolder or create it.

        Returns:
            Subfolder ID
        """
        folder_id = self.find_folder(folder_name, parent_folder_id)
        if folder_id:
            return folder_id
        return self.create_folder(folder_name, parent_folder_id)["id"]

    def upload_file(
        self,
        file_path: str,
        file_name: str,
        mime_type: str,
        folder_id: str,
    ) -> Dict[str, Any]:
        """
        Upload a local file into a folder.

        Returns:
            Created file metadata (id, name, webViewLink, webContentLink)
        """
        media = MediaFileUpload(file_path, mimetype=mime_type, resumable=False)
        return self.service.files().create(
            body={"name": file_name, "parents": [folder_id]},
            media_body=media,
            fields="id, name, webViewLink, webContentLink",
        ).execute()

    def make_public(self, file_id: str) -> None:
        """Grant read access to anyone with the link."""
        self.service.permissions().create(
            fileId=file_id,
            body={"role": "reader", "type": "anyone"},
        ).execute()

    def get_links(self, file_id: str) -> Dict[str, str]:
        """Get the view and download URLs for a file."""
        file = self.service.files().get(
            fileId=file_id,
            fields="webViewLink, webContentLink",
        ).execute()
        return {
            "webViewLink": file.get("webViewLink", ""),
            "webContentLink": file.get("webContentLink", ""),
        }

    def delete_file(self, file_id: str) -> None:
        """Permanently delete a file."""
        self.service.files().delete(fileId=file_id).execute()
        logger.info(f"Deleted Drive file {file_id}")

