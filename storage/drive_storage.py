#!/usr/bin/env python3
"""
Drive Storage - Google Drive backend for student documents.

Layout under the configured parent folder:

    <parent>/<studentId>/assignments
                        /idCards
                        /certificates
                        /feeReceipts

API errors propagate; FailoverStorage decides what to do with them.
"""

import logging
from typing import Optional, Dict, Any

from database.models import FOLDER_NAMES
from google_services.drive_service import DriveService
from storage.base import StorageBackend, UploadResult, folder_name_for

logger = logging.getLogger(__name__)


class DriveStorage(StorageBackend):
    """
    Google Drive storage backend.

    Student folder IDs are memoized per process, keyed by student ID.
    """

    name = "google_drive"

    def __init__(self, drive: DriveService, parent_folder_id: Optional[str] = None):
        """
        Initialize Drive storage.

        Args:
            drive: DriveService wrapper
            parent_folder_id: Folder that holds all student folders (Drive root if None)
        """
        self.drive = drive
        self.parent_folder_id = parent_folder_id or None
        self.folder_cache: Dict[str, str] = {}

    def verify_access(self) -> None:
        """
        Check that the parent folder is reachable.

        Raises:
            googleapiclient.errors.HttpError: 404 if the folder does not
                exist, 403 if it is not shared with the credentials
        """
        if not self.parent_folder_id:
            return
        folder = self.drive.get_file_metadata(self.parent_folder_id, fields="id, name")
        logger.info(f"Access confirmed to Google Drive folder: {folder.get('name')} ({self.parent_folder_id})")

    def create_folder(self, folder_name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        return self.drive.create_folder(folder_name, parent_id or self.parent_folder_id)

    def get_student_folder(self, student_id: str) -> Optional[str]:
        if student_id in self.folder_cache:
            return self.folder_cache[student_id]

        folder_id = self.drive.find_folder(student_id, self.parent_folder_id)
        if folder_id:
            self.folder_cache[student_id] = folder_id
        return folder_id

    def create_student_folder(self, student_id: str) -> str:
        main_folder = self.create_folder(student_id)
        for subfolder in FOLDER_NAMES.values():
            self.create_folder(subfolder, main_folder["id"])

        self.folder_cache[student_id] = main_folder["id"]
        logger.info(f"Created Drive folder structure for {student_id}")
        return main_folder["id"]

    def get_document_type_folder(self, student_folder_id: str, document_type: str) -> str:
        return self.drive.get_or_create_subfolder(student_folder_id, folder_name_for(document_type))

    def upload_file(
        self, file_path: str, file_name: str, mime_type: str, folder_id: str
    ) -> UploadResult:
        created = self.drive.upload_file(file_path, file_name, mime_type, folder_id)
        file_id = created["id"]

        try:
            self.drive.make_public(file_id)
        except Exception as e:
            # Some organizations forbid public sharing; the file is still stored
            logger.warning(f"Could not set public permissions on {file_id}: {e}")

        links = self.drive.get_links(file_id)
        logger.info(f"Uploaded {file_name} to Drive ({file_id})")

        return UploadResult(
            file_id=file_id,
            file_name=created.get("name", file_name),
            shareable_link=links["webViewLink"],
            download_link=links["webContentLink"],
        )

    def delete_file(self, file_id: str) -> bool:
        self.drive.delete_file(file_id)
        return True
