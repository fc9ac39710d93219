#!/usr/bin/env python3
"""
Local Storage - Local-disk stand-in for Google Drive ("mock mode").

Folders are virtual: their IDs are "mock-folder-<name>" tags and nothing
is created on disk. Uploaded files are copied flat into one directory and
served by the web app under a local URL.
"""

import os
import time
import uuid
import shutil
import logging
from typing import Optional, Dict, Any

from storage.base import StorageBackend, UploadResult, LOCAL_ID_PREFIX

logger = logging.getLogger(__name__)

FOLDER_PREFIX = LOCAL_ID_PREFIX + "folder-"
FILE_PREFIX = LOCAL_ID_PREFIX + "file-"


class LocalStorage(StorageBackend):
    """
    Local-disk storage backend.

    Usage:
        storage = LocalStorage("uploads/mock_drive", url_prefix="/uploads/mock_drive")
        result = storage.upload_file("/tmp/x.pdf", "x.pdf", "application/pdf", "mock-folder-assignment")
    """

    name = "local"

    def __init__(self, root_dir: str, url_prefix: str = "/uploads/mock_drive"):
        """
        Initialize local storage.

        Args:
            root_dir: Directory that receives file copies
            url_prefix: URL path under which root_dir is served
        """
        self.root_dir = root_dir
        self.url_prefix = url_prefix.rstrip("/")
        os.makedirs(self.root_dir, exist_ok=True)

    def create_folder(self, folder_name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        return {"id": FOLDER_PREFIX + folder_name, "name": folder_name}

    def get_student_folder(self, student_id: str) -> Optional[str]:
        return FOLDER_PREFIX + student_id

    def create_student_folder(self, student_id: str) -> str:
        return FOLDER_PREFIX + student_id

    def get_document_type_folder(self, student_folder_id: str, document_type: str) -> str:
        return FOLDER_PREFIX + document_type

    def path_for(self, stored_name: str) -> str:
        """Absolute path of a stored file (basename only, never escapes root)."""
        return os.path.join(self.root_dir, os.path.basename(stored_name))

    def upload_file(
        self, file_path: str, file_name: str, mime_type: str, folder_id: str
    ) -> UploadResult:
        """Copy the file into the local store and return its local URL."""
        os.makedirs(self.root_dir, exist_ok=True)

        safe_name = os.path.basename(file_name.replace("\\", "/")) or "upload"
        stored_name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{safe_name}"
        shutil.copyfile(file_path, self.path_for(stored_name))

        url = f"{self.url_prefix}/{stored_name}"
        logger.info(f"Stored {file_name} locally as {stored_name}")

        return UploadResult(
            file_id=FILE_PREFIX + stored_name,
            file_name=file_name,
            shareable_link=url,
            download_link=url,
        )

    def delete_file(self, file_id: str) -> bool:
        """Remove a locally stored copy. Unknown IDs count as already deleted."""
        if not str(file_id).startswith(FILE_PREFIX):
            return True

        path = self.path_for(file_id[len(FILE_PREFIX):])
        if os.path.exists(path):
            os.remove(path)
            logger.info(f"Deleted local file {path}")
        return True
