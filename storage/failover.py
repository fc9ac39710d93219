#!/usr/bin/env python3
"""
Failover Storage - Remote backend with a per-call local fallback.

Each call goes to the remote backend first. If it raises, the error is
logged and the local backend answers that one call; the next call tries
the remote backend again. IDs issued by the local backend never reach
the remote one.
"""

import logging
from typing import Optional, Dict, Any

from storage.base import StorageBackend, UploadResult, is_local_id

logger = logging.getLogger(__name__)


class FailoverStorage(StorageBackend):
    """Routes every operation to primary, falling back to fallback on error."""

    def __init__(self, primary: StorageBackend, fallback: StorageBackend):
        self.primary = primary
        self.fallback = fallback

    @property
    def name(self) -> str:
        return self.primary.name

    def _fail_over(self, operation: str, error: Exception):
        logger.error(
            f"{self.primary.name} {operation} failed ({type(error).__name__}: {error}); "
            f"using {self.fallback.name} storage for this call"
        )

    def create_folder(self, folder_name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        if is_local_id(parent_id):
            return self.fallback.create_folder(folder_name, parent_id)
        try:
            return self.primary.create_folder(folder_name, parent_id)
        except Exception as e:
            self._fail_over("create_folder", e)
            return self.fallback.create_folder(folder_name, parent_id)

    def get_student_folder(self, student_id: str) -> Optional[str]:
        try:
            return self.primary.get_student_folder(student_id)
        except Exception as e:
            self._fail_over("get_student_folder", e)
            return self.fallback.get_student_folder(student_id)

    def create_student_folder(self, student_id: str) -> str:
        try:
            return self.primary.create_student_folder(student_id)
        except Exception as e:
            self._fail_over("create_student_folder", e)
            return self.fallback.create_student_folder(student_id)

    def get_document_type_folder(self, student_folder_id: str, document_type: str) -> str:
        if is_local_id(student_folder_id):
            return self.fallback.get_document_type_folder(student_folder_id, document_type)
        try:
            return self.primary.get_document_type_folder(student_folder_id, document_type)
        except Exception as e:
            self._fail_over("get_document_type_folder", e)
            return self.fallback.get_document_type_folder(student_folder_id, document_type)

    def upload_file(
        self, file_path: str, file_name: str, mime_type: str, folder_id: str
    ) -> UploadResult:
        if is_local_id(folder_id):
            return self.fallback.upload_file(file_path, file_name, mime_type, folder_id)
        try:
            return self.primary.upload_file(file_path, file_name, mime_type, folder_id)
        except Exception as e:
            self._fail_over("upload_file", e)
            return self.fallback.upload_file(file_path, file_name, mime_type, folder_id)

    def delete_file(self, file_id: str) -> bool:
        if is_local_id(file_id):
            return self.fallback.delete_file(file_id)
        try:
            return self.primary.delete_file(file_id)
        except Exception as e:
            # A remote file has no local copy to delete
            logger.error(f"Error deleting {self.primary.name} file {file_id}: {e}")
            return False
