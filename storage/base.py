#!/usr/bin/env python3
"""
Storage Backend - Interface shared by the Drive and local backends.

A backend stores uploaded documents in a per-student folder with one
subfolder per document type. Folder and file IDs are opaque strings;
IDs issued by the local backend start with "mock-".
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any

from database.models import FOLDER_NAMES

# Prefix of every ID issued by the local backend
LOCAL_ID_PREFIX = "mock-"


def is_local_id(value: Optional[str]) -> bool:
    """Check whether a folder or file ID belongs to the local backend."""
    return str(value or "").startswith(LOCAL_ID_PREFIX)


def folder_name_for(document_type: str) -> str:
    """Subfolder name for a document type (unknown types go to assignments)."""
    return FOLDER_NAMES.get(document_type, FOLDER_NAMES["assignment"])


@dataclass
class UploadResult:
    """Where an uploaded file ended up."""
    file_id: str
    file_name: str
    shareable_link: str
    download_link: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileId": self.file_id,
            "fileName": self.file_name,
            "shareableLink": self.shareable_link,
            "downloadLink": self.download_link,
        }


class StorageBackend(ABC):
    """Folder and file operations for student documents."""

    #: Short backend name reported by the API ("google_drive", "local", ...)
    name: str = "abstract"

    @abstractmethod
    def create_folder(self, folder_name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        """Create a folder. Returns a dict with at least id and name."""

    @abstractmethod
    def get_student_folder(self, student_id: str) -> Optional[str]:
        """Find an existing student folder. Returns its ID or None."""

    @abstractmethod
    def create_student_folder(self, student_id: str) -> str:
        """Create a student folder and its four document-type subfolders."""

    @abstractmethod
    def get_document_type_folder(self, student_folder_id: str, document_type: str) -> str:
        """Get (creating if needed) the subfolder for a document type."""

    @abstractmethod
    def upload_file(
        self, file_path: str, file_name: str, mime_type: str, folder_id: str
    ) -> UploadResult:
        """Store a local file in a folder. The source file is left in place."""

    @abstractmethod
    def delete_file(self, file_id: str) -> bool:
        """Delete a stored file. Returns False if it could not be deleted."""
