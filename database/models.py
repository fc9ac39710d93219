#!/usr/bin/env python3
"""
Database Models - Student and document-link records for Campus Connector

Records:
- Student: one per natural student ID, holding contact fields, the Drive
  folder ID and four ordered lists of document links
- DocumentLink: one uploaded file, stored under its document type

Both serialize to the camelCase JSON shape used by the HTTP API and the
flat-file store.
"""

import uuid
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

# Document types, in classification order
DOCUMENT_TYPES = ("assignment", "idCard", "certificate", "feeReceipt")

# Document type -> key of the link list on the student record
LINK_FIELDS = {
    "assignment": "assignmentLinks",
    "idCard": "idCardLinks",
    "certificate": "certificateLinks",
    "feeReceipt": "feeReceiptLinks",
}

# Document type -> subfolder name in the student's storage folder
# (also used as the key in document stats)
FOLDER_NAMES = {
    "assignment": "assignments",
    "idCard": "idCards",
    "certificate": "certificates",
    "feeReceipt": "feeReceipts",
}

# Fields a client may change through update()
EDITABLE_FIELDS = {
    "name": "name",
    "department": "department",
    "email": "email",
    "phone": "phone",
    "driveFolderId": "drive_folder_id",
}


def utc_now() -> str:
    """Current time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


def is_document_type(value: Optional[str]) -> bool:
    return value in LINK_FIELDS


@dataclass
class DocumentLink:
    """A single uploaded document. Never mutated after creation."""
    file_name: str
    shareable_link: str
    download_link: str
    file_id: Optional[str] = None
    id: str = field(default_factory=new_id)
    uploaded_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fileName": self.file_name,
            "shareableLink": self.shareable_link,
            "downloadLink": self.download_link,
            "fileId": self.file_id,
            "uploadedAt": self.uploaded_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentLink":
        return cls(
            id=data.get("id") or new_id(),
            file_name=data.get("fileName", ""),
            shareable_link=data.get("shareableLink", ""),
            download_link=data.get("downloadLink", ""),
            file_id=data.get("fileId"),
            uploaded_at=data.get("uploadedAt") or utc_now(),
        )


def _empty_documents() -> Dict[str, List[DocumentLink]]:
    return {link_field: [] for link_field in LINK_FIELDS.values()}


@dataclass
class Student:
    """
    Student record.

    student_id is the natural key; lookups compare it case-insensitively.
    drive_folder_id is trusted once set and is never re-verified.
    """
    student_id: str
    name: str = ""
    department: str = ""
    email: str = ""
    phone: str = ""
    documents: Dict[str, List[DocumentLink]] = field(default_factory=_empty_documents)
    drive_folder_id: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    def matches(self, student_id: Optional[str]) -> bool:
        """Case-insensitive natural key comparison."""
        if not student_id:
            return False
        return self.student_id.lower() == student_id.strip().lower()

    def links_for(self, document_type: str) -> List[DocumentLink]:
        return self.documents.setdefault(LINK_FIELDS[document_type], [])

    @property
    def document_count(self) -> int:
        return sum(len(links) for links in self.documents.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "studentId": self.student_id,
            "name": self.name,
            "department": self.department,
            "email": self.email,
            "phone": self.phone,
            "documents": {
                key: [link.to_dict() for link in links]
                for key, links in self.documents.items()
            },
            "driveFolderId": self.drive_folder_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Student":
        documents = _empty_documents()
        for key, links in (data.get("documents") or {}).items():
            if key in documents:
                documents[key] = [DocumentLink.from_dict(link) for link in links or []]

        now = utc_now()
        return cls(
            id=data.get("id") or new_id(),
            student_id=data.get("studentId", ""),
            name=data.get("name") or "",
            department=data.get("department") or "",
            email=data.get("email") or "",
            phone=data.get("phone") or "",
            documents=documents,
            drive_folder_id=data.get("driveFolderId"),
            created_at=data.get("createdAt") or now,
            updated_at=data.get("updatedAt") or now,
        )

    def __repr__(self):
        return f"<Student(id={self.id}, student_id='{self.student_id}', name='{self.name}')>"
