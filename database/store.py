#!/usr/bin/env python3
"""
Student Store - JSON flat-file persistence for student records.

The whole database is one JSON document: {"students": [...]}. Every
operation reloads the file and every mutation rewrites it, so several
processes sharing one file can still lose updates. Within one process a
lock serializes read-modify-write cycles.
"""

import os
import json
import logging
import tempfile
import threading
from typing import Optional, List, Dict, Any

from database.models import (
    Student,
    DocumentLink,
    LINK_FIELDS,
    FOLDER_NAMES,
    EDITABLE_FIELDS,
    utc_now,
)

logger = logging.getLogger(__name__)


class DuplicateStudentError(ValueError):
    """Raised when creating a student whose ID already exists."""

    def __init__(self, student_id: str):
        super().__init__(f"Student already exists: {student_id}")
        self.student_id = student_id


def _text(data: Dict[str, Any], key: str) -> str:
    """String field from a request body; None counts as empty."""
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


class StudentStore:
    """
    CRUD over student records kept in a single JSON file.

    Usage:
        store = StudentStore("database/students.json")
        student = store.create({"studentId": "ST101", "name": "Asha"})
        store.add_document_link("ST101", "assignment", upload_result)
    """

    def __init__(self, path: str):
        """
        Initialize the store, creating an empty database file if needed.

        Args:
            path: Location of the JSON database file
        """
        self.path = path
        self._lock = threading.RLock()
        self._ensure_file()

    def _ensure_file(self):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        if not os.path.exists(self.path):
            self._write({"students": []})

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict) or not isinstance(data.get("students"), list):
                raise ValueError("missing 'students' list")
            return data
        except (OSError, ValueError) as e:
            logger.error(f"Student database unreadable ({self.path}): {e}. Starting empty.")
            data = {"students": []}
            self._write(data)
            return data

    def _write(self, data: Dict[str, Any]):
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".students-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _load_students(self) -> List[Student]:
        return [Student.from_dict(s) for s in self._read()["students"]]

    def _save_students(self, students: List[Student]):
        self._write({"students": [s.to_dict() for s in students]})

    @staticmethod
    def _index_of(students: List[Student], student_id: Optional[str]) -> int:
        for i, student in enumerate(students):
            if student.matches(student_id):
                return i
        return -1

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def find_all(self) -> List[Student]:
        """Get all students in insertion order."""
        with self._lock:
            return self._load_students()

    def find_by_student_id(self, student_id: Optional[str]) -> Optional[Student]:
        """Find a student by natural ID (case-insensitive)."""
        if not student_id:
            return None
        with self._lock:
            students = self._load_students()
            index = self._index_of(students, student_id)
            return students[index] if index >= 0 else None

    def find_by_id(self, internal_id: str) -> Optional[Student]:
        """Find a student by generated internal ID."""
        with self._lock:
            for student in self._load_students():
                if student.id == internal_id:
                    return student
        return None

    def exists(self, student_id: Optional[str]) -> bool:
        return self.find_by_student_id(student_id) is not None

    def search(self, query: Optional[str]) -> List[Student]:
        """
        Search students by name, department, or student ID.

        Args:
            query: Case-insensitive substring

        Returns:
            Matching students (empty list for an empty query)
        """
        if not query or not query.strip():
            return []
        needle = query.strip().lower()
        return [
            s for s in self.find_all()
            if needle in s.name.lower()
            or needle in s.department.lower()
            or needle in s.student_id.lower()
        ]

    def get_document(
        self, student_id: str, document_type: str, document_id: str
    ) -> Optional[DocumentLink]:
        """Find one document link on a student."""
        if document_type not in LINK_FIELDS:
            return None
        student = self.find_by_student_id(student_id)
        if not student:
            return None
        for link in student.links_for(document_type):
            if link.id == document_id:
                return link
        return None

    def get_document_stats(self, student_id: str) -> Optional[Dict[str, int]]:
        """Count documents per type for a student."""
        student = self.find_by_student_id(student_id)
        if not student:
            return None

        stats = {
            FOLDER_NAMES[doc_type]: len(student.links_for(doc_type))
            for doc_type in LINK_FIELDS
        }
        stats["total"] = student.document_count
        return stats

    def get_drive_folder_id(self, student_id: str) -> Optional[str]:
        student = self.find_by_student_id(student_id)
        return student.drive_folder_id if student else None

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create(self, data: Dict[str, Any]) -> Student:
        """
        Create a new student.

        Args:
            data: camelCase fields (studentId required)

        Returns:
            The created Student

        Raises:
            ValueError: If studentId is missing or a field is not a string
            DuplicateStudentError: If the studentId already exists
        """
        student_id = _text(data, "studentId").strip()
        if not student_id:
            raise ValueError("Student ID is required")

        with self._lock:
            students = self._load_students()
            if self._index_of(students, student_id) >= 0:
                raise DuplicateStudentError(student_id)

            student = Student(
                student_id=student_id,
                name=_text(data, "name"),
                department=_text(data, "department"),
                email=_text(data, "email"),
                phone=_text(data, "phone"),
                drive_folder_id=_text(data, "driveFolderId") or None,
            )
            students.append(student)
            self._save_students(students)

        logger.info(f"Created student {student.student_id}")
        return student

    def update(self, student_id: str, changes: Dict[str, Any]) -> Optional[Student]:
        """
        Update editable fields of a student.

        Only name, department, email, phone and driveFolderId are applied;
        other keys are ignored.

        Returns:
            Updated Student, or None if not found

        Raises:
            ValueError: If an editable field is not a string (or null)
        """
        for key in EDITABLE_FIELDS:
            if key in changes:
                _text(changes, key)

        with self._lock:
            students = self._load_students()
            index = self._index_of(students, student_id)
            if index < 0:
                return None

            student = students[index]
            for key, attr in EDITABLE_FIELDS.items():
                if key in changes:
                    value = changes[key]
                    if attr != "drive_folder_id":
                        value = value or ""
                    setattr(student, attr, value)
            student.updated_at = utc_now()
            self._save_students(students)
            return student

    def set_drive_folder_id(self, student_id: str, folder_id: str) -> Optional[Student]:
        return self.update(student_id, {"driveFolderId": folder_id})

    def delete(self, student_id: str) -> bool:
        """
        Delete a student and its document links.

        Files already uploaded to storage are left in place.
        """
        with self._lock:
            students = self._load_students()
            index = self._index_of(students, student_id)
            if index < 0:
                return False

            removed = students.pop(index)
            self._save_students(students)

        logger.info(f"Deleted student {removed.student_id} ({removed.document_count} document links dropped)")
        return True

    def add_document_link(
        self, student_id: str, document_type: str, link_data: Any
    ) -> Optional[DocumentLink]:
        """
        Append a document link to a student.

        Args:
            student_id: Natural student ID
            document_type: One of the four document types
            link_data: UploadResult (or equivalent camelCase dict)

        Returns:
            The new DocumentLink, or None if the student or type is unknown
        """
        if document_type not in LINK_FIELDS:
            return None

        if hasattr(link_data, "to_dict"):
            link_data = link_data.to_dict()

        with self._lock:
            students = self._load_students()
            index = self._index_of(students, student_id)
            if index < 0:
                return None

            student = students[index]
            link = DocumentLink(
                file_name=link_data.get("fileName", ""),
                shareable_link=link_data.get("shareableLink", ""),
                download_link=link_data.get("downloadLink", ""),
                file_id=link_data.get("fileId"),
            )
            student.links_for(document_type).append(link)
            student.updated_at = utc_now()
            self._save_students(students)

        logger.info(f"Linked {link.file_name} to {student.student_id} as {document_type}")
        return link

    def remove_document_link(self, student_id: str, document_type: str, document_id: str) -> bool:
        """Remove one document link. Returns False if nothing matched."""
        if document_type not in LINK_FIELDS:
            return False

        with self._lock:
            students = self._load_students()
            index = self._index_of(students, student_id)
            if index < 0:
                return False

            student = students[index]
            links = student.links_for(document_type)
            remaining = [link for link in links if link.id != document_id]
            if len(remaining) == len(links):
                return False

            student.documents[LINK_FIELDS[document_type]] = remaining
            student.updated_at = utc_now()
            self._save_students(students)
            return True
