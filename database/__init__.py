"""
Database module for Campus Connector

Provides the student record models and the JSON flat-file store.
"""

from database.models import (
    Student,
    DocumentLink,
    DOCUMENT_TYPES,
    LINK_FIELDS,
    FOLDER_NAMES,
)
from database.store import StudentStore, DuplicateStudentError

__all__ = [
    "Student",
    "DocumentLink",
    "DOCUMENT_TYPES",
    "LINK_FIELDS",
    "FOLDER_NAMES",
    "StudentStore",
    "DuplicateStudentError",
]
