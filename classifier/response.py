#!/usr/bin/env python3
"""
Classifier Response Grammar - Format and parse classifier decisions.

Formats (strict):

    STORE: {studentId} → {documentType}

    CREATE_FOLDER: {studentId}
    THEN_STORE: {documentType}

    ERROR: {TOKEN}

The parser also accepts "->" for the arrow, since language models do not
always reproduce the Unicode arrow.
"""

import re
from dataclasses import dataclass
from typing import Optional

ARROW = "→"

ERROR_NO_STUDENT_ID = "NO_STUDENT_ID"
ERROR_UPLOAD_FAILED = "UPLOAD_FAILED"

ACTION_STORE = "store"
ACTION_CREATE_AND_STORE = "create_and_store"
ACTION_ERROR = "error"

_ERROR_RE = re.compile(r"^\s*ERROR:\s*(.*)$", re.DOTALL)
_CREATE_FOLDER_RE = re.compile(r"CREATE_FOLDER:\s*(\S+)")
_THEN_STORE_RE = re.compile(r"THEN_STORE:\s*(\S+)")
_STORE_RE = re.compile(r"(?<!THEN_)STORE:\s*(\S+?)\s*(?:→|->)\s*(\S+)")


@dataclass
class ClassifierAction:
    """Structured form of a classifier response."""
    action: Optional[str] = None  # store, create_and_store, error, or None if unparseable
    student_id: Optional[str] = None
    document_type: Optional[str] = None
    needs_folder: bool = False
    error: Optional[str] = None

    @property
    def is_actionable(self) -> bool:
        return self.action in (ACTION_STORE, ACTION_CREATE_AND_STORE)


def format_store(student_id: str, document_type: str) -> str:
    return f"STORE: {student_id} {ARROW} {document_type}"


def format_create_and_store(student_id: str, document_type: str) -> str:
    return f"CREATE_FOLDER: {student_id}\nTHEN_STORE: {document_type}"


def format_error(token: str) -> str:
    return f"ERROR: {token}"


def format_response(student_id: Optional[str], document_type: str, folder_exists: bool) -> str:
    """Render a classification in the response grammar."""
    if not student_id:
        return format_error(ERROR_NO_STUDENT_ID)
    if not folder_exists:
        return format_create_and_store(student_id, document_type)
    return format_store(student_id, document_type)


def parse_response(text: Optional[str]) -> ClassifierAction:
    """
    Parse a classifier response.

    Malformed input never raises; it yields an action of None.

    Args:
        text: Response string in the classifier grammar

    Returns:
        ClassifierAction
    """
    result = ClassifierAction()
    if not text:
        return result

    text = text.strip()

    error_match = _ERROR_RE.match(text)
    if error_match:
        result.action = ACTION_ERROR
        result.error = error_match.group(1).strip()
        return result

    if "CREATE_FOLDER:" in text:
        folder_match = _CREATE_FOLDER_RE.search(text)
        type_match = _THEN_STORE_RE.search(text)
        if folder_match and type_match:
            result.action = ACTION_CREATE_AND_STORE
            result.needs_folder = True
            result.student_id = folder_match.group(1)
            result.document_type = type_match.group(1)
        return result

    store_match = _STORE_RE.search(text)
    if store_match:
        result.action = ACTION_STORE
        result.student_id = store_match.group(1)
        result.document_type = store_match.group(2)

    return result
