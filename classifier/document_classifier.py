#!/usr/bin/env python3
"""
Document Classifier - Decide document type and owner from a filename.

Deterministic, pattern-based classification:
1. Document type - first type (in table order) with a matching pattern,
   defaulting to "assignment"
2. Student ID - explicit ID from the upload form, otherwise the first
   student-ID pattern (in table order) found in the filename, uppercased

The result is rendered in the classifier response grammar so the regex
path and the LLM path are interchangeable.
"""

import re
import logging
from typing import Optional, Dict, Any, List, Tuple

from classifier.response import format_response

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_TYPE = "assignment"

# Word separators accepted inside multi-word patterns ("id card", "id_card", "id-card")
_SEP = r"[\s_\-]*"


class DocumentClassifier:
    """
    Pattern-based document classifier.

    Usage:
        classifier = DocumentClassifier()
        classifier.classify("ST102_Math_HW.pdf")            # STORE: ST102 → assignment
        classifier.classify("Fee_Receipt_Jan.pdf",
                            {"studentId": "ST105"},
                            folder_exists=False)             # CREATE_FOLDER: ST105 ...
    """

    # Document type patterns, checked in this order
    DOCUMENT_TYPE_PATTERNS: List[Tuple[str, List[str]]] = [
        ("assignment", [
            r"assignment",
            r"homework",
            r"project",
            r"submission",
            r"task",
            rf"lab{_SEP}report",
            r"practical",
        ]),
        ("idCard", [
            rf"id{_SEP}card",
            r"identity",
            rf"student{_SEP}id",
            rf"college{_SEP}id",
            rf"photo{_SEP}id",
        ]),
        ("certificate", [
            r"certificate",
            r"diploma",
            r"degree",
            r"award",
            r"achievement",
            r"completion",
            r"merit",
        ]),
        ("feeReceipt", [
            r"fee",
            r"receipt",
            r"payment",
            r"invoice",
            r"challan",
            r"transaction",
            r"bill",
        ]),
    ]

    # Student ID patterns, checked in this order
    STUDENT_ID_PATTERNS = [
        r"ST\d{3,}",                 # ST101, ST1234
        r"STU\d{3,}",                # STU101, STU1234
        r"\d{4}[A-Z]{2,}\d{3,}",     # 2024CS001
        r"[A-Z]{2,}\d{4,}",          # CS20240001
    ]

    def __init__(self):
        """Initialize the classifier."""
        self._compile_patterns()

    def _compile_patterns(self):
        """Pre-compile regex patterns."""
        self._type_patterns = [
            (doc_type, [re.compile(p, re.IGNORECASE) for p in patterns])
            for doc_type, patterns in self.DOCUMENT_TYPE_PATTERNS
        ]
        self._student_id_patterns = [
            re.compile(p, re.IGNORECASE) for p in self.STUDENT_ID_PATTERNS
        ]

    def classify_document_type(self, filename: str) -> str:
        """
        Classify document type from filename.

        Args:
            filename: Original upload filename

        Returns:
            One of assignment, idCard, certificate, feeReceipt
        """
        normalized = (filename or "").lower()

        for doc_type, patterns in self._type_patterns:
            for pattern in patterns:
                if pattern.search(normalized):
                    return doc_type

        return DEFAULT_DOCUMENT_TYPE

    def extract_student_id(
        self, filename: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[str]:
        """
        Extract a student ID from the filename, then from metadata.

        Args:
            filename: Original upload filename
            metadata: Optional upload metadata (studentId)

        Returns:
            Uppercased student ID, or None
        """
        for pattern in self._student_id_patterns:
            match = pattern.search(filename or "")
            if match:
                return match.group(0).upper()

        explicit = _metadata_student_id(metadata)
        if explicit:
            return explicit

        return None

    def resolve_student_id(
        self, filename: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[str]:
        """Student ID to file under: explicit metadata first, else extracted."""
        return _metadata_student_id(metadata) or self.extract_student_id(filename)

    def classify(
        self,
        filename: str,
        metadata: Optional[Dict[str, Any]] = None,
        folder_exists: bool = True,
    ) -> str:
        """
        Classify an upload.

        Args:
            filename: Original upload filename
            metadata: Optional upload metadata (studentId)
            folder_exists: Whether the student already has a storage folder

        Returns:
            Response string in the classifier grammar
        """
        document_type = self.classify_document_type(filename)
        student_id = self.resolve_student_id(filename, metadata)

        response = format_response(student_id, document_type, folder_exists)
        logger.debug(f"Classified '{filename}' -> {response!r}")
        return response


def _metadata_student_id(metadata: Optional[Dict[str, Any]]) -> Optional[str]:
    if not metadata:
        return None
    value = metadata.get("studentId")
    if value is None:
        return None
    value = str(value).strip()
    return value.upper() or None
