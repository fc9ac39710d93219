#!/usr/bin/env python3
"""
LLM Classifier - Ask a hosted language model for the classifier response.

The model is prompted to answer in the same response grammar as the
regex classifier. Its answer is only used if it parses to a store or
create-and-store action with a known document type and a real student
ID; otherwise the regex classifier answers instead.
"""

import logging
from typing import Optional, Dict, Any, Union

from config import Config, get_config
from database.models import DOCUMENT_TYPES, is_document_type
from classifier.document_classifier import DocumentClassifier, DEFAULT_DOCUMENT_TYPE
from classifier.llm_client import LLMClient, LLMError
from classifier.response import ARROW, parse_response

logger = logging.getLogger(__name__)

UNKNOWN_STUDENT_ID = "UNKNOWN"

PROMPT_TEMPLATE = """
You are a strict Classification AI for a College Management System.

TASK:
1. Analyze the filename: "{filename}"
2. Determine the Document Type from these options: [{document_types}]. Default to '{default_type}' if unsure.
3. Confirm the Student ID provided: "{student_id}". If the filename contains a different ID, prioritize the filename's ID.

CONTEXT:
- Folder Exists: {folder_exists}

OUTPUT FORMAT (Strict String):
If folder exists:
STORE: {{studentId}} {arrow} {{documentType}}

If folder missing (Context says Folder Exists: false):
CREATE_FOLDER: {{studentId}}
THEN_STORE: {{documentType}}

EXAMPLES:
- "ST102_Math_HW.pdf", Folder Exists=true -> STORE: ST102 {arrow} assignment
- "Fee_Receipt_Jan.pdf", ID="ST105", Folder Exists=false -> CREATE_FOLDER: ST105
THEN_STORE: feeReceipt

Do not provide explanations. Only return the string format.
"""


class LLMClassifier:
    """
    Classifier backed by a hosted LLM with a regex fallback.

    Exposes the same classify() / resolve_student_id() surface as
    DocumentClassifier.
    """

    def __init__(self, client: LLMClient, fallback: Optional[DocumentClassifier] = None):
        """
        Initialize the classifier.

        Args:
            client: LLM client for the configured provider
            fallback: Regex classifier used for context and on any failure
        """
        self.client = client
        self.fallback = fallback or DocumentClassifier()

    def resolve_student_id(
        self, filename: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[str]:
        return self.fallback.resolve_student_id(filename, metadata)

    def build_prompt(self, filename: str, student_id: Optional[str], folder_exists: bool) -> str:
        return PROMPT_TEMPLATE.format(
            filename=filename,
            document_types=", ".join(DOCUMENT_TYPES),
            default_type=DEFAULT_DOCUMENT_TYPE,
            student_id=student_id or UNKNOWN_STUDENT_ID,
            folder_exists=str(folder_exists).lower(),
            arrow=ARROW,
        )

    @staticmethod
    def _validate(response: str) -> str:
        parsed = parse_response(response)
        if not parsed.is_actionable:
            raise LLMError(f"Invalid AI response format: {response!r}")
        if not is_document_type(parsed.document_type):
            raise LLMError(f"Unknown document type in AI response: {parsed.document_type!r}")
        if not parsed.student_id or parsed.student_id.upper() == UNKNOWN_STUDENT_ID:
            raise LLMError("AI response did not name a student ID")
        return response

    def classify(
        self,
        filename: str,
        metadata: Optional[Dict[str, Any]] = None,
        folder_exists: bool = True,
    ) -> str:
        """
        Classify an upload with the LLM, falling back to regex rules.

        Returns:
            Response string in the classifier grammar
        """
        student_id = self.fallback.resolve_student_id(filename, metadata)
        prompt = self.build_prompt(filename, student_id, folder_exists)

        try:
            response = self._validate(self.client.generate(prompt))
            logger.info(f"{self.client.provider} response: {response!r}")
            return response
        except LLMError as e:
            logger.error(f"AI classification failed (using fallback): {e}")

        return self.fallback.classify(filename, metadata, folder_exists)


def create_classifier(
    config: Optional[Config] = None,
) -> Union[DocumentClassifier, LLMClassifier]:
    """
    Build the classifier for this process.

    Returns:
        LLMClassifier if an LLM provider is enabled and configured,
        otherwise DocumentClassifier
    """
    config = config or get_config()
    regex_classifier = DocumentClassifier()

    if not config.llm.enabled:
        logger.info("LLM classification disabled; using regex classifier")
        return regex_classifier

    if not config.llm.is_valid():
        logger.info(f"LLM provider '{config.llm.provider}' not configured; using regex classifier")
        return regex_classifier

    logger.info(f"Using {config.llm.provider} classifier with regex fallback")
    return LLMClassifier(LLMClient(config.llm), regex_classifier)
