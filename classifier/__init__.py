#!/usr/bin/env python3
"""
Classifier Module - Decide document type and owning student for an upload.

Components:
- response: the STORE / CREATE_FOLDER / THEN_STORE / ERROR grammar
- document_classifier: regex-based classification
- llm_client: single-shot completion against a hosted LLM
- llm_classifier: LLM classification with regex fallback
"""

from .response import (
    ClassifierAction,
    format_response,
    parse_response,
)
from .document_classifier import DocumentClassifier
from .llm_client import LLMClient, LLMError
from .llm_classifier import LLMClassifier, create_classifier

__all__ = [
    "ClassifierAction",
    "format_response",
    "parse_response",
    "DocumentClassifier",
    "LLMClient",
    "LLMError",
    "LLMClassifier",
    "create_classifier",
]
