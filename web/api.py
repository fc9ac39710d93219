#!/usr/bin/env python3
"""
API Routes - Upload pipeline, student CRUD, search, health and OAuth.

Upload pipeline:
1. Save the upload to a temporary file
2. Classify it (regex or LLM) into the response grammar
3. Make sure the student record and storage folder exist
4. Store the file in the document-type subfolder and record the link
"""

import os
import time
import uuid
import logging
from datetime import datetime, timezone

from flask import Blueprint, request, jsonify
from werkzeug.utils import secure_filename

from database.models import LINK_FIELDS
from database.store import DuplicateStudentError
from storage.base import is_local_id
from storage.local_storage import LocalStorage
from classifier.response import (
    ACTION_ERROR,
    ERROR_UPLOAD_FAILED,
    format_error,
    parse_response,
)

logger = logging.getLogger(__name__)

LOCAL_BACKEND = LocalStorage.name

api = Blueprint("api", __name__)

ALLOWED_MIME_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def _services():
    # Imported here so web.app can import this module while building the app
    from web.app import get_services
    return get_services()


def _error(message, status):
    return jsonify({"error": message}), status


def _json_body():
    """Request JSON as a dict, or None if the body is not a JSON object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _remote_folder_id(student, storage):
    """
    Student folder ID usable with this backend.

    A local folder ID recorded while the remote backend was failing is
    ignored so the next upload tries the remote backend again.
    """
    folder_id = student.drive_folder_id if student else None
    if is_local_id(folder_id) and storage.name != LOCAL_BACKEND:
        return None
    return folder_id


def _save_incoming(file_storage, upload_dir: str) -> str:
    """Save an upload under a unique temporary name and return its path."""
    incoming_dir = os.path.join(upload_dir, "incoming")
    os.makedirs(incoming_dir, exist_ok=True)

    safe_name = secure_filename(file_storage.filename) or "upload"
    temp_name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{safe_name}"
    temp_path = os.path.join(incoming_dir, temp_name)
    file_storage.save(temp_path)
    return temp_path


# =============================================================================
# Upload
# =============================================================================

@api.route("/upload", methods=["POST"])
def upload():
    """Classify an uploaded document and file it under its student."""
    services = _services()

    file = request.files.get("file")
    if file is None or not file.filename:
        return _error("No file uploaded", 400)

    if file.mimetype not in ALLOWED_MIME_TYPES:
        return _error(f"Invalid file type: {file.mimetype or 'unknown'}", 400)

    original_name = file.filename
    metadata = {"studentId": request.form.get("studentId")}
    temp_path = _save_incoming(file, services.config.storage.upload_dir)
    logger.info(f"File uploaded: {original_name}")

    try:
        classifier = services.classifier
        store = services.store
        storage = services.storage

        candidate_id = classifier.resolve_student_id(original_name, metadata)
        student = store.find_by_student_id(candidate_id)
        folder_exists = bool(_remote_folder_id(student, storage))

        ai_response = classifier.classify(original_name, metadata, folder_exists)
        logger.info(f"AI Response: {ai_response!r}")

        action = parse_response(ai_response)
        if action.action == ACTION_ERROR:
            return jsonify({"aiResponse": ai_response, "error": action.error}), 400
        if not action.is_actionable:
            return jsonify({
                "aiResponse": ai_response,
                "error": "Unrecognized classifier response",
            }), 400

        student_id = action.student_id
        document_type = action.document_type
        if document_type not in LINK_FIELDS:
            return jsonify({
                "aiResponse": ai_response,
                "error": f"Unknown document type: {document_type}",
            }), 400

        if student is None or not student.matches(student_id):
            student = store.find_by_student_id(student_id)
        if student is None:
            student = store.create({
                "studentId": student_id,
                "name": request.form.get("name") or "",
                "department": request.form.get("department") or "",
            })
            logger.info(f"Created new student: {student.student_id}")

        folder_id = _remote_folder_id(student, storage)
        if action.needs_folder or not folder_id:
            folder_id = storage.get_student_folder(student.student_id)
            if not folder_id:
                folder_id = storage.create_student_folder(student.student_id)
            if not is_local_id(folder_id) or storage.name == LOCAL_BACKEND:
                store.set_drive_folder_id(student.student_id, folder_id)

        type_folder_id = storage.get_document_type_folder(folder_id, document_type)
        result = storage.upload_file(temp_path, original_name, file.mimetype, type_folder_id)
        link = store.add_document_link(student.student_id, document_type, result)

        backend = LOCAL_BACKEND if is_local_id(result.file_id) else storage.name
        logger.info(f"Stored {original_name} for {student.student_id} as {document_type} ({backend})")

        return jsonify({
            "aiResponse": ai_response,
            "success": True,
            "documentId": link.id if link else None,
            "documentType": document_type,
            "studentId": student.student_id,
            "shareableLink": result.shareable_link,
            "storage": backend,
        })

    except Exception as e:
        logger.exception(f"Upload failed for {original_name}: {e}")
        return jsonify({"aiResponse": format_error(ERROR_UPLOAD_FAILED), "error": str(e)}), 500

    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)


# =============================================================================
# Students
# =============================================================================

@api.route("/api/students", methods=["GET"])
def list_students():
    students = _services().store.find_all()
    return jsonify([s.to_dict() for s in students])


@api.route("/api/students/<student_id>", methods=["GET"])
def get_student(student_id):
    student = _services().store.find_by_student_id(student_id)
    if not student:
        return _error("Student not found", 404)
    return jsonify(student.to_dict())


@api.route("/api/students", methods=["POST"])
def create_student():
    """Create a student. 400 without studentId, 409 if it exists."""
    data = _json_body()
    if data is None:
        return _error("Request body must be a JSON object", 400)
    try:
        student = _services().store.create(data)
    except DuplicateStudentError:
        return _error("Student already exists", 409)
    except ValueError as e:
        return _error(str(e), 400)
    return jsonify(student.to_dict()), 201


@api.route("/api/students/<student_id>", methods=["PUT"])
def update_student(student_id):
    data = _json_body()
    if data is None:
        return _error("Request body must be a JSON object", 400)
    try:
        student = _services().store.update(student_id, data)
    except ValueError as e:
        return _error(str(e), 400)
    if not student:
        return _error("Student not found", 404)
    return jsonify(student.to_dict())


@api.route("/api/students/<student_id>", methods=["DELETE"])
def delete_student(student_id):
    if not _services().store.delete(student_id):
        return _error("Student not found", 404)
    return jsonify({"message": "Student deleted successfully"})


@api.route("/api/students/<student_id>/documents", methods=["GET"])
def get_documents(student_id):
    student = _services().store.find_by_student_id(student_id)
    if not student:
        return _error("Student not found", 404)
    return jsonify(student.to_dict()["documents"])


@api.route("/api/students/<student_id>/stats", methods=["GET"])
def get_stats(student_id):
    stats = _services().store.get_document_stats(student_id)
    if stats is None:
        return _error("Student not found", 404)
    return jsonify(stats)


@api.route("/api/students/<student_id>/documents/<document_type>/<document_id>", methods=["DELETE"])
def delete_document(student_id, document_type, document_id):
    """Remove a document link and its stored file."""
    services = _services()

    if document_type not in LINK_FIELDS:
        return _error(f"Invalid document type: {document_type}", 400)

    student = services.store.find_by_student_id(student_id)
    if not student:
        return _error("Student not found", 404)

    link = services.store.get_document(student_id, document_type, document_id)
    if not link:
        return _error("Document not found", 404)

    if link.file_id and not services.storage.delete_file(link.file_id):
        logger.warning(f"Stored file {link.file_id} could not be deleted; removing link anyway")

    services.store.remove_document_link(student_id, document_type, document_id)
    return jsonify({"message": "Document deleted successfully"})


@api.route("/api/search", methods=["GET"])
def search_students():
    query = request.args.get("q", "")
    students = _services().store.search(query)
    return jsonify([s.to_dict() for s in students])


# =============================================================================
# Health and OAuth
# =============================================================================

@api.route("/health", methods=["GET"])
def health():
    services = _services()
    return jsonify({
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "storage": services.storage.name,
        "classifier": type(services.classifier).__name__,
    })


@api.route("/auth/google", methods=["GET"])
def google_auth():
    """URL of the Google consent screen."""
    try:
        auth_url = _services().auth.get_authorization_url()
    except RuntimeError as e:
        return _error(str(e), 400)
    return jsonify({"authUrl": auth_url})


@api.route("/auth/google/callback", methods=["GET"])
def google_auth_callback():
    """Exchange the authorization code and show the refresh token once."""
    code = request.args.get("code")
    if not code:
        return _error("No authorization code provided", 400)

    try:
        tokens = _services().auth.exchange_code(code)
    except Exception as e:
        logger.error(f"Error getting tokens: {e}")
        return jsonify({"error": "Failed to get tokens", "details": str(e)}), 500

    return jsonify({
        "message": "Authentication successful!",
        "refreshToken": tokens.get("refresh_token"),
        "note": "Save this refresh token in your .env file as GOOGLE_REFRESH_TOKEN",
    })
