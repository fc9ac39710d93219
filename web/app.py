#!/usr/bin/env python3
"""
Campus Connector Web App - HTTP API and static frontend.

Run with: python -m web.app
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional, Any

from flask import Flask, jsonify, send_from_directory, current_app
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from config import Config, get_config
from database.store import StudentStore
from google_services.auth import GoogleAuth
from storage import StorageBackend, create_storage_backend
from storage.factory import LOCAL_URL_PREFIX
from classifier import create_classifier

logger = logging.getLogger(__name__)

EXTENSION_KEY = "campus"


@dataclass
class Services:
    """Per-app service container (stored in app.extensions)."""
    config: Config
    store: StudentStore
    storage: StorageBackend
    classifier: Any  # DocumentClassifier or LLMClassifier
    auth: GoogleAuth


def get_services() -> Services:
    """Services of the current Flask app."""
    return current_app.extensions[EXTENSION_KEY]


def _register_error_handlers(app: Flask):
    @app.errorhandler(RequestEntityTooLarge)
    def too_large(e):
        limit = app.config["MAX_CONTENT_LENGTH"] // (1024 * 1024)
        return jsonify({"error": f"File too large (max {limit}MB)"}), 413

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def unhandled_error(e):
        logger.exception(f"Unhandled error: {e}")
        return jsonify({"error": str(e) or "Something went wrong!"}), 500


def create_app(
    config: Optional[Config] = None,
    store: Optional[StudentStore] = None,
    storage: Optional[StorageBackend] = None,
    classifier: Any = None,
    auth: Optional[GoogleAuth] = None,
) -> Flask:
    """
    Build the Flask application.

    Any service not passed in is built from config.

    Args:
        config: App config (global config if omitted)
        store: Student store
        storage: Storage backend
        classifier: DocumentClassifier or LLMClassifier
        auth: GoogleAuth used for the OAuth routes and the Drive backend

    Returns:
        Configured Flask app
    """
    config = config or get_config()
    auth = auth or GoogleAuth(config.drive)

    services = Services(
        config=config,
        store=store or StudentStore(config.database.students_path),
        storage=storage or create_storage_backend(config, auth=auth),
        classifier=classifier or create_classifier(config),
        auth=auth,
    )

    app = Flask(__name__, static_folder="static", static_url_path="/static")
    app.config["MAX_CONTENT_LENGTH"] = config.server.max_content_length
    app.extensions[EXTENSION_KEY] = services

    # flask-cors echoes the Origin unless the wildcard is a bare string
    origins = config.server.cors_origins
    if origins == ["*"]:
        CORS(app, origins="*", send_wildcard=True)
    else:
        CORS(app, origins=origins)

    os.makedirs(os.path.join(config.storage.upload_dir, "incoming"), exist_ok=True)

    from web.api import api
    app.register_blueprint(api)

    @app.route("/")
    def index():
        """Serve the frontend."""
        return app.send_static_file("index.html")

    @app.route(f"{LOCAL_URL_PREFIX}/<path:filename>")
    def local_upload(filename):
        """Serve files kept by the local storage backend."""
        return send_from_directory(
            os.path.abspath(config.storage.mock_drive_dir), filename
        )

    _register_error_handlers(app)

    logger.info(
        f"App ready: storage={services.storage.name}, "
        f"classifier={type(services.classifier).__name__}"
    )
    return app


def run_server(host="0.0.0.0", port=3000, debug=False):
    """Run the Flask development server."""
    app = create_app()
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    import argparse

    config = get_config()

    parser = argparse.ArgumentParser(description="Run the Campus Connector web server")
    parser.add_argument("--host", default=config.server.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=config.server.port, help="Port to listen on")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, config.server.log_level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    print(f"Starting Campus Connector on http://{args.host}:{args.port}")
    print("Endpoints:")
    print("  POST /upload                 - Classify and store a document")
    print("  GET  /api/students           - List students")
    print("  GET  /api/search?q=          - Search students")
    print("  GET  /health                 - Health check")
    print()

    run_server(args.host, args.port, args.debug or config.server.debug)
