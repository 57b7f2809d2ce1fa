"""Initialize the Flask app and Firebase Admin."""

import json
import os

import firebase_admin
from firebase_admin import credentials
from werkzeug.middleware.proxy_fix import ProxyFix
from flask import Flask

from .core.constants import (
    MAX_VIDEO_BYTES,
    MAX_VIDEO_DURATION_MS,
    QUEUE_SCAN_LIMIT,
    UPLOAD_CHUNK_SIZE,
)

TRUTHY = ["true", "1", "t", "yes"]


def _env_int(name, default):
    return int(os.environ.get(name) or default)


def init_firebase(app):
    """Initialize the Firebase Admin SDK from the first credentials found."""
    cred = None
    project_id = None

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id")
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id")
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        try:
            cred = credentials.ApplicationDefault()
            project_id = os.environ.get("FIREBASE_PROJECT_ID")
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        storage_bucket = os.environ.get("FIREBASE_STORAGE_BUCKET")
        if not storage_bucket and project_id:
            storage_bucket = f"{project_id}.firebasestorage.app"

        firebase_options = {"storageBucket": storage_bucket}
        if project_id:
            firebase_options["projectId"] = project_id

        try:
            firebase_admin.initialize_app(cred, firebase_options)
        except ValueError:
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    max_video_bytes = _env_int("SKATE_MAX_VIDEO_BYTES", MAX_VIDEO_BYTES)
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        SKATE_QUEUE_SCAN_LIMIT=_env_int("SKATE_QUEUE_SCAN_LIMIT", QUEUE_SCAN_LIMIT),
        SKATE_ROLE_SWAP_ON_LAND=(
            os.environ.get("SKATE_ROLE_SWAP_ON_LAND") or "false"
        ).lower()
        in TRUTHY,
        SKATE_MAX_VIDEO_BYTES=max_video_bytes,
        SKATE_MAX_VIDEO_DURATION_MS=_env_int(
            "SKATE_MAX_VIDEO_DURATION_MS", MAX_VIDEO_DURATION_MS
        ),
        # Resumable uploads need a multiple of 256 KiB
        SKATE_UPLOAD_CHUNK_SIZE=_env_int("SKATE_UPLOAD_CHUNK_SIZE", UPLOAD_CHUNK_SIZE),
        MAX_CONTENT_LENGTH=max_video_bytes + 1024 * 1024,
    )

    if test_config:
        app.config.update(test_config)

    if app.config["SKATE_UPLOAD_CHUNK_SIZE"] % (256 * 1024):
        raise ValueError("SKATE_UPLOAD_CHUNK_SIZE must be a multiple of 256 KiB.")

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        init_firebase(app)

    # Register blueprints
    from . import matchmaking as matchmaking_bp

    app.register_blueprint(matchmaking_bp.bp)

    from . import match as match_bp

    app.register_blueprint(match_bp.bp)

    from . import remote as remote_bp

    app.register_blueprint(remote_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
