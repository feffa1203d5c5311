"""Flask application entry point."""

import atexit
import logging

from flask import Flask, jsonify
from flask_cors import CORS

from .auth.decorators import EXTENSION_KEY
from .auth.email import EmailNotifier
from .auth.hasher import BcryptHasher
from .auth.token import TokenCodec
from .config import settings
from .db import init_db
from .exceptions import AuthGateError, ResourceNotFound, ValidationError

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Create Flask app
app = Flask(__name__)

# CORS configuration
CORS(app, origins=settings.cors_origins, supports_credentials=True)


# Auth components are process-wide and built once from settings
notifier = EmailNotifier.from_settings(settings)
app.extensions[EXTENSION_KEY] = {
    "codec": TokenCodec.from_settings(settings),
    "hasher": BcryptHasher.from_settings(settings),
    "notifier": notifier,
}
atexit.register(notifier.shutdown)


# Database initialization (runs once on app startup)
def initialize_database():
    """Initialize database on app startup."""
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


with app.app_context():
    initialize_database()


def _error_response(error_type: str, message: str, details: dict | None = None) -> dict:
    response = {
        "success": False,
        "message": message,
        "error": {
            "type": error_type,
            "message": message
        }
    }
    if details:
        response["error"]["details"] = details
    return response


# Error handlers
@app.errorhandler(ResourceNotFound)
def handle_not_found(error):
    """Handle ResourceNotFound exceptions."""
    return jsonify(_error_response("ResourceNotFound", error.message, error.details)), 404


@app.errorhandler(ValidationError)
def handle_validation_error(error):
    """Handle ValidationError exceptions."""
    return jsonify(_error_response("ValidationError", error.message, error.details)), 400


@app.errorhandler(AuthGateError)
def handle_auth_gate_error(error):
    """Handle all other AuthGateError exceptions using their status code."""
    if error.status_code >= 500:
        logger.error(f"{error.__class__.__name__}: {error.message}")
        return jsonify(_error_response(
            error.__class__.__name__, "An internal error occurred"
        )), error.status_code
    return jsonify(
        _error_response(error.__class__.__name__, error.message, error.details)
    ), error.status_code


@app.errorhandler(500)
def handle_internal_error(error):
    """Handle internal server errors without leaking details."""
    logger.error(f"Internal error: {error}")
    return jsonify(_error_response("InternalServerError", "An internal error occurred")), 500


# Health check endpoint
@app.route("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok"})


# Register API blueprints
from .auth.api import auth_bp

app.register_blueprint(auth_bp)


if __name__ == "__main__":
    app.run(debug=True)
