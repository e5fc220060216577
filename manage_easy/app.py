import os
import logging
from flask import Flask, jsonify
from flask_cors import CORS
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

import firebase_admin
from firebase_admin import credentials

from manage_easy.api import ideas_bp, features_bp, works_bp, comments_bp, tags_bp, users_bp
from manage_easy.config.settings import Settings
from manage_easy.firebase_utils import get_firebase_credentials
from manage_easy.middleware.error_middleware import register_error_handlers

logger = logging.getLogger(__name__)


def init_firebase():
    """Initialize Firebase, but allow app to run without it in dev mode."""
    if Settings.DEV_MODE:
        logger.info("Running in DEV_MODE - Firebase disabled")
        return False

    if firebase_admin._apps:
        return True

    # Emulators only need a project id
    if Settings.FIRESTORE_EMULATOR_HOST or Settings.FIREBASE_AUTH_EMULATOR_HOST:
        project_id = os.getenv("GCLOUD_PROJECT") or Settings.FIREBASE_PROJECT_ID or "demo-manage-easy"
        os.environ.setdefault("GCLOUD_PROJECT", project_id)
        try:
            firebase_admin.initialize_app(options={"projectId": project_id})
        except Exception as e:
            logger.error(f"Emulator initialization failed: {e}")
            return False
        logger.info(f"Firebase initialized for emulators (project {project_id}, "
                    f"firestore={Settings.FIRESTORE_EMULATOR_HOST}, auth={Settings.FIREBASE_AUTH_EMULATOR_HOST})")
        return True

    try:
        cred = credentials.Certificate(get_firebase_credentials())
        firebase_admin.initialize_app(cred)
    except ValueError as e:
        logger.warning(f"{e}")
        logger.warning("Set FIRESTORE_EMULATOR_HOST=localhost:8080 to use emulators, or DEV_MODE=true")
        return False
    except Exception as e:
        logger.error(f"Firebase initialization failed: {e}")
        return False
    logger.info("Firebase initialized (cloud mode)")
    return True


def create_app():
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Configure CORS - MUST be before routes
    CORS(app,
         resources={r"/*": {"origins": Settings.CORS_ORIGINS}},
         allow_headers=["Content-Type", "Authorization"],
         methods=["GET", "POST", "OPTIONS"])

    # Initialize Firebase (allow app to start even if Firebase fails)
    firebase_initialized = init_firebase()

    @app.get("/")
    def health():
        return jsonify({
            "status": "ok",
            "service": "manage-easy-api",
            "firebase": "connected" if firebase_initialized else "not configured"
        }), 200

    register_error_handlers(app)

    # Register all blueprints
    app.register_blueprint(ideas_bp)
    app.register_blueprint(features_bp)
    app.register_blueprint(works_bp)
    app.register_blueprint(comments_bp)
    app.register_blueprint(tags_bp)
    app.register_blueprint(users_bp)

    return app


def main():
    """Main entry point for running the application."""
    Settings.validate()
    app = create_app()
    app.run(host="0.0.0.0", port=Settings.PORT, debug=Settings.DEBUG)


if __name__ == "__main__":  # pragma: no cover
    main()
