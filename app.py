import os
from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from lms.infrastructure.config import settings
from lms.infrastructure.database import init_app as init_db
from lms.domain.errors import (
    AIClientError,
    BaseAppException,
    ForbiddenError,
    InvalidQuizError,
    LessonNotFoundError,
    ParsingError,
    PersistenceError,
    QuizNotFoundError,
    ResultNotFoundError,
    SessionCancelledError,
    SessionNotFoundError,
    SessionStateError,
)
from lms_utils.logger_utils import logger, set_log_level

# Import Blueprints
from lms.api.routes_auth import login_manager
from lms.api.routes_quiz import quiz_bp
from lms.api.routes_results import results_bp
from lms.api.routes_preview import preview_bp

# Application errors and the HTTP status they map to
ERROR_STATUS = {
    QuizNotFoundError: 404,
    ResultNotFoundError: 404,
    LessonNotFoundError: 404,
    SessionNotFoundError: 404,
    ForbiddenError: 403,
    InvalidQuizError: 422,
    SessionStateError: 409,
    SessionCancelledError: 409,
    PersistenceError: 502,
    AIClientError: 503,
    ParsingError: 502,
}


def create_app():
    """Application factory for Flask."""
    app = Flask(__name__)

    # --- Core Configuration ---
    app.config.from_object(settings)
    app.config['JSON_AS_ASCII'] = False
    set_log_level(settings.LOG_LEVEL)

    # --- Security Configuration ---
    app.config['SESSION_COOKIE_SECURE'] = settings.FLASK_ENV == 'production'
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    CORS(app, resources={r"/api/*": {"origins": "*"}}, supports_credentials=True)

    # --- Initialize Extensions ---
    init_db(app)
    login_manager.init_app(app)

    # --- Blueprints Registration ---
    app.register_blueprint(quiz_bp, url_prefix='/api')
    app.register_blueprint(results_bp, url_prefix='/api')
    app.register_blueprint(preview_bp, url_prefix='/api')

    @app.after_request
    def add_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        return response

    # --- Health Checks ---
    @app.route('/health')
    def health_check():
        return jsonify({"status": "healthy", "version": settings.VERSION}), 200

    @app.route('/health/detailed')
    def detailed_health_check():
        from lms.infrastructure.database import db
        health_status = {"status": "healthy", "components": {}}
        try:
            db.command('ping')
            health_status["components"]["mongodb"] = {"status": "healthy"}
        except Exception as e:
            health_status["components"]["mongodb"] = {"status": "unhealthy", "error": str(e)}
            health_status["status"] = "unhealthy"
        return jsonify(health_status), 503 if health_status["status"] == "unhealthy" else 200

    # --- Error Handling ---
    @app.errorhandler(BaseAppException)
    def handle_app_exception(error):
        status = next(
            (code for exc_type, code in ERROR_STATUS.items() if isinstance(error, exc_type)),
            400,
        )
        logger.warning(f"{type(error).__name__} for path {request.path}: {error}")
        return jsonify({"error": str(error), "type": type(error).__name__}), status

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        logger.warning(f"{error.code} error for path: {request.path}")
        return jsonify({"error": error.name}), error.code

    @app.errorhandler(Exception)
    def handle_exception(error):
        logger.error(f"Unhandled exception for path {request.path}: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error"}), 500

    logger.info(f"Flask App created successfully in {settings.FLASK_ENV} mode.")
    return app

if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=int(os.environ.get("PORT", 5000)))
