"""Flask application factory and initialization."""

import logging
from typing import Any, Type

from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask.logging import default_handler

from config.base import BaseConfig
from config.settings import settings

# Initialize extensions
db = SQLAlchemy()
cors = CORS()

LOG_HANDLER_NAME = "resumegen"


def setup_logging(app: Flask, log_format: str = "json") -> None:
    """Setup logging configuration for the application."""
    log_level = app.config.get("LOG_LEVEL", "INFO")

    if not any(h.get_name() == LOG_HANDLER_NAME for h in app.logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(LOG_HANDLER_NAME)
        if log_format == "json":
            # Structured JSON logging
            from pythonjsonlogger import jsonlogger

            formatter = jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        else:
            formatter = logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        app.logger.removeHandler(default_handler)
        app.logger.addHandler(handler)

    # Service loggers (resumegen.services.*) propagate to the app logger
    app.logger.setLevel(getattr(logging, log_level))

    app.logger.info(
        "Application initialized",
        extra={
            "environment": settings.environment,
            "debug": app.debug,
            "testing": app.testing,
        }
    )


def setup_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from resumegen.exceptions import StoreUnavailableError

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return {
            "error": "Not Found",
            "message": "The requested resource was not found",
            "status": 404,
        }, 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 errors."""
        return {
            "error": "Method Not Allowed",
            "message": "The HTTP method is not allowed for this resource",
            "status": 405,
        }, 405

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 errors."""
        return {
            "error": "Bad Request",
            "message": "The request was invalid",
            "status": 400,
        }, 400

    @app.errorhandler(StoreUnavailableError)
    def store_unavailable(error):
        """Handle an unreachable job store."""
        app.logger.error(f"Job store unavailable: {error.reason}")
        return {
            "error": "Service Unavailable",
            "message": "The render job store is unreachable",
            "status": 503,
        }, 503

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        app.logger.error(f"Internal server error: {error}")
        return {
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
            "status": 500,
        }, 500


def register_blueprints(app: Flask) -> None:
    """Register Flask blueprints."""
    from resumegen.routes import api
    from resumegen.routes import render_job_routes

    # Health check and service info
    app.register_blueprint(api.bp)

    # Render job enqueue / status / download
    app.register_blueprint(render_job_routes.render_job_bp)


def init_render_pipeline(app: Flask, rendering_engine: Any = None) -> None:
    """Build the render pipeline over the app's database engine."""
    from resumegen.services.render_pipeline import build_render_pipeline
    from resumegen.utils.database import configure_store_engine

    with app.app_context():
        store_engine = configure_store_engine(db.engine)

    app_settings = settings
    engine_command = app.config.get("RENDER_ENGINE_COMMAND")
    if engine_command:
        app_settings = settings.model_copy(update={"render_engine_command": engine_command})

    app.extensions["render_pipeline"] = build_render_pipeline(
        store_engine,
        app_settings=app_settings,
        rendering_engine=rendering_engine,
        artifact_root=app.config.get("ARTIFACT_STORAGE_PATH"),
    )


def create_app(config: Type[BaseConfig] = None, rendering_engine: Any = None) -> Flask:
    """Create and configure Flask application.

    Args:
        config: Configuration class to use. If None, uses environment-based config.
        rendering_engine: Rendering engine override (defaults to WeasyPrint).

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Load configuration
    if config is None:
        if settings.is_production:
            from config.production import ProductionConfig
            config = ProductionConfig
        elif settings.is_testing:
            from config.testing import TestingConfig
            config = TestingConfig
        else:
            from config.development import DevelopmentConfig
            config = DevelopmentConfig

    app.config.from_object(config)

    # Setup logging
    setup_logging(app, app.config.get("LOG_FORMAT", "json"))

    # Initialize extensions
    db.init_app(app)

    cors.init_app(app, resources={
        r"/api/*": {
            "origins": app.config.get("CORS_ORIGINS", ["*"]),
            "methods": ["GET", "POST", "DELETE", "OPTIONS"],
            "allow_headers": app.config.get("CORS_ALLOW_HEADERS", ["*"]),
            "expose_headers": app.config.get("CORS_EXPOSE_HEADERS", ["*"]),
            "supports_credentials": app.config.get("CORS_SUPPORTS_CREDENTIALS", True),
        }
    })

    # Render pipeline (queue, templates, engine, artifact store)
    init_render_pipeline(app, rendering_engine)

    # Setup error handlers
    setup_error_handlers(app)

    # Register blueprints
    register_blueprints(app)

    app.logger.info(
        "Flask application created",
        extra={
            "config": config.__name__,
            "database": app.config.get("SQLALCHEMY_DATABASE_URI", "").split("://")[0],
        }
    )

    return app


def get_db():
    """Get database instance."""
    return db


def get_render_pipeline():
    """Get the render pipeline of the current app."""
    return current_app.extensions["render_pipeline"]
