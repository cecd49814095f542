"""API routes for the application."""

from datetime import datetime, timezone

from flask import Blueprint, jsonify, current_app

from config.settings import settings
from resumegen import get_render_pipeline
from resumegen.exceptions import StoreUnavailableError
from resumegen.schemas import AppInfoSchema, HealthCheckSchema

bp = Blueprint("api", __name__, url_prefix="/api")

VERSION = "0.1.0"


@bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint, including per-state queue counts."""
    try:
        queue_counts = get_render_pipeline().queue.counts()
        status, code = "healthy", 200
    except StoreUnavailableError:
        queue_counts = {}
        status, code = "degraded", 503

    schema = HealthCheckSchema(
        status=status,
        timestamp=datetime.now(timezone.utc),
        environment=settings.environment,
        queue=queue_counts,
    )
    return jsonify(schema.model_dump(mode="json")), code


@bp.route("/info", methods=["GET"])
def app_info():
    """Get application information."""
    schema = AppInfoSchema(
        name="Resumegen Render Service",
        version=VERSION,
        environment=settings.environment,
        debug=current_app.debug,
        timestamp=datetime.now(timezone.utc),
    )
    return jsonify(schema.model_dump(mode="json")), 200


@bp.route("/", methods=["GET"])
def root():
    """Root API endpoint."""
    return jsonify({
        "message": "Welcome to the Resumegen render API",
        "version": VERSION,
        "endpoints": {
            "health": "/api/health",
            "info": "/api/info",
            "render_jobs": "/api/render-jobs",
            "templates": "/api/render-jobs/templates",
        },
    }), 200
