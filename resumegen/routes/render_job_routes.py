"""
Render Job Routes
Enqueue resume renders, poll their status and download the finished document.

Authorization of the requester for a given resume or job is the caller's
responsibility.
"""
from io import BytesIO

from flask import Blueprint, jsonify, request, send_file
from pydantic import ValidationError

from resumegen import get_render_pipeline
from resumegen.exceptions import (
    ArtifactNotFoundError,
    JobNotFoundError,
    JobStateConflictError,
)
from resumegen.schemas import (
    EnqueueRenderRequest,
    EnqueueRenderResponse,
    ErrorResponse,
)

# Create Blueprint
render_job_bp = Blueprint('render_jobs', __name__, url_prefix='/api/render-jobs')


def error_response(error: str, message: str, status: int):
    """Create a standardized error response."""
    return jsonify(ErrorResponse(error=error, message=message, status=status).model_dump()), status


@render_job_bp.route('', methods=['POST'])
def enqueue_render_job():
    """
    Queue a resume for rendering

    Body: {resumeSnapshot, templateName, requesterId, resumeId, priority?}

    Returns:
        202: {jobId}
        400: Validation error
        503: Job store unreachable
    """
    payload = request.get_json(silent=True)
    if payload is None:
        return error_response("Validation Error", "Request body must be JSON", 400)

    try:
        data = EnqueueRenderRequest.model_validate(payload)
    except ValidationError as e:
        return jsonify({
            "error": "Validation Error",
            "message": "Invalid render request",
            "status": 400,
            "details": e.errors(include_url=False, include_context=False, include_input=False),
        }), 400

    service = get_render_pipeline().service
    job_id = service.enqueue_render(
        snapshot=data.resume_snapshot,
        requester_id=data.requester_id,
        resume_id=data.resume_id,
        template_name=data.template_name,
        priority=data.priority,
    )

    response = EnqueueRenderResponse(job_id=job_id)
    return jsonify(response.model_dump(by_alias=True)), 202


@render_job_bp.route('/templates', methods=['GET'])
def list_templates():
    """List the templates a render request may name."""
    templates = get_render_pipeline().service.available_templates()
    return jsonify({
        "templates": [t.model_dump(by_alias=True) for t in templates],
    }), 200


@render_job_bp.route('/<job_id>', methods=['GET'])
def get_render_job_status(job_id: str):
    """
    Poll a render job

    Returns:
        200: {jobId, status, attempts, progress?, result?, error?}
        404: {jobId, status: "not_found"}
    """
    status = get_render_pipeline().service.get_status(job_id)
    code = 404 if status.status == "not_found" else 200
    return jsonify(status.model_dump(by_alias=True, exclude_none=True)), code


@render_job_bp.route('/<job_id>/artifact', methods=['GET'])
def download_render_artifact(job_id: str):
    """
    Download the rendered document of a completed job

    Returns:
        200: PDF bytes
        404: Unknown job or artifact already deleted
        409: Job has not completed
    """
    service = get_render_pipeline().service
    try:
        content, content_type, file_name = service.open_artifact(job_id)
    except JobNotFoundError as e:
        return error_response("Not Found", e.reason, 404)
    except JobStateConflictError as e:
        return error_response("Conflict", e.reason, 409)
    except ArtifactNotFoundError as e:
        return error_response("Not Found", e.reason, 404)

    return send_file(
        BytesIO(content),
        mimetype=content_type,
        as_attachment=True,
        download_name=file_name
    )


@render_job_bp.route('/<job_id>', methods=['DELETE'])
def purge_render_job(job_id: str):
    """
    Delete a finished job and its document

    Returns:
        200: Purged
        404: Unknown job
        409: Job is still queued or active
    """
    service = get_render_pipeline().service
    try:
        service.purge(job_id)
    except JobNotFoundError as e:
        return error_response("Not Found", e.reason, 404)
    except JobStateConflictError as e:
        return error_response("Conflict", e.reason, 409)

    return jsonify({"message": "Render job purged", "jobId": job_id}), 200
