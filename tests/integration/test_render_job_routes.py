"""Integration tests for the render job API."""

import pytest

from conftest import FAKE_PDF


def enqueue(client, snapshot, **overrides):
    body = {
        "resumeSnapshot": snapshot,
        "templateName": "modern",
        "requesterId": "user-1",
        "resumeId": "resume-1",
    }
    body.update(overrides)
    return client.post("/api/render-jobs", json=body)


def process_all(app):
    """Run every ready job through the app's pipeline on the test thread."""
    pipeline = app.extensions["render_pipeline"]
    dispatcher = pipeline.dispatcher()
    while True:
        job = pipeline.queue.claim_next("test-worker")
        if job is None:
            return
        dispatcher.process("test-worker", job)


@pytest.mark.integration
class TestEnqueueRenderJob:
    """Test POST /api/render-jobs."""

    def test_enqueue_returns_job_id(self, client, sample_snapshot):
        response = enqueue(client, sample_snapshot)

        assert response.status_code == 202
        assert response.get_json()["jobId"]

    def test_enqueued_job_is_queued(self, client, sample_snapshot):
        job_id = enqueue(client, sample_snapshot).get_json()["jobId"]

        response = client.get(f"/api/render-jobs/{job_id}")
        data = response.get_json()

        assert response.status_code == 200
        assert data["jobId"] == job_id
        assert data["status"] == "queued"
        assert data["attempts"] == 0
        assert "result" not in data
        assert "error" not in data

    def test_missing_fields_are_rejected(self, client, sample_snapshot):
        response = client.post("/api/render-jobs", json={"resumeSnapshot": sample_snapshot})

        assert response.status_code == 400
        data = response.get_json()
        assert data["error"] == "Validation Error"
        assert data["details"]

    def test_non_json_body_is_rejected(self, client):
        response = client.post("/api/render-jobs", data="not json", content_type="text/plain")
        assert response.status_code == 400

    def test_unknown_fields_are_rejected(self, client, sample_snapshot):
        response = enqueue(client, sample_snapshot, callbackUrl="http://example.com")
        assert response.status_code == 400


@pytest.mark.integration
class TestRenderJobStatus:
    """Test GET /api/render-jobs/<job_id>."""

    def test_unknown_job_is_not_found(self, client):
        response = client.get("/api/render-jobs/does-not-exist")

        assert response.status_code == 404
        data = response.get_json()
        assert data["jobId"] == "does-not-exist"
        assert data["status"] == "not_found"

    def test_completed_job_reports_result(self, app, client, sample_snapshot):
        job_id = enqueue(client, sample_snapshot).get_json()["jobId"]
        process_all(app)

        data = client.get(f"/api/render-jobs/{job_id}").get_json()

        assert data["status"] == "completed"
        assert data["progress"] == 100
        assert data["attempts"] == 1
        assert data["result"]["size"] == len(FAKE_PDF)
        assert data["result"]["template"] == "modern"
        assert data["result"]["fileName"] == "Senior_Engineer_Resume.pdf"


@pytest.mark.integration
class TestRenderJobArtifact:
    """Test GET /api/render-jobs/<job_id>/artifact."""

    def test_artifact_of_unfinished_job_is_conflict(self, client, sample_snapshot):
        job_id = enqueue(client, sample_snapshot).get_json()["jobId"]

        response = client.get(f"/api/render-jobs/{job_id}/artifact")

        assert response.status_code == 409

    def test_artifact_of_unknown_job_is_not_found(self, client):
        response = client.get("/api/render-jobs/does-not-exist/artifact")
        assert response.status_code == 404

    def test_download_completed_artifact(self, app, client, sample_snapshot):
        job_id = enqueue(client, sample_snapshot).get_json()["jobId"]
        process_all(app)

        response = client.get(f"/api/render-jobs/{job_id}/artifact")

        assert response.status_code == 200
        assert response.mimetype == "application/pdf"
        assert response.data == FAKE_PDF
        assert "Senior_Engineer_Resume.pdf" in response.headers["Content-Disposition"]


@pytest.mark.integration
class TestPurgeRenderJob:
    """Test DELETE /api/render-jobs/<job_id>."""

    def test_active_or_queued_job_cannot_be_purged(self, client, sample_snapshot):
        job_id = enqueue(client, sample_snapshot).get_json()["jobId"]

        response = client.delete(f"/api/render-jobs/{job_id}")

        assert response.status_code == 409

    def test_purge_completed_job(self, app, client, sample_snapshot):
        job_id = enqueue(client, sample_snapshot).get_json()["jobId"]
        process_all(app)

        response = client.delete(f"/api/render-jobs/{job_id}")
        assert response.status_code == 200
        assert response.get_json()["jobId"] == job_id

        assert client.get(f"/api/render-jobs/{job_id}").status_code == 404
        assert client.delete(f"/api/render-jobs/{job_id}").status_code == 404


@pytest.mark.integration
class TestTemplateListing:
    """Test GET /api/render-jobs/templates."""

    def test_lists_builtin_templates(self, client):
        response = client.get("/api/render-jobs/templates")

        assert response.status_code == 200
        templates = {t["id"]: t for t in response.get_json()["templates"]}
        assert {"modern", "classic"} <= set(templates)
        assert templates["modern"]["isDefault"] is True
        assert templates["classic"]["isDefault"] is False
