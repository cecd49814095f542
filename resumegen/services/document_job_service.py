"""
Document Job Service

Producer-side API of the render pipeline (enqueue, status, artifact access,
purge) and the job handler the dispatcher runs for each claimed job.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from resumegen.exceptions import (
    InvalidContentError,
    JobNotFoundError,
    JobStateConflictError,
)
from resumegen.models import RenderJobState
from resumegen.schemas.render_job_schema import RenderJobStatusResponse, TemplateInfoSchema
from resumegen.schemas.resume_snapshot_schema import ResumeSnapshot
from resumegen.services.artifact_store import LocalArtifactStore
from resumegen.services.dispatcher import ProgressReporter
from resumegen.services.export import DocumentCompositor, TemplateResolver, document_title
from resumegen.services.job_queue_service import ClaimedJob, JobQueue
from resumegen.utils.filenames import sanitize_filename

logger = logging.getLogger(__name__)

GENERATE_PDF = "generate-pdf"


class RenderJobHandler:
    """
    Turns one claimed job into a stored artifact.

    snapshot -> template -> composed HTML -> engine -> artifact store
    """

    def __init__(
        self,
        resolver: TemplateResolver,
        compositor: DocumentCompositor,
        engine,
        artifact_store: LocalArtifactStore,
        clock=None,
    ):
        self.resolver = resolver
        self.compositor = compositor
        self.engine = engine
        self.artifact_store = artifact_store
        self.clock = clock or artifact_store.clock

    def __call__(self, job: ClaimedJob, report_progress: ProgressReporter) -> Dict[str, Any]:
        if job.kind != GENERATE_PDF:
            raise InvalidContentError(f"unsupported job kind '{job.kind}'")

        try:
            snapshot = ResumeSnapshot.model_validate(job.payload.get("resume_snapshot") or {})
        except ValidationError as e:
            raise InvalidContentError(f"invalid resume snapshot ({e.error_count()} errors)")

        skeleton = self.resolver.resolve(job.payload.get("template_name"))
        document = self.compositor.compose(snapshot, skeleton)
        report_progress(30)

        title = document_title(snapshot)
        pdf_bytes = self.engine.render(document, title)
        report_progress(80)

        artifact_ref = self.artifact_store.save(job.job_id, pdf_bytes)
        return {
            "artifact_ref": artifact_ref,
            "file_name": f"{sanitize_filename(title)}.pdf",
            "size": len(pdf_bytes),
            "content_type": self.artifact_store.content_type(artifact_ref),
            "template": skeleton.name,
            "generated_at": self.clock().isoformat(),
        }

    def discard(self, result: Dict[str, Any]) -> None:
        """Delete the artifact of a completion the queue rejected."""
        artifact_ref = (result or {}).get("artifact_ref")
        if artifact_ref:
            self.artifact_store.delete(artifact_ref)


class DocumentJobService:
    """Enqueue render jobs and read their outcome."""

    def __init__(
        self,
        queue: JobQueue,
        artifact_store: LocalArtifactStore,
        resolver: TemplateResolver,
        default_priority: int = 1,
    ):
        self.queue = queue
        self.artifact_store = artifact_store
        self.resolver = resolver
        self.default_priority = default_priority

    def enqueue_render(
        self,
        snapshot: ResumeSnapshot,
        requester_id: str,
        resume_id: str,
        template_name: Optional[str] = None,
        priority: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ) -> str:
        """
        Queue a resume for rendering.

        The snapshot is stored by value, so later edits to the resume do not
        affect the job.

        Returns:
            The new job id
        """
        payload = {
            "resume_snapshot": snapshot.model_dump(mode="json"),
            "template_name": template_name,
            "requester_id": requester_id,
            "resume_id": resume_id,
        }
        job_id = self.queue.enqueue(
            GENERATE_PDF,
            payload,
            priority=self.default_priority if priority is None else priority,
            max_attempts=max_attempts,
        )
        logger.info(f"[RENDER-QUEUE] Resume {resume_id} queued for rendering as job {job_id} by {requester_id}")
        return job_id

    def get_status(self, job_id: str) -> RenderJobStatusResponse:
        """Status document for pollers. Unknown jobs report `not_found`."""
        try:
            status = self.queue.get_status(job_id)
        except JobNotFoundError:
            return RenderJobStatusResponse(job_id=job_id, status="not_found")

        result = None
        error = None
        if status.state == RenderJobState.COMPLETED.value and status.result:
            result = {to_camel(key): value for key, value in status.result.items()}
        elif status.state == RenderJobState.FAILED.value:
            error = status.error_reason

        return RenderJobStatusResponse(
            job_id=status.job_id,
            status=status.state,
            attempts=status.attempts,
            progress=status.progress if status.state != RenderJobState.QUEUED.value else None,
            result=result,
            error=error,
        )

    def open_artifact(self, job_id: str) -> Tuple[bytes, str, str]:
        """
        Read a completed job's artifact.

        Returns:
            (content, content_type, file_name)

        Raises:
            JobNotFoundError: no job with this id
            JobStateConflictError: the job has not completed
            ArtifactNotFoundError: the artifact is gone
        """
        status = self.queue.get_status(job_id)
        if status.state != RenderJobState.COMPLETED.value or not status.result:
            raise JobStateConflictError(f"job {job_id} is {status.state}")

        artifact_ref = status.result["artifact_ref"]
        content = self.artifact_store.open(artifact_ref)
        content_type = status.result.get("content_type") or self.artifact_store.content_type(artifact_ref)
        file_name = status.result.get("file_name") or f"{job_id}.pdf"
        return content, content_type, file_name

    def purge(self, job_id: str) -> None:
        """Delete a terminal job and its artifact."""
        purged = self.queue.purge(job_id)
        artifact_ref = (purged.result or {}).get("artifact_ref")
        if artifact_ref:
            self.artifact_store.delete(artifact_ref)

    def available_templates(self) -> List[TemplateInfoSchema]:
        return [
            TemplateInfoSchema(
                id=meta.id,
                name=meta.name,
                description=meta.description,
                is_default=meta.id == self.resolver.default_name,
            )
            for meta in self.resolver.available_templates
        ]
