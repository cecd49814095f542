"""
Render Pipeline Assembly

Builds the queue, artifact store, templating, rendering engine and job
handler once, from settings, with every dependency injected. The web app and
worker processes build their own pipeline over the same job store.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Optional

from sqlalchemy.engine import Engine

from config.settings import Settings, settings as default_settings
from resumegen.models import utcnow
from resumegen.services.artifact_store import LocalArtifactStore
from resumegen.services.dispatcher import Dispatcher
from resumegen.services.document_job_service import DocumentJobService, RenderJobHandler
from resumegen.services.export import DocumentCompositor, PageLayout, TemplateResolver, WeasyPrintEngine
from resumegen.services.job_queue_service import JobQueue, RetryPolicy
from resumegen.services.retention_sweeper import RetentionSweeper

logger = logging.getLogger(__name__)


@dataclass
class RenderPipeline:
    """Every collaborator of the render pipeline, wired together."""

    settings: Settings
    queue: JobQueue
    artifact_store: LocalArtifactStore
    resolver: TemplateResolver
    compositor: DocumentCompositor
    engine: Any
    handler: RenderJobHandler
    service: DocumentJobService
    worker_count: int

    def dispatcher(self, idle_interval: Optional[float] = None) -> Dispatcher:
        return Dispatcher(
            self.queue,
            self.handler,
            worker_count=self.worker_count,
            idle_interval=idle_interval or self.settings.worker_idle_interval_seconds,
        )

    def sweeper(self) -> RetentionSweeper:
        return RetentionSweeper(
            self.queue,
            self.artifact_store,
            completed_retention=self.settings.completed_retention,
            failed_retention=self.settings.failed_retention,
            active_lease=timedelta(seconds=self.settings.active_lease_seconds),
            interval=self.settings.sweep_interval_seconds,
        )


def build_render_pipeline(
    store_engine: Engine,
    app_settings: Optional[Settings] = None,
    rendering_engine: Any = None,
    artifact_root: Optional[str] = None,
    worker_count: Optional[int] = None,
    clock: Callable[[], datetime] = utcnow,
) -> RenderPipeline:
    """
    Assemble a render pipeline.

    Args:
        store_engine: SQLAlchemy engine of the shared job store
        app_settings: settings to read (defaults to the global settings)
        rendering_engine: object with render(document, title) -> bytes;
            defaults to an out-of-process WeasyPrint engine
        artifact_root: overrides the configured artifact directory
        worker_count: overrides the configured number of workers
        clock: naive UTC clock shared by the queue and artifact store
    """
    app_settings = app_settings or default_settings
    worker_count = worker_count or app_settings.render_worker_count

    queue = JobQueue(
        store_engine,
        retry_policy=RetryPolicy(
            max_attempts=app_settings.render_max_attempts,
            backoff_base=app_settings.render_backoff_base_seconds,
            backoff_max=app_settings.render_backoff_max_seconds,
        ),
        clock=clock,
    )
    artifact_store = LocalArtifactStore(
        Path(artifact_root or app_settings.artifact_storage_path),
        clock=clock,
    )
    resolver = TemplateResolver(
        template_dir=app_settings.template_dir or None,
        default_name=app_settings.default_template,
    )
    compositor = DocumentCompositor()

    if rendering_engine is None:
        rendering_engine = WeasyPrintEngine(
            command=app_settings.render_engine_command,
            layout=PageLayout(
                page_format=app_settings.render_page_format,
                margin=app_settings.render_page_margin,
            ),
            timeout=app_settings.render_timeout_seconds,
            max_instances=worker_count,
        )

    handler = RenderJobHandler(resolver, compositor, rendering_engine, artifact_store, clock=clock)
    service = DocumentJobService(
        queue,
        artifact_store,
        resolver,
        default_priority=app_settings.render_default_priority,
    )

    return RenderPipeline(
        settings=app_settings,
        queue=queue,
        artifact_store=artifact_store,
        resolver=resolver,
        compositor=compositor,
        engine=rendering_engine,
        handler=handler,
        service=service,
        worker_count=worker_count,
    )
