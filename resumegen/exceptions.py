"""
Render pipeline error taxonomy.

Every error carries a stable ``code`` and a ``retryable`` flag. The
``reason`` string (``"<code>: <message>"``) is the only failure text that is
persisted on a job or returned to callers.
"""


class RenderPipelineError(Exception):
    """Base class for all render pipeline errors."""

    code = "render_pipeline_error"
    retryable = False

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    @property
    def reason(self) -> str:
        """Structured, user-visible failure reason."""
        return f"{self.code}: {self.message}" if self.message else self.code


class StoreUnavailableError(RenderPipelineError):
    """The job backing store could not be reached."""

    code = "store_unavailable"


class JobNotFoundError(RenderPipelineError):
    """No job exists with the given id."""

    code = "not_found"


class TemplateNotFoundError(RenderPipelineError):
    """A named template does not exist. Always recovered by the resolver."""

    code = "template_not_found"


class DoubleCompletionError(RenderPipelineError):
    """A worker reported an outcome for a job it no longer owns."""

    code = "double_completion"


class EngineUnavailableError(RenderPipelineError):
    """The external rendering engine is not installed or not runnable."""

    code = "engine_unavailable"


class ArtifactNotFoundError(RenderPipelineError):
    """The requested artifact does not exist in the artifact store."""

    code = "artifact_not_found"


class RenderError(RenderPipelineError):
    """A single render attempt failed."""

    code = "render_failed"


class RenderTimeoutError(RenderError):
    """The engine did not finish within the per-job timeout."""

    code = "render_timeout"
    retryable = True


class EngineCrashError(RenderError):
    """The engine process died or produced no output."""

    code = "engine_crash"
    retryable = True


class InvalidContentError(RenderError):
    """The composed document was rejected; retrying would fail the same way."""

    code = "invalid_content"
    retryable = False


class UnresolvedPlaceholderError(InvalidContentError):
    """A template token survived substitution."""

    def __init__(self, tokens):
        self.tokens = sorted(set(tokens))
        super().__init__(f"unresolved placeholders: {', '.join(self.tokens)}")


class JobStateConflictError(RenderPipelineError):
    """The job exists but is not in a state that allows the operation."""

    code = "conflict"


class WorkerLostError(RenderPipelineError):
    """An active job's owner stopped reporting before finishing it."""

    code = "worker_lost"
    retryable = True
