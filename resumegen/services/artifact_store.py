"""
Artifact Store

Local filesystem storage for rendered documents.

Artifacts are named `<job_id>_<UTC timestamp>_<sequence>_<random>.pdf`. The
sequence is strictly increasing within a process and the random suffix
separates processes, so two completed attempts of the same job never collide
even when a stale retry finishes late. Writes go to a temporary file that is
renamed into place, so readers never see a partial artifact.
"""
import itertools
import logging
import os
import tempfile
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Union

from resumegen.exceptions import ArtifactNotFoundError
from resumegen.models import utcnow

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


class LocalArtifactStore:
    """Artifact store rooted at a local directory."""

    EXTENSION_TO_MIME = {
        "pdf": PDF_CONTENT_TYPE,
    }

    def __init__(
        self,
        root: Union[str, Path],
        clock: Callable[[], datetime] = utcnow,
        extension: str = "pdf",
    ):
        self.root = Path(root).resolve()
        self.clock = clock
        self.extension = extension
        self._sequence = itertools.count(1)
        self._sequence_lock = threading.Lock()
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"[ARTIFACTS] Initialized local artifact storage at: {self.root}")

    def _next_name(self, job_id: str) -> str:
        with self._sequence_lock:
            sequence = next(self._sequence)
        stamp = self.clock().strftime("%Y%m%d%H%M%S%f")
        return f"{job_id}_{stamp}_{sequence:06d}_{uuid.uuid4().hex[:8]}.{self.extension}"

    def _path_for(self, artifact_ref: str) -> Path:
        """Resolve a reference, refusing anything outside the store root."""
        if not artifact_ref or os.sep in artifact_ref or (os.altsep and os.altsep in artifact_ref):
            raise ArtifactNotFoundError(f"invalid artifact reference '{artifact_ref}'")
        path = (self.root / artifact_ref).resolve()
        if path.parent != self.root:
            raise ArtifactNotFoundError(f"invalid artifact reference '{artifact_ref}'")
        return path

    def save(self, job_id: str, content: bytes) -> str:
        """
        Persist rendered bytes for a job.

        Returns:
            Artifact reference (file name relative to the store root)
        """
        artifact_ref = self._next_name(job_id)
        path = self._path_for(artifact_ref)

        fd, tmp_path = tempfile.mkstemp(dir=self.root, prefix=".tmp-", suffix=f".{self.extension}")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.info(f"[ARTIFACTS] Saved {artifact_ref} ({len(content)} bytes)")
        return artifact_ref

    def open(self, artifact_ref: str) -> bytes:
        """
        Raises:
            ArtifactNotFoundError: no artifact with this reference
        """
        path = self._path_for(artifact_ref)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise ArtifactNotFoundError(f"artifact '{artifact_ref}' not found")

    def exists(self, artifact_ref: str) -> bool:
        try:
            return self._path_for(artifact_ref).is_file()
        except ArtifactNotFoundError:
            return False

    def delete(self, artifact_ref: str) -> bool:
        """Delete an artifact. Returns False if it was already gone."""
        path = self._path_for(artifact_ref)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug(f"[ARTIFACTS] {artifact_ref} already deleted")
            return False
        logger.info(f"[ARTIFACTS] Deleted {artifact_ref}")
        return True

    def content_type(self, artifact_ref: str) -> str:
        extension = artifact_ref.rsplit(".", 1)[-1].lower()
        return self.EXTENSION_TO_MIME.get(extension, "application/octet-stream")
