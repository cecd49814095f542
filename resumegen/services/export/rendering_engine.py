"""
Rendering Engine Adapter

Drives WeasyPrint out of process: one child process per render, fed the
composed HTML on stdin and returning PDF bytes on stdout. Running the engine
in a child process gives every job a hard wall-clock timeout and isolates
the worker from engine crashes.

Each acquisition holds one slot of a bounded semaphore, so the number of
live engine processes never exceeds `max_instances`. The process and its
scratch directory are released on every exit path.
"""

import logging
import os
import re
import shlex
import shutil
import subprocess
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

from resumegen.exceptions import (
    EngineCrashError,
    EngineUnavailableError,
    InvalidContentError,
    RenderTimeoutError,
)

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"
PAGE_VALUE_PATTERN = re.compile(r"^[A-Za-z0-9 .]+$")


def css_string(text: str) -> str:
    """Quote plain text as a CSS string literal."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\r", "")
        .replace("\n", "\\A ")
    )
    return f'"{escaped}"'


@dataclass(frozen=True)
class PageLayout:
    """Fixed page geometry plus the title header and page-number footer."""

    page_format: str = "A4"
    margin: str = "20mm"

    def __post_init__(self):
        for value in (self.page_format, self.margin):
            if not PAGE_VALUE_PATTERN.match(value):
                raise ValueError(f"Invalid page layout value: {value!r}")

    def stylesheet(self, title: str) -> str:
        return f"""@page {{
    size: {self.page_format};
    margin: {self.margin};
    @top-center {{
        content: {css_string(title)};
        font-size: 8pt;
        color: #777;
    }}
    @bottom-center {{
        content: "Page " counter(page) " of " counter(pages);
        font-size: 8pt;
        color: #777;
    }}
}}
"""


class EngineSession:
    """One acquired engine instance. Only valid inside WeasyPrintEngine.acquire()."""

    def __init__(self, engine: "WeasyPrintEngine", workdir: str):
        self.engine = engine
        self.workdir = workdir
        self.process: Optional[subprocess.Popen] = None

    def render(self, document: str, title: str) -> bytes:
        """
        Render a composed HTML document to PDF.

        Raises:
            RenderTimeoutError: the engine exceeded the per-job timeout
            EngineCrashError: the engine died or produced no PDF
            InvalidContentError: the engine rejected the document
            EngineUnavailableError: the engine command could not be started
        """
        stylesheet_path = os.path.join(self.workdir, "page.css")
        with open(stylesheet_path, "w", encoding="utf-8") as handle:
            handle.write(self.engine.layout.stylesheet(title))

        argv = self.engine.argv + ["--encoding", "utf-8", "--stylesheet", stylesheet_path, "-", "-"]
        try:
            self.process = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=self.workdir,
                start_new_session=True,
            )
        except OSError as e:
            raise EngineUnavailableError(f"cannot start '{argv[0]}': {e.strerror or e}") from e

        try:
            stdout, stderr = self.process.communicate(
                input=document.encode("utf-8"),
                timeout=self.engine.timeout,
            )
        except subprocess.TimeoutExpired:
            self.kill()
            raise RenderTimeoutError(f"engine exceeded {self.engine.timeout}s")

        returncode = self.process.returncode
        if returncode < 0:
            raise EngineCrashError(f"engine killed by signal {-returncode}")
        if returncode != 0:
            detail = _last_line(stderr) or f"exit status {returncode}"
            logger.warning(f"[RENDER-ENGINE] Engine rejected document: {detail}")
            raise InvalidContentError(detail)
        if not stdout.startswith(PDF_MAGIC):
            raise EngineCrashError("engine produced no PDF output")

        return stdout

    def kill(self) -> None:
        """Kill and reap the child process if it is still running."""
        if self.process is None or self.process.poll() is not None:
            return
        try:
            self.process.kill()
        except ProcessLookupError:
            pass
        try:
            self.process.communicate(timeout=5)
        except subprocess.TimeoutExpired:
            logger.error(f"[RENDER-ENGINE] Engine process {self.process.pid} did not exit after kill")


def _last_line(stderr: bytes) -> str:
    lines = stderr.decode("utf-8", "replace").strip().splitlines()
    return lines[-1].strip()[:300] if lines else ""


class WeasyPrintEngine:
    """
    Out-of-process WeasyPrint rendering engine.

    Args:
        command: engine command line, e.g. "weasyprint" or "/opt/venv/bin/weasyprint"
        layout: page format, margins, header and footer
        timeout: per-render wall-clock timeout in seconds
        max_instances: maximum concurrently acquired engine instances
    """

    def __init__(
        self,
        command: str = "weasyprint",
        layout: Optional[PageLayout] = None,
        timeout: float = 30,
        max_instances: int = 2,
    ):
        self.argv: List[str] = shlex.split(command)
        if not self.argv:
            raise EngineUnavailableError("no rendering engine command configured")
        self.layout = layout or PageLayout()
        self.timeout = timeout
        self.max_instances = max_instances
        self._slots = threading.BoundedSemaphore(max_instances)
        self._lock = threading.Lock()
        self._in_use = 0

    @property
    def in_use(self) -> int:
        """Number of engine instances currently acquired."""
        with self._lock:
            return self._in_use

    def check_available(self) -> None:
        """
        Fail fast when the engine is not installed.

        Raises:
            EngineUnavailableError: the engine executable cannot be found
        """
        if shutil.which(self.argv[0]) is None:
            raise EngineUnavailableError(
                f"rendering engine '{self.argv[0]}' not found on PATH. "
                "Install WeasyPrint or set RENDER_ENGINE_COMMAND"
            )
        logger.info(f"[RENDER-ENGINE] Using engine '{self.argv[0]}' (max {self.max_instances} instances)")

    @contextmanager
    def acquire(self) -> Iterator[EngineSession]:
        """Acquire one engine instance for the duration of a single job."""
        self._slots.acquire()
        workdir = None
        session = None
        with self._lock:
            self._in_use += 1
        try:
            workdir = tempfile.mkdtemp(prefix="resumegen-render-")
            session = EngineSession(self, workdir)
            yield session
        finally:
            if session is not None:
                session.kill()
            if workdir is not None:
                shutil.rmtree(workdir, ignore_errors=True)
            with self._lock:
                self._in_use -= 1
            self._slots.release()

    def render(self, document: str, title: str) -> bytes:
        """Acquire an instance, render one document, release."""
        with self.acquire() as session:
            return session.render(document, title)
