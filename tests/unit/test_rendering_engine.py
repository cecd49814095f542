"""
Tests for the out-of-process rendering engine adapter.

A small Python program stands in for the WeasyPrint command line so every
exit path (success, timeout, crash, rejection) can be exercised without the
real engine installed.
"""

import os
import shlex
import sys
import threading

import pytest

from resumegen.exceptions import (
    EngineCrashError,
    EngineUnavailableError,
    InvalidContentError,
    RenderTimeoutError,
)
from resumegen.services.export.rendering_engine import PageLayout, WeasyPrintEngine, css_string


def stand_in(code: str) -> str:
    """Command line running `code` with the engine's arguments."""
    return shlex.join([sys.executable, "-c", code])


ECHO_STYLESHEET = (
    "import sys\n"
    "document = sys.stdin.read()\n"
    "args = sys.argv\n"
    "css = open(args[args.index('--stylesheet') + 1]).read()\n"
    "sys.stdout.write('%PDF-1.7\\n' + css + document)\n"
)


@pytest.mark.unit
class TestPageLayout:
    """Test the generated page stylesheet."""

    def test_stylesheet_sets_format_margin_header_and_footer(self):
        css = PageLayout(page_format="A4", margin="20mm").stylesheet("Ada's Resume")

        assert "size: A4;" in css
        assert "margin: 20mm;" in css
        assert '@top-center' in css
        assert "\"Ada's Resume\"" in css
        assert 'counter(page) " of " counter(pages)' in css

    def test_title_is_quoted_safely(self):
        assert css_string('Say "hi"\\now') == '"Say \\"hi\\"\\\\now"'

    def test_rejects_css_injection_in_layout(self):
        with pytest.raises(ValueError):
            PageLayout(page_format="A4; } body { display: none")


@pytest.mark.unit
class TestWeasyPrintEngine:
    """Test process handling and exit classification."""

    def test_successful_render_returns_pdf_bytes(self):
        engine = WeasyPrintEngine(command=stand_in(ECHO_STYLESHEET), timeout=20)

        output = engine.render("<p>Hello</p>", "Title")

        assert output.startswith(b"%PDF")
        assert b"size: A4;" in output
        assert b"<p>Hello</p>" in output
        assert engine.in_use == 0

    def test_timeout_is_retryable_and_releases_the_engine(self):
        engine = WeasyPrintEngine(command=stand_in("import time; time.sleep(30)"), timeout=0.5)

        with pytest.raises(RenderTimeoutError) as exc_info:
            engine.render("<p>Hello</p>", "Title")

        assert exc_info.value.retryable is True
        assert engine.in_use == 0

    def test_killed_engine_is_a_retryable_crash(self):
        engine = WeasyPrintEngine(
            command=stand_in("import os, signal; os.kill(os.getpid(), signal.SIGKILL)"),
            timeout=20,
        )

        with pytest.raises(EngineCrashError) as exc_info:
            engine.render("<p>Hello</p>", "Title")
        assert exc_info.value.retryable is True

    def test_empty_output_is_a_crash(self):
        engine = WeasyPrintEngine(command=stand_in("import sys; sys.stdin.read()"), timeout=20)
        with pytest.raises(EngineCrashError):
            engine.render("<p>Hello</p>", "Title")

    def test_rejected_document_is_not_retryable(self):
        engine = WeasyPrintEngine(
            command=stand_in("import sys; sys.stdin.read(); sys.stderr.write('bad markup\\n'); sys.exit(2)"),
            timeout=20,
        )

        with pytest.raises(InvalidContentError) as exc_info:
            engine.render("<p>Hello</p>", "Title")

        assert exc_info.value.retryable is False
        assert "bad markup" in exc_info.value.reason

    def test_scratch_directory_is_removed_on_failure(self):
        engine = WeasyPrintEngine(command=stand_in("import sys; sys.exit(3)"), timeout=20)

        with pytest.raises(InvalidContentError):
            with engine.acquire() as session:
                workdir = session.workdir
                session.render("<p>Hello</p>", "Title")

        assert not os.path.exists(workdir)

    def test_missing_engine_fails_fast(self):
        engine = WeasyPrintEngine(command="resumegen-no-such-engine --flag")

        with pytest.raises(EngineUnavailableError):
            engine.check_available()
        with pytest.raises(EngineUnavailableError):
            engine.render("<p>Hello</p>", "Title")
        assert engine.in_use == 0

    def test_instances_are_bounded(self):
        engine = WeasyPrintEngine(command=stand_in(ECHO_STYLESHEET), max_instances=1)
        second_acquired = threading.Event()

        def acquire_second():
            with engine.acquire():
                second_acquired.set()

        with engine.acquire():
            assert engine.in_use == 1
            thread = threading.Thread(target=acquire_second)
            thread.start()
            assert not second_acquired.wait(0.3)

        thread.join(5)
        assert second_acquired.is_set()
        assert engine.in_use == 0
