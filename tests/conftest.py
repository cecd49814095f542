"""Pytest configuration and fixtures."""

import os
import sys
import threading
import time
from datetime import datetime, timedelta

import pytest

# Add the parent directory to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from config.settings import Settings
from config.testing import TestingConfig
from resumegen import create_app, db as app_db
from resumegen.services.render_pipeline import build_render_pipeline
from resumegen.utils.database import create_store_engine

FAKE_PDF = b"%PDF-1.7\n% fake rendering\n%%EOF\n"


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external processes")
    config.addinivalue_line("markers", "integration: tests spanning several components")


class FakeClock:
    """Controllable naive-UTC clock."""

    def __init__(self, start=datetime(2024, 1, 15, 12, 0, 0)):
        self.now = start
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            return self.now

    def advance(self, **kwargs):
        with self._lock:
            self.now += timedelta(**kwargs)


class FakeEngine:
    """
    In-process rendering engine.

    `outcomes` is consumed one entry per render: an exception instance is
    raised, bytes are returned, None returns a small PDF.
    """

    def __init__(self, outcomes=None, delay=0.0):
        self.outcomes = list(outcomes or [])
        self.delay = delay
        self.documents = []
        self.titles = []
        self.in_use = 0
        self.max_in_use = 0
        self._lock = threading.Lock()

    def render(self, document, title):
        with self._lock:
            self.documents.append(document)
            self.titles.append(title)
            outcome = self.outcomes.pop(0) if self.outcomes else None
            self.in_use += 1
            self.max_in_use = max(self.max_in_use, self.in_use)
        try:
            if self.delay:
                time.sleep(self.delay)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome or FAKE_PDF
        finally:
            with self._lock:
                self.in_use -= 1

    def check_available(self):
        return None


@pytest.fixture
def clock():
    """Fake clock shared by queue and artifact store."""
    return FakeClock()


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def store_engine(tmp_path):
    """Job store on a temporary SQLite file."""
    engine = create_store_engine(f"sqlite:///{tmp_path / 'jobs.db'}")
    app_db.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        environment="testing",
        render_worker_count=2,
        render_max_attempts=3,
        render_backoff_base_seconds=1.0,
        render_backoff_max_seconds=300,
        worker_idle_interval_seconds=0.01,
        artifact_storage_path=str(tmp_path / "artifacts"),
        template_dir="",
        default_template="modern",
    )


@pytest.fixture
def pipeline(store_engine, test_settings, fake_engine, clock):
    """Fully wired pipeline with a fake engine and fake clock."""
    return build_render_pipeline(
        store_engine,
        app_settings=test_settings,
        rendering_engine=fake_engine,
        clock=clock,
    )


@pytest.fixture
def queue(pipeline):
    return pipeline.queue


@pytest.fixture
def app(tmp_path, fake_engine):
    """Create application for testing."""

    class Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'app.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30}}
        ARTIFACT_STORAGE_PATH = str(tmp_path / "app-artifacts")

    app = create_app(config=Config, rendering_engine=fake_engine)
    with app.app_context():
        app_db.create_all()
    yield app
    with app.app_context():
        app_db.session.remove()
        app_db.drop_all()
        app_db.engine.dispose()


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as client:
        yield client


@pytest.fixture
def sample_snapshot():
    """Resume snapshot as the CRUD layer sends it (camelCase JSON)."""
    return {
        "title": "Senior Engineer Resume",
        "personalInfo": {
            "firstName": "Ada",
            "lastName": "Lovelace",
            "email": "ada@example.com",
            "phone": "+44 20 7946 0000",
            "city": "London",
            "country": "UK",
            "linkedIn": "linkedin.com/in/ada",
            "summary": "Engineer focused on analytical engines.",
            "jobTitle": "Senior Engineer",
        },
        "education": [
            {
                "institution": "University of London",
                "degree": "BSc",
                "fieldOfStudy": "Mathematics",
                "startDate": "2010-09-01T00:00:00.000Z",
                "endDate": "2013-06-30T00:00:00.000Z",
            }
        ],
        "experience": [
            {
                "company": "Analytical Engines Ltd",
                "position": "Lead Engineer",
                "location": "London",
                "startDate": "2020-01-15",
                "isCurrentJob": True,
                "description": "Designed the mill.",
            },
            {
                "company": "Difference Works",
                "position": "Engineer",
                "startDate": "2016-03-01",
                "endDate": "2019-12-31",
            },
        ],
        "skills": [{"name": "Python", "level": "Expert"}, {"name": "SQL"}],
        "languages": [{"name": "English", "proficiency": "Native"}],
        "projects": [{"name": "Note G", "url": "https://example.com/note-g", "technologies": ["Punch cards"]}],
        "certifications": [{"name": "Chartered Engineer", "issuer": "IET", "date": "2018-05-01"}],
    }


def run_next_job(pipeline, worker_id="test-host:1:render-worker-1"):
    """Claim and process one job synchronously. Returns the claimed job."""
    job = pipeline.queue.claim_next(worker_id)
    if job is not None:
        pipeline.dispatcher().process(worker_id, job)
    return job
