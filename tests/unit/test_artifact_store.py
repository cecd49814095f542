"""Tests for the local artifact store."""

import os

import pytest

from resumegen.exceptions import ArtifactNotFoundError
from resumegen.services.artifact_store import LocalArtifactStore


@pytest.fixture
def store(tmp_path, clock):
    return LocalArtifactStore(tmp_path / "artifacts", clock=clock)


@pytest.mark.unit
class TestLocalArtifactStore:
    """Test save / open / delete."""

    def test_save_and_open(self, store):
        ref = store.save("job-1", b"%PDF-1.7 data")

        assert ref.startswith("job-1_20240115120000000000_")
        assert ref.endswith(".pdf")
        assert store.open(ref) == b"%PDF-1.7 data"
        assert store.exists(ref)
        assert store.content_type(ref) == "application/pdf"

    def test_same_job_and_timestamp_never_collide(self, store):
        first = store.save("job-1", b"first")
        second = store.save("job-1", b"second")

        assert first != second
        assert store.open(first) == b"first"
        assert store.open(second) == b"second"

    def test_no_temporary_files_left_behind(self, store):
        store.save("job-1", b"data")
        assert [name for name in os.listdir(store.root) if name.startswith(".tmp-")] == []

    def test_delete(self, store):
        ref = store.save("job-1", b"data")

        assert store.delete(ref) is True
        assert store.delete(ref) is False
        with pytest.raises(ArtifactNotFoundError):
            store.open(ref)

    @pytest.mark.parametrize("ref", ["../outside.pdf", "nested/file.pdf", "", ".."])
    def test_references_outside_the_root_are_refused(self, store, ref):
        with pytest.raises(ArtifactNotFoundError):
            store.open(ref)
        assert store.exists(ref) is False
