"""
Test the conversion task tracker.
"""

import os
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from filedesk.exceptions import (
    ConversionError,
    ErrorTypes,
    MissingArtifactError,
    TaskNotFoundError,
    TaskNotReadyError,
    ValidationError,
)
from filedesk.models.task import ConversionTask, TaskStatus
from filedesk.services.converters import ConverterRegistry, ConverterRoutine
from filedesk.services.formats import DocumentFormat
from filedesk.services.tracker import ConversionTaskTracker, TaskStore


def _age(path, seconds):
    stamp = time.time() - seconds
    os.utime(path, (stamp, stamp))


class TestSubmit:
    """Test task submission."""

    def test_text_to_pdf_completes(self, tracker, make_upload):
        """A txt upload converted to pdf resolves to a PDF artifact."""
        source = make_upload(b"Hello, world!\nSecond line.", ".txt")

        result = tracker.submit(source, "pdf", "notes.txt")

        assert result.original_name == "notes"
        assert result.extension == "pdf"
        assert result.passthrough is False
        artifact = tracker.resolve(result.task_id)
        assert artifact.mime_type == "application/pdf"
        assert artifact.output_path.stat().st_size > 0
        assert artifact.output_path.read_bytes().startswith(b"%PDF")

    def test_task_id_is_output_stem(self, tracker, make_upload):
        """The task id is the output file name without its extension."""
        source = make_upload(b"text", ".txt")

        result = tracker.submit(source, "pdf", "a.txt")

        task = tracker.get(result.task_id)
        assert task.output_path.name == f"{result.task_id}.pdf"
        assert task.status == TaskStatus.COMPLETED
        assert task.completed_at is not None

    def test_unregistered_pair_copies_bytes(self, tracker, make_upload):
        """An unknown pair falls back to a byte-identical passthrough copy."""
        payload = b"PK\x03\x04 not really a docx"
        source = make_upload(payload, ".docx")

        result = tracker.submit(source, "txt", "report.docx")

        assert result.passthrough is True
        artifact = tracker.resolve(result.task_id)
        assert artifact.mime_type == "text/plain"
        assert artifact.output_path.read_bytes() == payload

    def test_target_format_is_normalized(self, tracker, make_upload):
        """Target tokens are lower-cased and stripped of a leading dot."""
        source = make_upload(b"text", ".txt")

        result = tracker.submit(source, ".PDF", "a.txt")

        assert result.extension == "pdf"

    def test_missing_source_rejected(self, tracker, storage):
        """Submitting a nonexistent source raises a validation error."""
        with pytest.raises(ValidationError):
            tracker.submit(storage.directory / "missing.txt", "pdf", "missing.txt")
        assert len(tracker.store) == 0

    def test_source_outside_storage_rejected(self, tracker, tmp_path):
        """Only files inside the storage directory are converted."""
        outside = tmp_path / "outside.txt"
        outside.write_text("not uploaded here")

        with pytest.raises(ValidationError):
            tracker.submit(outside, "pdf", "outside.txt")
        assert len(tracker.store) == 0
        assert outside.exists()

    @pytest.mark.parametrize("target", ["", "   ", "p/df", "toolongformat"])
    def test_malformed_target_rejected(self, tracker, make_upload, target):
        """Malformed target formats never create a task."""
        source = make_upload(b"text", ".txt")

        with pytest.raises(ValidationError):
            tracker.submit(source, target, "a.txt")
        assert len(tracker.store) == 0

    def test_strict_registry_rejects_unknown_pair(self, storage, make_upload):
        """With passthrough disabled an unknown pair is rejected before any task exists."""
        tracker = ConversionTaskTracker(storage, ConverterRegistry(allow_passthrough=False))
        source = make_upload(b"data", ".docx")

        with pytest.raises(ValidationError) as exc_info:
            tracker.submit(source, "pdf", "a.docx")

        assert exc_info.value.error_type == ErrorTypes.UNSUPPORTED_PAIR
        assert len(tracker.store) == 0

    def test_failing_routine_evicts_task(self, storage, make_upload):
        """A routine error deletes source and partial output and evicts the task."""
        written = []

        def explode(input_path, output_path):
            output_path.write_bytes(b"partial")
            written.append(output_path)
            raise RuntimeError("renderer crashed")

        registry = ConverterRegistry()
        registry.register(DocumentFormat.TXT, DocumentFormat.PDF, ConverterRoutine("explode", explode))
        tracker = ConversionTaskTracker(storage, registry)
        source = make_upload(b"text", ".txt")

        with pytest.raises(ConversionError) as exc_info:
            tracker.submit(source, "pdf", "a.txt")

        task_id = exc_info.value.details["task_id"]
        assert "renderer crashed" in exc_info.value.message
        assert not source.exists()
        assert not written[0].exists()
        assert len(tracker.store) == 0
        with pytest.raises(TaskNotFoundError):
            tracker.resolve(task_id)

    def test_routine_without_output_fails(self, storage, make_upload):
        """A routine that writes nothing fails the task."""
        registry = ConverterRegistry()
        registry.register(
            DocumentFormat.TXT, DocumentFormat.PDF, ConverterRoutine("noop", lambda i, o: None)
        )
        tracker = ConversionTaskTracker(storage, registry)
        source = make_upload(b"text", ".txt")

        with pytest.raises(ConversionError) as exc_info:
            tracker.submit(source, "pdf", "a.txt")

        assert exc_info.value.error_type == ErrorTypes.NO_OUTPUT
        assert len(tracker.store) == 0

    def test_concurrent_submissions_get_distinct_ids(self, tracker, make_upload):
        """Parallel submissions each get their own completed task."""
        sources = [make_upload(f"file {i}".encode(), ".txt") for i in range(8)]

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda s: tracker.submit(s, "pdf", s.name), sources))

        task_ids = {result.task_id for result in results}
        assert len(task_ids) == 8
        for task_id in task_ids:
            assert tracker.resolve(task_id).mime_type == "application/pdf"


class TestResolve:
    """Test artifact resolution."""

    def test_unknown_id(self, tracker):
        """Unknown ids are not found."""
        with pytest.raises(TaskNotFoundError) as exc_info:
            tracker.resolve("does-not-exist")
        assert exc_info.value.error_type == ErrorTypes.NOT_FOUND

    def test_processing_task_not_ready(self, tracker, storage):
        """A task still processing cannot be downloaded."""
        task = ConversionTask(
            task_id="pending",
            source_path=storage.directory / "pending.txt",
            output_path=storage.directory / "pending.pdf",
            original_name="pending",
            extension="pdf",
            converter="txt-to-pdf:reportlab",
        )
        tracker.store.put(task)

        with pytest.raises(TaskNotReadyError):
            tracker.resolve("pending")

    def test_deleted_artifact_reported_missing(self, tracker, make_upload):
        """A completed task whose output vanished reports a missing artifact."""
        source = make_upload(b"text", ".txt")
        result = tracker.submit(source, "pdf", "a.txt")
        tracker.get(result.task_id).output_path.unlink()

        with pytest.raises(MissingArtifactError):
            tracker.resolve(result.task_id)

    def test_resolve_has_no_side_effects(self, tracker, make_upload):
        """Resolving twice yields the same artifact."""
        source = make_upload(b"text", ".txt")
        result = tracker.submit(source, "pdf", "a.txt")

        assert tracker.resolve(result.task_id) == tracker.resolve(result.task_id)

    def test_resolve_carries_download_name(self, tracker, make_upload):
        """The resolved artifact names the download without another lookup."""
        source = make_upload(b"text", ".txt")
        result = tracker.submit(source, "pdf", "notes.txt")

        artifact = tracker.resolve(result.task_id)

        assert artifact.original_name == "notes"
        assert artifact.extension == "pdf"
        assert artifact.download_name == "notes.pdf"
        assert artifact.mime_type == "application/pdf"


class TestCancel:
    """Test task cancellation."""

    def test_cancel_deletes_files(self, tracker, make_upload):
        """Cancel removes the record along with source and output."""
        source = make_upload(b"text", ".txt")
        result = tracker.submit(source, "pdf", "a.txt")
        output = tracker.get(result.task_id).output_path

        assert tracker.cancel(result.task_id) is True

        assert not source.exists()
        assert not output.exists()
        with pytest.raises(TaskNotFoundError):
            tracker.resolve(result.task_id)

    def test_cancel_twice(self, tracker, make_upload):
        """The second cancel of the same id reports not found."""
        source = make_upload(b"text", ".txt")
        result = tracker.submit(source, "pdf", "a.txt")

        assert tracker.cancel(result.task_id) is True
        assert tracker.cancel(result.task_id) is False

    def test_cancel_unknown(self, tracker):
        """Cancelling an unknown id returns False."""
        assert tracker.cancel("nope") is False

    def test_cancel_with_files_already_gone(self, tracker, make_upload):
        """Cancel still succeeds when the files were already reclaimed."""
        source = make_upload(b"text", ".txt")
        result = tracker.submit(source, "pdf", "a.txt")
        source.unlink()
        tracker.get(result.task_id).output_path.unlink()

        assert tracker.cancel(result.task_id) is True
        assert tracker.get(result.task_id) is None


class TestReclaimExpired:
    """Test the expiry sweep."""

    def test_only_old_files_deleted(self, tracker, storage, make_upload):
        """Files older than the threshold go; newer ones stay."""
        old = make_upload(b"old", ".txt")
        fresh = make_upload(b"fresh", ".txt")
        _age(old, 2 * 3600)

        reclaimed = tracker.reclaim_expired(3600)

        assert reclaimed == 1
        assert not old.exists()
        assert fresh.exists()

    def test_orphaned_and_tracked_files_swept(self, tracker, make_upload):
        """The sweep covers untracked files and tracked artifacts alike."""
        orphan = make_upload(b"orphan", ".png")
        source = make_upload(b"text", ".txt")
        result = tracker.submit(source, "pdf", "a.txt")
        output = tracker.get(result.task_id).output_path
        for path in (orphan, source, output):
            _age(path, 48 * 3600)

        assert tracker.reclaim_expired(24 * 3600) == 3

        with pytest.raises(MissingArtifactError):
            tracker.resolve(result.task_id)

    def test_subdirectories_ignored(self, tracker, storage):
        """Only regular files are candidates."""
        nested = storage.directory / "nested"
        nested.mkdir()
        _age(nested, 48 * 3600)

        assert tracker.reclaim_expired(60) == 0
        assert nested.exists()

    def test_missing_directory_is_not_an_error(self, tracker, storage):
        """A storage directory that cannot be read yields zero."""
        storage.directory.rmdir()

        assert tracker.reclaim_expired(60) == 0


class TestTaskStore:
    """Test the in-memory task store."""

    def test_update_unknown_returns_none(self):
        """Updating an absent id is a no-op."""
        assert TaskStore().update("missing", status=TaskStatus.FAILED) is None

    def test_trackers_do_not_share_state(self, storage, make_upload):
        """Each tracker owns its store."""
        registry = ConverterRegistry()
        first = ConversionTaskTracker(storage, registry)
        second = ConversionTaskTracker(storage, registry)
        source = make_upload(b"data", ".docx")

        result = first.submit(source, "txt", "a.docx")

        assert result.task_id in first.store
        assert result.task_id not in second.store

    def test_stats_counts_by_status(self, tracker, make_upload):
        """Stats report counts per status and a total."""
        tracker.submit(make_upload(b"one", ".txt"), "pdf", "one.txt")
        tracker.submit(make_upload(b"two", ".txt"), "pdf", "two.txt")

        stats = tracker.stats()

        assert stats["completed"] == 2
        assert stats["processing"] == 0
        assert stats["total"] == 2
