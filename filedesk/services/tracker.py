"""
Conversion task tracker.

The tracker owns every submitted conversion: it registers the task,
runs the selected converter routine, serves completed artifacts, cancels
tasks, and sweeps the storage directory for expired files.

Task state lives in an injected ``TaskStore`` and is process memory only.
Cancelling a task does not interrupt a conversion that is still running;
a cancel racing a running conversion may leave a freshly written output
behind, which the next expiry sweep reclaims.
"""

import threading
import time
from datetime import datetime
from pathlib import Path

from loguru import logger

from filedesk.exceptions import (
    ConversionError,
    ErrorTypes,
    MissingArtifactError,
    TaskNotFoundError,
    TaskNotReadyError,
    ValidationError,
)
from filedesk.models.task import ConversionTask, ResolvedArtifact, SubmitResult, TaskStatus
from filedesk.services.converters import ConverterRegistry
from filedesk.services.formats import get_mime_type
from filedesk.services.storage import StorageManager
from filedesk.utils.naming import get_basename, get_extension, task_id_from_filename
from filedesk.utils.validation import ValidationUtils


class TaskStore:
    """Thread-safe in-memory mapping of task id to task."""

    def __init__(self) -> None:
        self._tasks: dict[str, ConversionTask] = {}
        self._lock = threading.RLock()

    def get(self, task_id: str) -> ConversionTask | None:
        with self._lock:
            return self._tasks.get(task_id)

    def put(self, task: ConversionTask) -> None:
        with self._lock:
            self._tasks[task.task_id] = task

    def update(self, task_id: str, **changes) -> ConversionTask | None:
        """Replace a task with an updated copy; None if absent."""
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None
            updated = task.model_copy(update=changes)
            self._tasks[task_id] = updated
            return updated

    def pop(self, task_id: str) -> ConversionTask | None:
        with self._lock:
            return self._tasks.pop(task_id, None)

    def values(self) -> list[ConversionTask]:
        with self._lock:
            return list(self._tasks.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._tasks


class ConversionTaskTracker:
    """Lifecycle owner of conversion tasks."""

    def __init__(
        self,
        storage: StorageManager,
        registry: ConverterRegistry,
        store: TaskStore | None = None,
    ):
        """
        Initialize the tracker.

        Args:
            storage: Storage directory manager for sources and artifacts
            registry: Converter dispatch table
            store: Task store; a fresh one is created when omitted
        """
        self.storage = storage
        self.registry = registry
        self.store = store if store is not None else TaskStore()

    def submit(self, source_path: str | Path, target_format: str, original_file_name: str) -> SubmitResult:
        """
        Register a conversion task and run it to completion.

        Args:
            source_path: Uploaded input file
            target_format: Target format token, e.g. ``pdf``
            original_file_name: Client-side name of the upload

        Returns:
            SubmitResult with the task id and display metadata

        Raises:
            ValidationError: If the source is missing, outside storage, or the
                format is malformed
            ConversionError: If the converter fails or writes no output; the
                task is evicted and its files deleted before this is raised
        """
        source_path = Path(source_path)
        if not source_path.is_file():
            raise ValidationError(
                "Source file does not exist",
                ErrorTypes.FILE_ERROR,
                {"file_path": str(source_path)}
            )
        if not self.storage.contains(source_path):
            raise ValidationError(
                "Source file is outside the storage directory",
                ErrorTypes.FILE_ERROR,
                {"file_path": str(source_path)}
            )
        target = ValidationUtils.validate_format_token(target_format)
        routine = self.registry.select(get_extension(source_path), target)

        output_path = self.storage.new_path(target)
        task = ConversionTask(
            task_id=task_id_from_filename(output_path),
            source_path=source_path,
            output_path=output_path,
            original_name=get_basename(original_file_name),
            extension=target,
            converter=routine.name,
            passthrough=routine.passthrough,
        )
        self.store.put(task)
        logger.info(
            f"Task {task.task_id}: converting {source_path.name} -> {target} with {routine.name}"
        )

        started = time.monotonic()
        try:
            routine(source_path, output_path)
            if not self.storage.exists(output_path):
                raise ConversionError(
                    "Converter produced no output file",
                    ErrorTypes.NO_OUTPUT,
                    {"converter": routine.name}
                )
        except Exception as exc:
            self._fail(task, exc)
            if isinstance(exc, ConversionError):
                exc.details.setdefault("task_id", task.task_id)
                raise
            raise ConversionError(str(exc) or type(exc).__name__, details={"task_id": task.task_id}) from exc

        self.store.update(task.task_id, status=TaskStatus.COMPLETED, completed_at=datetime.utcnow())
        logger.info(f"Task {task.task_id} completed in {time.monotonic() - started:.2f}s")

        return SubmitResult(
            task_id=task.task_id,
            original_name=task.original_name,
            extension=target,
            passthrough=routine.passthrough,
        )

    def _fail(self, task: ConversionTask, exc: Exception) -> None:
        """Mark a task failed, delete its files and evict it."""
        self.store.update(task.task_id, status=TaskStatus.FAILED, error_message=str(exc))
        logger.error(f"Task {task.task_id} failed: {exc}")
        self.storage.delete(task.output_path)
        self.storage.delete(task.source_path)
        self.store.pop(task.task_id)

    def resolve(self, task_id: str) -> ResolvedArtifact:
        """
        Locate the artifact of a completed task.

        Raises:
            TaskNotFoundError: Unknown task id
            TaskNotReadyError: Task is not completed
            MissingArtifactError: Output no longer on disk
        """
        task = self.store.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if task.status != TaskStatus.COMPLETED:
            raise TaskNotReadyError(task_id, task.status.value)
        if not self.storage.exists(task.output_path):
            raise MissingArtifactError(task_id, str(task.output_path))

        return ResolvedArtifact(
            output_path=task.output_path,
            mime_type=get_mime_type(task.output_path.suffix),
            original_name=task.original_name,
            extension=task.extension,
        )

    def cancel(self, task_id: str) -> bool:
        """
        Cancel a task and delete its files.

        Returns:
            False if the task is unknown, True otherwise (even if deletions failed)
        """
        task = self.store.get(task_id)
        if task is None:
            return False

        self.storage.delete(task.source_path)
        self.storage.delete(task.output_path)
        self.store.pop(task_id)
        logger.info(f"Task {task_id} cancelled")
        return True

    def reclaim_expired(self, max_age_seconds: float) -> int:
        """
        Delete every stored file older than ``max_age_seconds``.

        This sweeps the storage directory, not the task map, so orphaned
        uploads are reclaimed too. Tracked tasks whose files are swept will
        fail ``resolve`` with ``MissingArtifactError``.

        Returns:
            Number of files deleted
        """
        cutoff = time.time() - max_age_seconds
        reclaimed = 0

        for path in self.storage.iter_files():
            modified = self.storage.modified_time(path)
            if modified is None or modified >= cutoff:
                continue
            if self.storage.delete(path):
                reclaimed += 1

        if reclaimed:
            logger.info(f"Reclaimed {reclaimed} expired file(s)")
        return reclaimed

    def get(self, task_id: str) -> ConversionTask | None:
        return self.store.get(task_id)

    def list_tasks(self) -> list[ConversionTask]:
        return self.store.values()

    def stats(self) -> dict[str, int]:
        """Task counts by status."""
        counts = {status.value: 0 for status in TaskStatus}
        for task in self.list_tasks():
            counts[task.status.value] += 1
        counts["total"] = sum(counts.values())
        return counts
