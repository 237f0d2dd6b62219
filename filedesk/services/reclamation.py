"""
Periodic reclamation of expired files.

A daemon thread asks the task tracker to sweep the storage directory on a
fixed interval, independent of request traffic.
"""

import threading

from loguru import logger

from filedesk.services.tracker import ConversionTaskTracker

ERROR_RETRY_SECONDS = 60


class ReclamationLoop:
    """Background thread running ``reclaim_expired`` on an interval."""

    def __init__(
        self,
        tracker: ConversionTaskTracker,
        max_age_seconds: float,
        interval_seconds: float = 3600,
    ):
        """
        Initialize the loop.

        Args:
            tracker: Tracker whose storage is swept
            max_age_seconds: Files older than this are deleted
            interval_seconds: Pause between sweeps
        """
        self.tracker = tracker
        self.max_age_seconds = max_age_seconds
        self.interval_seconds = interval_seconds
        self._thread: threading.Thread | None = None
        self._shutdown_event = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        """Run a single sweep and return the number of files deleted."""
        return self.tracker.reclaim_expired(self.max_age_seconds)

    def _loop(self) -> None:
        """Sweep until shutdown is requested."""
        while not self._shutdown_event.is_set():
            try:
                self.run_once()
                self._shutdown_event.wait(self.interval_seconds)
            except Exception as exc:
                logger.error(f"Error in reclamation loop: {exc}")
                self._shutdown_event.wait(ERROR_RETRY_SECONDS)

    def start(self) -> None:
        """Start the background thread if it is not already running."""
        if self.running:
            return
        self._shutdown_event.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name="storage-reclamation",
            daemon=True
        )
        self._thread.start()
        logger.info(
            f"Started reclamation loop (max age {self.max_age_seconds}s, "
            f"interval {self.interval_seconds}s)"
        )

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the thread to stop and wait for it."""
        self._shutdown_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
            logger.info("Stopped reclamation loop")
        self._thread = None
