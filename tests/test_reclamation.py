"""
Test the background reclamation loop.
"""

import os
import time
from unittest.mock import MagicMock, patch

from filedesk.services.reclamation import ReclamationLoop


class TestReclamationLoop:
    """Test periodic sweeping of expired files."""

    def test_run_once_sweeps_expired_files(self, tracker, make_upload):
        old = make_upload(b"old", ".txt")
        stamp = time.time() - 7200
        os.utime(old, (stamp, stamp))
        loop = ReclamationLoop(tracker, max_age_seconds=3600)

        assert loop.run_once() == 1
        assert not old.exists()

    def test_start_and_stop(self, tracker):
        """The loop sweeps on start and stops promptly when asked."""
        loop = ReclamationLoop(tracker, max_age_seconds=3600, interval_seconds=3600)

        with patch.object(tracker, "reclaim_expired", return_value=0) as reclaim:
            loop.start()
            assert loop.running
            deadline = time.time() + 5
            while not reclaim.called and time.time() < deadline:
                time.sleep(0.01)
            loop.stop()

        reclaim.assert_called_with(3600)
        assert not loop.running

    def test_start_is_idempotent(self, tracker):
        loop = ReclamationLoop(tracker, max_age_seconds=3600)
        loop.start()
        first_thread = loop._thread

        loop.start()

        assert loop._thread is first_thread
        loop.stop()

    def test_errors_do_not_kill_the_loop(self):
        """A failing sweep is logged and the thread keeps running."""
        tracker = MagicMock()
        tracker.reclaim_expired.side_effect = OSError("disk gone")
        loop = ReclamationLoop(tracker, max_age_seconds=60, interval_seconds=60)

        loop.start()
        deadline = time.time() + 5
        while not tracker.reclaim_expired.called and time.time() < deadline:
            time.sleep(0.01)

        assert loop.running
        loop.stop()
        assert not loop.running
