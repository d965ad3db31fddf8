"""Tests for RetryTimer."""

import threading

import pytest

from pushline.engine.timer import RetryTimer


class TestRetryTimer:
    """Test the background retry timer."""

    @pytest.fixture
    def timer(self):
        timer = RetryTimer(name="test-timer")
        timer.start()
        yield timer
        timer.stop()

    def test_fires_callback_after_delay(self, timer):
        """A scheduled callback runs once its delay elapses."""
        fired = threading.Event()

        timer.schedule(0.01, fired.set)

        assert fired.wait(timeout=2.0)

    def test_fires_in_deadline_order(self, timer):
        """Callbacks fire earliest deadline first regardless of scheduling order."""
        order = []
        done = threading.Event()

        timer.schedule(0.15, lambda: (order.append("late"), done.set()))
        timer.schedule(0.01, lambda: order.append("early"))

        assert done.wait(timeout=2.0)
        assert order == ["early", "late"]

    def test_cancelled_callback_never_fires(self, timer):
        """cancel() prevents a pending callback from running."""
        fired = threading.Event()
        sentinel = threading.Event()

        entry = timer.schedule(0.05, fired.set)
        assert timer.cancel(entry) is True
        timer.schedule(0.1, sentinel.set)

        assert sentinel.wait(timeout=2.0)
        assert not fired.is_set()

    def test_cancel_after_fire_returns_false(self, timer):
        """An entry that already fired cannot be cancelled."""
        fired = threading.Event()
        entry = timer.schedule(0.0, fired.set)
        assert fired.wait(timeout=2.0)

        assert timer.cancel(entry) is False

    def test_failing_callback_does_not_stop_timer(self, timer):
        """An exception in one callback leaves the timer serving others."""
        fired = threading.Event()

        def boom():
            raise RuntimeError("boom")

        timer.schedule(0.0, boom)
        timer.schedule(0.02, fired.set)

        assert fired.wait(timeout=2.0)

    def test_stop_discards_pending_entries(self):
        """stop() drops pending callbacks and reports how many."""
        timer = RetryTimer()
        timer.start()
        fired = threading.Event()
        timer.schedule(60, fired.set)
        timer.schedule(60, fired.set)
        assert timer.pending() == 2

        assert timer.stop() == 2
        assert timer.pending() == 0
        assert not fired.is_set()

    def test_schedule_requires_running_timer(self):
        """Scheduling on a timer that is not running is an error."""
        timer = RetryTimer()

        with pytest.raises(RuntimeError):
            timer.schedule(1.0, lambda: None)
