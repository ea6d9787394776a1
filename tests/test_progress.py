"""
Tests for ProgressThrottle.
"""
from uppage.services.progress import ProgressThrottle


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestProgressThrottle:
    """Test cases for ProgressThrottle."""

    def test_first_advance_emits(self):
        events = []
        throttle = ProgressThrottle(events.append, total_entries=3, total_bytes=300, clock=FakeClock())

        throttle.advance(1, 100)

        assert len(events) == 1
        assert events[0].entries_completed == 1
        assert events[0].bytes_transferred == 100
        assert events[0].total_entries == 3
        assert events[0].total_bytes == 300

    def test_events_are_coalesced(self):
        events = []
        clock = FakeClock()
        throttle = ProgressThrottle(events.append, 10, 1000, min_interval=1.0, clock=clock)

        throttle.advance(1, 10)
        clock.now = 0.2
        throttle.advance(1, 10)
        clock.now = 0.5
        throttle.advance(1, 10)

        assert len(events) == 1

        clock.now = 1.1
        throttle.advance(1, 10)

        assert len(events) == 2
        assert events[-1].entries_completed == 4
        assert events[-1].bytes_transferred == 40

    def test_finish_flushes_pending_state(self):
        events = []
        clock = FakeClock()
        throttle = ProgressThrottle(events.append, 2, 20, min_interval=1.0, clock=clock)

        throttle.advance(1, 10)
        throttle.advance(1, 10)
        throttle.finish()

        assert len(events) == 2
        assert events[-1].entries_completed == 2

    def test_finish_without_changes_does_not_emit(self):
        events = []
        throttle = ProgressThrottle(events.append, 1, 10, clock=FakeClock())

        throttle.advance(1, 10)
        throttle.finish()

        assert len(events) == 1

    def test_no_callback(self):
        throttle = ProgressThrottle(None, 1, 10)

        throttle.advance(1, 10)
        throttle.finish()

        assert throttle.snapshot().entries_completed == 1
