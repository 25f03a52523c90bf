"""Tests for throttled progress forwarding."""

from __future__ import annotations

import pytest

from ferry.core.reporter import ProgressReporter
from ferry.models.progress import Operation, Progress, ProgressSnapshot


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def _reporter(clock, interval=0.1, dispatch=None):
    forwarded: list[ProgressSnapshot] = []
    kwargs = {"dispatch": dispatch} if dispatch else {}
    reporter = ProgressReporter(Operation.COPY, forwarded.append, interval=interval, clock=clock, **kwargs)
    return reporter, forwarded


class TestThrottle:
    def test_first_tick_is_forwarded(self, clock):
        reporter, forwarded = _reporter(clock)
        progress = Progress(total_items=10, total_bytes=100)
        reporter.attach(progress)

        progress.copied_bytes = 5
        reporter.tick()

        assert len(forwarded) == 1
        assert forwarded[0].copied_bytes == 5

    def test_ticks_inside_interval_are_dropped(self, clock):
        reporter, forwarded = _reporter(clock)
        progress = Progress(total_items=10, total_bytes=100)
        reporter.attach(progress)

        for step in range(1, 6):
            progress.copied_bytes = step
            clock.now += 0.01
            reporter.tick()

        assert [s.copied_bytes for s in forwarded] == [1]

    def test_forwarded_ticks_are_spaced_by_interval(self, clock):
        times: list[float] = []
        reporter = ProgressReporter(Operation.COPY, lambda _s: times.append(clock.now), interval=0.1, clock=clock)
        progress = Progress(total_items=1000, total_bytes=0)
        reporter.attach(progress)

        offsets = [0.0, 0.03, 0.05, 0.12, 0.13, 0.2, 0.25, 0.37, 0.4, 0.5]
        start = clock.now
        for offset in offsets:
            clock.now = start + offset
            progress.copied_items += 1
            reporter.tick()

        assert times[0] == start
        assert all(b - a >= 0.1 - 1e-9 for a, b in zip(times, times[1:]))
        assert [round(t - start, 2) for t in times] == [0.0, 0.12, 0.25, 0.37, 0.5]

    def test_completion_tick_always_forwarded(self, clock):
        reporter, forwarded = _reporter(clock)
        progress = Progress(total_items=2, total_bytes=0)
        reporter.attach(progress)

        progress.copied_items = 1
        reporter.tick()
        clock.now += 0.001
        progress.copied_items = 2
        reporter.tick()

        assert [s.copied_items for s in forwarded] == [1, 2]

    def test_finish_flushes_suppressed_state(self, clock):
        reporter, forwarded = _reporter(clock)
        progress = Progress(total_items=5, total_bytes=0)
        reporter.attach(progress)

        progress.copied_items = 1
        reporter.tick()
        progress.copied_items = 3
        reporter.tick()
        reporter.finish()

        assert [s.copied_items for s in forwarded] == [1, 3]

    def test_finish_does_not_repeat_forwarded_state(self, clock):
        reporter, forwarded = _reporter(clock)
        progress = Progress(total_items=1, total_bytes=0)
        reporter.attach(progress)

        progress.copied_items = 1
        reporter.tick()
        reporter.finish()

        assert len(forwarded) == 1

    def test_tick_before_attach_is_ignored(self, clock):
        reporter, forwarded = _reporter(clock)
        reporter.tick()
        reporter.finish()
        assert forwarded == []

    def test_publish_bypasses_throttle(self, clock):
        reporter, forwarded = _reporter(clock)
        empty = Progress(total_items=0, total_bytes=0)
        reporter.publish(empty)
        reporter.publish(empty)

        assert len(forwarded) == 2
        assert all(s.indeterminate for s in forwarded)
        assert forwarded[0].operation is Operation.COPY


class TestDelivery:
    def test_dispatch_receives_frozen_snapshot(self, clock):
        queued = []
        reporter, forwarded = _reporter(clock, dispatch=queued.append)
        progress = Progress(total_items=3, total_bytes=30)
        reporter.attach(progress)

        progress.copied_bytes = 10
        progress.current_name = "a"
        reporter.tick()
        progress.copied_bytes = 20
        progress.current_name = "b"

        assert forwarded == []
        queued[0]()
        assert forwarded[0].copied_bytes == 10
        assert forwarded[0].current_name == "a"

    def test_sink_errors_are_contained(self, clock):
        def broken(_snapshot):
            raise RuntimeError("widget destroyed")

        reporter = ProgressReporter(Operation.DELETE, broken, clock=clock)
        progress = Progress(total_items=1, total_bytes=0)
        reporter.attach(progress)
        reporter.tick()

    def test_no_sink(self, clock):
        reporter = ProgressReporter(Operation.MOVE, None, clock=clock)
        progress = Progress(total_items=1, total_bytes=0)
        reporter.attach(progress)
        reporter.tick()
        reporter.finish()


class TestSnapshot:
    def _snap(self, **kwargs):
        defaults = dict(
            copied_items=0,
            total_items=0,
            copied_bytes=0,
            total_bytes=0,
            current_name="",
            operation=Operation.COPY,
            indeterminate=False,
        )
        defaults.update(kwargs)
        return ProgressSnapshot(**defaults)

    def test_percent_from_bytes(self):
        assert self._snap(copied_bytes=1, total_bytes=3, total_items=1).percent == 33

    def test_percent_from_items_without_bytes(self):
        assert self._snap(copied_items=2, total_items=3).percent == 67

    def test_percent_unset_when_indeterminate(self):
        assert self._snap(indeterminate=True, total_bytes=10).percent is None

    def test_percent_unset_without_totals(self):
        assert self._snap().percent is None

    def test_percent_is_clamped(self):
        assert self._snap(copied_bytes=150, total_bytes=100, total_items=1).percent == 100

    def test_indeterminate_follows_total_items(self):
        assert Progress(total_items=0, total_bytes=50).snapshot(Operation.COPY).indeterminate
        assert not Progress(total_items=1, total_bytes=0).snapshot(Operation.COPY).indeterminate
