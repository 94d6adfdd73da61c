"""Unit tests for EventRecord playback and the timer/ticker handles."""

from __future__ import annotations

from datetime import timedelta

import pytest

from timetravel.clock import Ticker, Timer
from timetravel.manual.events import Delivery, ManualTicker, ManualTimer


# ---------------------------------------------------------------------------
# EventRecord.play
# ---------------------------------------------------------------------------


class TestPlay:

    def test_one_shot_stops_after_play(self, clock, start):
        record = clock.new_timer(1)._record
        assert record.play(start + timedelta(seconds=1)) is Delivery.SENT
        assert record.stopped
        assert record.channel.get_nowait() == start + timedelta(seconds=1)

    def test_ticker_reschedules_from_fire_time(self, clock, start):
        record = clock.new_ticker(5)._record
        fired_at = start + timedelta(seconds=5)
        record.play(fired_at)
        assert not record.stopped
        assert record.next == fired_at + timedelta(seconds=5)

    def test_full_channel_drops(self, clock, start):
        record = clock.new_ticker(5)._record
        record.play(start + timedelta(seconds=5))
        assert record.play(start + timedelta(seconds=10)) is Delivery.DROPPED
        assert record.channel.get_nowait() == start + timedelta(seconds=5)

    def test_stopped_record_is_skipped(self, clock, start):
        timer = clock.new_timer(1)
        timer.stop()
        assert timer._record.play(start) is Delivery.SKIPPED
        assert timer.channel.empty()

    def test_callback_invoked(self, clock, start):
        calls = []
        record = clock.after_func(1, lambda: calls.append("hit"))._record
        assert record.play(start + timedelta(seconds=1)) is Delivery.CALLED
        assert calls == ["hit"]
        assert record.channel.empty()

    def test_kinds(self, clock):
        assert clock.new_timer(1)._record.kind == "timer"
        assert clock.new_ticker(1)._record.kind == "ticker"
        assert clock.after_func(1, lambda: None)._record.kind == "func"


# ---------------------------------------------------------------------------
# ManualTimer
# ---------------------------------------------------------------------------


class TestManualTimer:

    def test_satisfies_timer_protocol(self, clock):
        assert isinstance(clock.new_timer(1), Timer)

    def test_stop_active_returns_true(self, clock):
        assert clock.new_timer(1).stop() is True

    def test_stop_twice_returns_false(self, clock):
        timer = clock.new_timer(1)
        timer.stop()
        assert timer.stop() is False

    def test_stop_after_fire_returns_false(self, clock):
        timer = clock.new_timer(1)
        clock.add(1)
        assert timer.stop() is False

    def test_reset_active_returns_true(self, clock, start):
        timer = clock.new_timer(1)
        assert timer.reset(3) is True
        assert timer._record.next == start + timedelta(seconds=3)

    def test_reset_stopped_returns_false_and_reactivates(self, clock):
        timer = clock.new_timer(1)
        timer.stop()
        assert timer.reset(1) is False
        assert not timer._record.stopped

    def test_reset_removed_record_requeues_it(self, clock):
        timer = clock.new_timer(1)
        clock.add(1)
        assert timer._record.removed

        timer.reset(1)
        assert not timer._record.removed
        assert clock._registry.pending_count == 1

    def test_reset_rejects_negative(self, clock):
        with pytest.raises(ValueError):
            clock.new_timer(1).reset(-1)


# ---------------------------------------------------------------------------
# ManualTicker
# ---------------------------------------------------------------------------


class TestManualTicker:

    def test_satisfies_ticker_protocol(self, clock):
        assert isinstance(clock.new_ticker(1), Ticker)

    def test_stop_returns_nothing(self, clock):
        ticker = clock.new_ticker(1)
        assert ticker.stop() is None
        assert ticker._record.stopped

    def test_record_repr_reflects_state(self, clock, start):
        timer = clock.new_timer(1)
        assert "active" in repr(timer)
        assert (start + timedelta(seconds=1)).isoformat() in repr(timer)
        timer.stop()
        assert "stopped" in repr(timer)

    def test_repr(self, clock):
        assert "ticker" in repr(clock.new_ticker(1))
        assert isinstance(clock.new_ticker(1), ManualTicker)
        assert isinstance(clock.new_timer(1), ManualTimer)
