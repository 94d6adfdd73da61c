"""Unit tests for ParkingLot and QuiescenceBarrier."""

from __future__ import annotations

import threading

import pytest

from timetravel.errors import QuiescenceTimeoutError
from timetravel.manual.quiescence import ParkingLot, QuiescenceBarrier


def _parked_thread(lot: ParkingLot, release: threading.Event) -> threading.Thread:
    def run():
        with lot.parked():
            release.wait()

    t = threading.Thread(target=run, daemon=True)
    t.start()
    return t


class TestParkingLot:

    def test_park_and_unpark_current_thread(self):
        lot = ParkingLot()
        lot.park()
        assert lot.is_parked(threading.current_thread())
        lot.unpark()
        assert not lot.is_parked(threading.current_thread())

    def test_parked_context_manager(self):
        lot = ParkingLot()
        with lot.parked():
            assert len(lot) == 1
        assert len(lot) == 0

    def test_snapshot_excludes_given_thread(self):
        lot = ParkingLot()
        lot.park()
        assert lot.snapshot(exclude=threading.current_thread()) == frozenset()
        assert lot.snapshot() == frozenset({threading.current_thread()})

    def test_parked_blocks_nest(self):
        lot = ParkingLot()
        me = threading.current_thread()
        with lot.parked():
            with lot.parked():
                assert lot.is_parked(me)
            assert lot.is_parked(me)
        assert not lot.is_parked(me)

    def test_resume_inside_parked_block_parks_again(self):
        lot = ParkingLot()
        me = threading.current_thread()
        with lot.parked():
            lot.unpark(me)
            assert not lot.is_parked(me)
            lot.resume(me)
            assert lot.is_parked(me)
        assert not lot.is_parked(me)

    def test_resume_outside_block_leaves_thread_running(self):
        lot = ParkingLot()
        lot.park()
        lot.resume()
        assert len(lot) == 0

    def test_wait_for_times_out(self):
        assert ParkingLot().wait_for(1, timeout=0.01) is False

    def test_wait_for_ignores_caller(self):
        lot = ParkingLot()
        lot.park()
        assert lot.wait_for(1, timeout=0.01) is False

    def test_wait_for_sees_other_thread(self):
        lot = ParkingLot()
        release = threading.Event()
        t = _parked_thread(lot, release)
        assert lot.wait_for(1, timeout=5)
        release.set()
        t.join(5)


class TestQuiescenceBarrier:

    def test_no_watched_threads_returns_immediately(self):
        barrier = QuiescenceBarrier(ParkingLot())
        assert barrier.snapshot() == frozenset()
        assert barrier.wait() == 0.0

    def test_snapshot_skips_calling_thread(self):
        lot = ParkingLot()
        barrier = QuiescenceBarrier(lot)
        with lot.parked():
            assert barrier.snapshot() == frozenset()

    def test_still_parked_thread_is_settled(self):
        lot = ParkingLot()
        release = threading.Event()
        t = _parked_thread(lot, release)
        assert lot.wait_for(1, timeout=5)

        barrier = QuiescenceBarrier(lot, timeout=5)
        assert barrier.snapshot() == frozenset({t})
        barrier.wait()

        release.set()
        t.join(5)

    def test_waits_for_thread_to_park_again(self):
        """A woken thread counts as busy until it parks again."""
        lot = ParkingLot()
        wake = threading.Event()
        progress = []

        def run():
            with lot.parked():
                wake.wait()
            progress.append("reacted")
            with lot.parked():
                threading.Event().wait(0.2)

        t = threading.Thread(target=run, daemon=True)
        t.start()
        assert lot.wait_for(1, timeout=5)

        barrier = QuiescenceBarrier(lot, timeout=5)
        barrier.snapshot()
        lot.unpark(t)
        wake.set()
        barrier.wait()

        assert progress == ["reacted"]
        t.join(5)

    def test_exited_thread_is_settled(self):
        lot = ParkingLot()
        release = threading.Event()
        t = _parked_thread(lot, release)
        assert lot.wait_for(1, timeout=5)

        barrier = QuiescenceBarrier(lot, timeout=5)
        barrier.snapshot()
        lot.unpark(t)
        release.set()
        t.join(5)
        barrier.wait()

    def test_timeout_raises_with_busy_thread_names(self):
        lot = ParkingLot()
        stuck = threading.Event()

        def run():
            lot.park()
            stuck.wait()

        t = threading.Thread(target=run, name="stuck-consumer", daemon=True)
        t.start()
        assert lot.wait_for(1, timeout=5)

        barrier = QuiescenceBarrier(lot, poll_interval=0.001, timeout=0.05)
        barrier.snapshot()
        lot.unpark(t)

        with pytest.raises(QuiescenceTimeoutError) as excinfo:
            barrier.wait()
        assert excinfo.value.busy == ["stuck-consumer"]
        assert isinstance(excinfo.value, TimeoutError)

        stuck.set()
        t.join(5)
