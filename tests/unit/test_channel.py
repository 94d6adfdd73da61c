"""Unit tests for the capacity-1 delivery channel."""

import queue
import threading

import pytest

from timetravel.channel import Channel
from timetravel.manual.quiescence import ParkingLot


class TestOffer:

    def test_offer_fills_empty_slot(self):
        ch = Channel()
        assert ch.offer(1) is True
        assert len(ch) == 1
        assert not ch.empty()

    def test_offer_drops_when_full(self):
        """A second value is dropped, the first one is kept."""
        ch = Channel()
        ch.offer(1)
        assert ch.offer(2) is False
        assert ch.get_nowait() == 1
        assert ch.empty()

    def test_offer_after_receive_succeeds_again(self):
        ch = Channel()
        ch.offer(1)
        ch.get_nowait()
        assert ch.offer(2) is True


class TestReceive:

    def test_get_nowait_on_empty_raises(self):
        with pytest.raises(queue.Empty):
            Channel().get_nowait()

    def test_get_returns_buffered_value(self):
        ch = Channel()
        ch.offer("x")
        assert ch.get() == "x"

    def test_get_times_out(self):
        with pytest.raises(queue.Empty):
            Channel().get(timeout=0.01)

    def test_timed_out_receiver_does_not_swallow_later_value(self):
        ch = Channel()
        with pytest.raises(queue.Empty):
            ch.get(timeout=0.01)
        assert ch.offer(7) is True
        assert ch.get_nowait() == 7

    def test_value_handed_directly_to_waiting_receiver(self):
        lot = ParkingLot()
        ch = Channel(lot=lot)
        received = []
        t = threading.Thread(target=lambda: received.append(ch.get()), daemon=True)
        t.start()
        assert lot.wait_for(1, timeout=5)

        assert ch.offer(42) is True
        t.join(5)
        assert received == [42]
        assert ch.empty()

    def test_iteration_yields_values(self):
        ch = Channel()
        ch.offer(1)
        assert next(iter(ch)) == 1


class TestParking:

    def test_blocked_receiver_is_parked(self):
        lot = ParkingLot()
        ch = Channel(lot=lot)
        t = threading.Thread(target=ch.get, daemon=True)
        t.start()

        assert lot.wait_for(1, timeout=5)
        assert lot.is_parked(t)

        ch.offer(None)
        t.join(5)

    def test_offer_unparks_receiver_immediately(self):
        """The producer unparks the receiver before the receiver even runs."""
        lot = ParkingLot()
        ch = Channel(lot=lot)
        t = threading.Thread(target=ch.get, daemon=True)
        t.start()
        assert lot.wait_for(1, timeout=5)

        ch.offer(None)
        assert not lot.is_parked(t)
        t.join(5)

    def test_timeout_unparks_receiver(self):
        lot = ParkingLot()
        ch = Channel(lot=lot)
        with pytest.raises(queue.Empty):
            ch.get(timeout=0.01)
        assert len(lot) == 0

    def test_receiver_inside_parked_block_parks_again_after_value(self):
        lot = ParkingLot()
        ch = Channel(lot=lot)
        received = threading.Event()
        release = threading.Event()

        def run():
            with lot.parked():
                ch.get()
                received.set()
                release.wait()

        t = threading.Thread(target=run, daemon=True)
        t.start()
        assert lot.wait_for(1, timeout=5)

        ch.offer(None)
        assert received.wait(5)
        assert lot.is_parked(t)

        release.set()
        t.join(5)
        assert not lot.is_parked(t)

    def test_timeout_inside_parked_block_stays_parked(self):
        lot = ParkingLot()
        ch = Channel(lot=lot)
        with lot.parked():
            with pytest.raises(queue.Empty):
                ch.get(timeout=0.01)
            assert lot.is_parked(threading.current_thread())
        assert len(lot) == 0

    def test_repr_names_channel(self):
        assert "ticks" in repr(Channel(name="ticks"))
