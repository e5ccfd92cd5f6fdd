"""
Tests for availability checks and station snapshots.
"""

import pytest

from conftest import at
from models import booking_lifecycle
from models.availability import (
    check_available, snapshot, validate_window, windows_overlap
)
from models.errors import InvalidWindowError, InvalidPortError, NotFoundError


class TestWindowsOverlap:

    def test_overlapping(self):
        assert windows_overlap(at(10), at(11), at(10, 30), at(11, 30)) is True

    def test_contained(self):
        assert windows_overlap(at(10), at(12), at(10, 30), at(11)) is True

    def test_touching_windows_do_not_overlap(self):
        assert windows_overlap(at(10), at(11), at(11), at(12)) is False
        assert windows_overlap(at(11), at(12), at(10), at(11)) is False


class TestValidateWindow:

    def test_valid_window(self, ctx):
        start, end = validate_window(at(10), at(11), at(8))
        assert (start, end) == (at(10), at(11))

    def test_zero_length(self, ctx):
        with pytest.raises(InvalidWindowError):
            validate_window(at(10), at(10))

    def test_inverted(self, ctx):
        with pytest.raises(InvalidWindowError):
            validate_window(at(11), at(10))

    def test_start_in_past(self, ctx):
        with pytest.raises(InvalidWindowError):
            validate_window(at(7), at(9), at(8))

    def test_start_equal_to_now_is_allowed(self, ctx):
        validate_window(at(8), at(9), at(8))


class TestCheckAvailable:

    @pytest.fixture
    def requester(self, make_user):
        return make_user()

    def test_free_port(self, ctx, station):
        result = check_available(station, 1, at(10), at(11))
        assert result == {'available': True, 'conflicting_reservation_id': None}

    def test_pending_blocks_window(self, ctx, station, requester):
        reservation = booking_lifecycle.request_booking(station, 1, at(10), at(11), requester)

        result = check_available(station, 1, at(10, 30), at(11, 30))
        assert result['available'] is False
        assert result['conflicting_reservation_id'] == reservation['id']

    def test_other_port_is_free(self, ctx, station, requester):
        booking_lifecycle.request_booking(station, 1, at(10), at(11), requester)
        assert check_available(station, 2, at(10), at(11))['available'] is True

    def test_back_to_back_is_free(self, ctx, station, requester):
        booking_lifecycle.request_booking(station, 1, at(10), at(11), requester)
        assert check_available(station, 1, at(11), at(12))['available'] is True

    def test_cancelled_does_not_block(self, ctx, station, requester):
        reservation = booking_lifecycle.request_booking(station, 1, at(10), at(11), requester)
        booking_lifecycle.cancel(reservation['id'], requester)
        assert check_available(station, 1, at(10), at(11))['available'] is True

    def test_unknown_station(self, ctx):
        with pytest.raises(NotFoundError):
            check_available(999, 1, at(10), at(11))

    def test_invalid_port(self, ctx, station):
        with pytest.raises(InvalidPortError):
            check_available(station, 3, at(10), at(11))

    def test_invalid_window(self, ctx, station):
        with pytest.raises(InvalidWindowError):
            check_available(station, 1, at(11), at(10))


class TestSnapshot:

    def test_empty_station(self, ctx, station):
        data = snapshot(station)
        assert data['total_ports'] == 2
        assert data['occupied_ports'] == []
        assert data['pending_ports'] == []
        assert data['is_available'] is True
        assert data['per_port_schedule'] == {1: [], 2: []}
        assert [p['state'] for p in data['ports']] == ['available', 'available']

    def test_pending_and_occupied(self, ctx, clock, station, owner, make_user):
        alice = make_user()
        bob = make_user()
        first = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        booking_lifecycle.request_booking(station, 2, at(10, 30), at(11, 30), bob)
        booking_lifecycle.approve(first['id'], owner)

        # Before the accepted window starts, port 1 is not occupied yet
        data = snapshot(station)
        assert data['occupied_ports'] == []
        assert data['pending_ports'] == [2]

        clock.set(at(10, 15))
        data = snapshot(station)
        assert data['occupied_ports'] == [1]
        assert data['pending_ports'] == [2]
        assert data['is_available'] is True
        assert {p['port_number']: p['state'] for p in data['ports']} == {1: 'occupied', 2: 'pending'}

    def test_schedule_is_ordered_and_drops_ended(self, ctx, clock, station, make_user):
        alice = make_user()
        late = booking_lifecycle.request_booking(station, 1, at(14), at(15), alice)
        early = booking_lifecycle.request_booking(station, 1, at(9), at(10), alice)

        schedule = snapshot(station)['per_port_schedule'][1]
        assert [entry['reservation_id'] for entry in schedule] == [early['id'], late['id']]

        clock.set(at(12))
        schedule = snapshot(station)['per_port_schedule'][1]
        assert [entry['reservation_id'] for entry in schedule] == [late['id']]

    def test_all_ports_occupied(self, ctx, clock, make_station, owner, make_user):
        station = make_station(owner, total_ports=1)
        alice = make_user()
        reservation = booking_lifecycle.request_booking(station, 1, at(9), at(12), alice)
        booking_lifecycle.approve(reservation['id'], owner)

        clock.set(at(10))
        assert snapshot(station)['is_available'] is False

    def test_unknown_station(self, ctx):
        with pytest.raises(NotFoundError):
            snapshot(999)
