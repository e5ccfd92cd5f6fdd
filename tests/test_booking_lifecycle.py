"""
Tests for the booking lifecycle: request, approve, reject, cancel, expire.
"""

import threading

import pytest

from conftest import at
from database import write_transaction
from models import booking_lifecycle, reservation_store
from models.errors import (
    ForbiddenError, IllegalTransitionError, InvalidPortError, InvalidWindowError,
    NotFoundError, OverlapError
)
from models.user import Actor


def _resolve_before_update(monkeypatch, status):
    """Make another writer resolve the reservation between read and update."""
    authorize = reservation_store.authorize_transition

    def _authorize_then_resolve(reservation, new_status, actor):
        authorize(reservation, new_status, actor)
        with write_transaction() as cursor:
            cursor.execute('UPDATE reservations SET status = ? WHERE id = ?',
                           (status, reservation['id']))

    monkeypatch.setattr(reservation_store, 'authorize_transition', _authorize_then_resolve)


@pytest.fixture
def alice(make_user):
    return make_user(username='alice')


@pytest.fixture
def bob(make_user):
    return make_user(username='bob')


class TestScenarios:
    """Two-port station S, owner Olivia, users Alice and Bob."""

    def test_overlap_on_same_port_is_refused(self, ctx, station, alice, bob):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        assert a['status'] == 'pending'

        with pytest.raises(OverlapError) as exc_info:
            booking_lifecycle.request_booking(station, 1, at(10, 30), at(11, 30), bob)
        assert exc_info.value.conflicting_reservation_id == a['id']

    def test_same_window_on_other_port_succeeds(self, ctx, station, alice, bob):
        booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        b = booking_lifecycle.request_booking(station, 2, at(10, 30), at(11, 30), bob)
        assert b['status'] == 'pending'

    def test_accepted_reservation_blocks_port(self, ctx, station, owner, alice, bob):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)

        approved = booking_lifecycle.approve(a['id'], owner)
        assert approved['status'] == 'accepted'

        with pytest.raises(OverlapError) as exc_info:
            booking_lifecycle.request_booking(station, 1, at(10, 15), at(10, 45), bob)
        assert exc_info.value.conflicting_reservation_id == a['id']

    def test_expired_pending_frees_the_slot(self, ctx, clock, station, alice, bob):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)

        clock.set(at(10, 5))
        assert booking_lifecycle.sweep_expired() == 1
        assert reservation_store.get(a['id'])['status'] == 'expired'

        b = booking_lifecycle.request_booking(station, 1, at(10, 10), at(11), bob)
        assert b['status'] == 'pending'

    def test_stranger_cannot_approve(self, ctx, station, alice, bob):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)

        with pytest.raises(ForbiddenError):
            booking_lifecycle.approve(a['id'], bob)
        assert reservation_store.get(a['id'])['status'] == 'pending'

    def test_start_in_past_creates_nothing(self, ctx, station, alice):
        with pytest.raises(InvalidWindowError):
            booking_lifecycle.request_booking(station, 1, at(7), at(9), alice)
        assert reservation_store.list_by_station(station) == []


class TestRequestBooking:

    def test_unknown_station(self, ctx, alice):
        with pytest.raises(NotFoundError):
            booking_lifecycle.request_booking(999, 1, at(10), at(11), alice)

    def test_port_out_of_range(self, ctx, station, alice):
        with pytest.raises(InvalidPortError):
            booking_lifecycle.request_booking(station, 3, at(10), at(11), alice)

    def test_zero_length_window(self, ctx, station, alice):
        with pytest.raises(InvalidWindowError):
            booking_lifecycle.request_booking(station, 1, at(10), at(10), alice)

    def test_naive_times_use_configured_timezone(self, ctx, station, alice):
        reservation = booking_lifecycle.request_booking(
            station, 1, at(10).replace(tzinfo=None), at(11).replace(tzinfo=None), alice
        )
        assert reservation['start_time'] == '2030-01-15T10:00:00'

    def test_concurrent_requests_for_same_window(self, app, station, make_user):
        """Exactly one of several simultaneous requests wins the slot."""
        users = [make_user() for _ in range(6)]
        barrier = threading.Barrier(len(users))
        results = []
        lock = threading.Lock()

        def worker(actor):
            with app.app_context():
                barrier.wait()
                try:
                    booking_lifecycle.request_booking(station, 1, at(10), at(11), actor)
                    outcome = 'ok'
                except OverlapError:
                    outcome = 'overlap'
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=worker, args=(u,)) for u in users]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert sorted(results) == ['ok'] + ['overlap'] * (len(users) - 1)
        with app.app_context():
            assert len(reservation_store.list_by_station(station)) == 1


class TestDecisions:

    def test_reject_uses_default_message(self, ctx, station, owner, alice):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        rejected = booking_lifecycle.reject(a['id'], owner)
        assert rejected['status'] == 'rejected'
        assert rejected['owner_message'] == 'Booking rejected by owner'

    def test_reject_with_message(self, ctx, station, owner, alice):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        rejected = booking_lifecycle.reject(a['id'], owner, 'Port under maintenance')
        assert rejected['owner_message'] == 'Port under maintenance'

    def test_rejected_frees_the_slot(self, ctx, station, owner, alice, bob):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        booking_lifecycle.reject(a['id'], owner)
        assert booking_lifecycle.request_booking(station, 1, at(10), at(11), bob)['status'] == 'pending'

    def test_admin_approves_any_station(self, ctx, station, alice):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        admin = Actor(user_id=1, role='admin')
        assert booking_lifecycle.approve(a['id'], admin)['status'] == 'accepted'

    def test_unapproved_station_cannot_accept(self, ctx, make_station, make_user, alice):
        pending_owner = make_user()
        station_id = make_station(pending_owner, status='pending')
        a = booking_lifecycle.request_booking(station_id, 1, at(10), at(11), alice)

        with pytest.raises(ForbiddenError):
            booking_lifecycle.approve(a['id'], pending_owner)
        # Rejecting is still possible
        assert booking_lifecycle.reject(a['id'], pending_owner)['status'] == 'rejected'

    def test_second_decision_is_illegal(self, ctx, station, owner, alice):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        booking_lifecycle.approve(a['id'], owner)

        with pytest.raises(IllegalTransitionError):
            booking_lifecycle.reject(a['id'], owner)
        with pytest.raises(IllegalTransitionError):
            booking_lifecycle.approve(a['id'], owner)

    def test_losing_a_decision_race(self, ctx, monkeypatch, station, owner, alice):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        # Another writer accepts the row after it was read as pending
        _resolve_before_update(monkeypatch, 'accepted')

        with pytest.raises(IllegalTransitionError) as exc:
            booking_lifecycle.reject(a['id'], owner)
        assert exc.value.current_status == 'accepted'
        assert exc.value.target_status == 'rejected'

        reservation = reservation_store.get(a['id'])
        assert reservation['status'] == 'accepted'
        assert reservation['owner_message'] is None

    def test_decide_unknown_reservation(self, ctx, owner):
        with pytest.raises(NotFoundError):
            booking_lifecycle.approve(4242, owner)


class TestCancel:

    def test_requester_cancels(self, ctx, station, alice):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        assert booking_lifecycle.cancel(a['id'], alice)['status'] == 'cancelled'

    def test_cannot_cancel_accepted(self, ctx, station, owner, alice):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        booking_lifecycle.approve(a['id'], owner)
        with pytest.raises(IllegalTransitionError):
            booking_lifecycle.cancel(a['id'], alice)

    def test_other_user_cannot_cancel(self, ctx, station, alice, bob):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        with pytest.raises(ForbiddenError):
            booking_lifecycle.cancel(a['id'], bob)


class TestSweepExpired:

    def test_only_started_pending_are_expired(self, ctx, clock, station, owner, alice):
        started = booking_lifecycle.request_booking(station, 1, at(9), at(10), alice)
        accepted = booking_lifecycle.request_booking(station, 2, at(9), at(10), alice)
        future = booking_lifecycle.request_booking(station, 1, at(12), at(13), alice)
        booking_lifecycle.approve(accepted['id'], owner)

        clock.set(at(9, 30))
        assert booking_lifecycle.sweep_expired() == 1

        assert reservation_store.get(started['id'])['status'] == 'expired'
        assert reservation_store.get(accepted['id'])['status'] == 'accepted'
        assert reservation_store.get(future['id'])['status'] == 'pending'

    def test_sweep_is_idempotent(self, ctx, clock, station, alice):
        booking_lifecycle.request_booking(station, 1, at(9), at(10), alice)
        booking_lifecycle.request_booking(station, 2, at(9), at(10), alice)

        clock.set(at(11))
        assert booking_lifecycle.sweep_expired() == 2
        assert booking_lifecycle.sweep_expired() == 0
        assert len(reservation_store.list_by_status('expired')) == 2

    def test_explicit_now(self, ctx, station, alice):
        booking_lifecycle.request_booking(station, 1, at(9), at(10), alice)
        assert booking_lifecycle.sweep_expired(at(8, 59)) == 0
        assert booking_lifecycle.sweep_expired(at(9, 1)) == 1

    def test_skips_row_resolved_mid_sweep(self, ctx, clock, monkeypatch, station, alice):
        a = booking_lifecycle.request_booking(station, 1, at(9), at(10), alice)
        _resolve_before_update(monkeypatch, 'cancelled')

        clock.set(at(9, 30))
        assert booking_lifecycle.sweep_expired() == 0
        assert reservation_store.get(a['id'])['status'] == 'cancelled'
        assert reservation_store.get_status_history(a['id'])[-1]['to_status'] == 'pending'

    def test_expiry_is_recorded_in_history(self, ctx, clock, station, alice):
        a = booking_lifecycle.request_booking(station, 1, at(9), at(10), alice)
        clock.set(at(9, 30))
        booking_lifecycle.sweep_expired()

        last = reservation_store.get_status_history(a['id'])[-1]
        assert last['to_status'] == 'expired'
        assert last['changed_by'] is None


class TestVisibility:

    def test_requester_owner_admin_can_view(self, ctx, station, owner, alice):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        for actor in (alice, owner, Actor(user_id=1, role='admin')):
            assert booking_lifecycle.get_for_actor(a['id'], actor)['id'] == a['id']

    def test_stranger_cannot_view(self, ctx, station, alice, bob):
        a = booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        with pytest.raises(ForbiddenError):
            booking_lifecycle.get_for_actor(a['id'], bob)

    def test_station_requests_for_owner_only(self, ctx, station, owner, alice, bob):
        booking_lifecycle.request_booking(station, 1, at(10), at(11), alice)
        assert len(booking_lifecycle.list_station_requests(station, owner)) == 1
        with pytest.raises(ForbiddenError):
            booking_lifecycle.list_station_requests(station, bob)
