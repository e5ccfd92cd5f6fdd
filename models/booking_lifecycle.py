"""
Booking lifecycle manager.

Entry point for every booking state change:

    pending --approve (owner|admin)--> accepted
    pending --reject (owner|admin)---> rejected
    pending --cancel (requester)-----> cancelled
    pending --sweep (start passed)---> expired

Callers pass an explicit ``Actor``; the sweep runs as the system (no actor).
"""

import logging
from datetime import datetime

from database import write_transaction
from models import reservation_store
from models.errors import BookingError, NotFoundError, ForbiddenError, IllegalTransitionError
from models.station import get_station_by_id
from models.user import Actor
from utils.datetime_helpers import get_now, to_utc
from utils.messages import get_message

logger = logging.getLogger(__name__)


def request_booking(
    station_id: int,
    port_number: int,
    start: datetime,
    end: datetime,
    requester: Actor,
    now: datetime = None
) -> dict:
    """
    Request a charging port for a time window.

    The availability check and the insert share one write transaction, so
    two concurrent requests for overlapping windows on the same port cannot
    both succeed.

    Args:
        station_id: Station ID
        port_number: Port number (1..total_ports)
        start: Window start
        end: Window end
        requester: Requesting actor
        now: Reference time (defaults to the app clock)

    Returns:
        dict: The new reservation (status 'pending')

    Raises:
        InvalidWindowError: end <= start, or start in the past
        NotFoundError: Unknown station
        InvalidPortError: Port outside 1..total_ports
        OverlapError: Window taken by a pending or accepted reservation
    """
    now = to_utc(now) if now else get_now()

    try:
        with write_transaction() as cursor:
            cursor.execute('SELECT * FROM stations WHERE id = ?', (station_id,))
            row = cursor.fetchone()
            if not row:
                raise NotFoundError(get_message('station_not_found'))

            reservation_id = reservation_store.create(
                dict(row), port_number, requester.user_id, start, end,
                now=now, cursor=cursor
            )
    except BookingError as e:
        logger.info('Booking request by user %s on station %s port %s refused: %s',
                    requester.user_id, station_id, port_number, e)
        raise

    logger.info('Reservation %s requested by user %s (station %s, port %s)',
                reservation_id, requester.user_id, station_id, port_number)
    return reservation_store.get(reservation_id)


def approve(reservation_id: int, actor: Actor, message: str = None, now: datetime = None) -> dict:
    """
    Accept a pending reservation.

    Only the station owner or an admin may approve, and only on an accepted
    station.

    Raises:
        NotFoundError, ForbiddenError, IllegalTransitionError
    """
    return reservation_store.transition(reservation_id, 'accepted', actor, message, now=now)


def reject(reservation_id: int, actor: Actor, message: str = None, now: datetime = None) -> dict:
    """
    Reject a pending reservation.

    Args:
        reservation_id: Reservation ID
        actor: Station owner or admin
        message: Reason shown to the requester; a default is used when empty

    Raises:
        NotFoundError, ForbiddenError, IllegalTransitionError
    """
    message = (message or '').strip() or get_message('default_reject_message')
    return reservation_store.transition(reservation_id, 'rejected', actor, message, now=now)


def cancel(reservation_id: int, requester: Actor, now: datetime = None) -> dict:
    """Cancel a pending reservation. Only its requester may cancel."""
    return reservation_store.transition(reservation_id, 'cancelled', requester, now=now)


def sweep_expired(now: datetime = None) -> int:
    """
    Expire every pending reservation whose start time has passed.

    Rows resolved concurrently (approved/rejected/cancelled between the
    select and the update) are skipped, so running the sweep twice is safe.

    Args:
        now: Reference time (defaults to the app clock)

    Returns:
        int: Number of reservations expired by this pass
    """
    now = to_utc(now) if now else get_now()
    expired = 0

    for reservation_id in reservation_store.list_pending_started_before(now):
        try:
            reservation_store.transition(reservation_id, 'expired', None, now=now)
            expired += 1
        except IllegalTransitionError:
            logger.debug('Reservation %s resolved before expiry, skipped', reservation_id)

    if expired:
        logger.info('Expiry sweep at %s: %d reservations expired', now.isoformat(), expired)
    return expired


def get_for_actor(reservation_id: int, actor: Actor) -> dict:
    """
    Get a reservation the actor is allowed to see.

    Visible to its requester, the station owner, and admins.

    Raises:
        NotFoundError, ForbiddenError
    """
    reservation = reservation_store.get(reservation_id)
    if actor.is_admin:
        return reservation
    if actor.user_id in (reservation['user_id'], reservation['station_owner_id']):
        return reservation
    raise ForbiddenError(get_message('view_denied'))


def list_station_requests(station_id: int, actor: Actor, status: str = 'pending') -> list:
    """
    Booking requests on a station, for its owner or an admin.

    Raises:
        NotFoundError, ForbiddenError
    """
    station = get_station_by_id(station_id)
    if not station:
        raise NotFoundError(get_message('station_not_found'))
    if not actor.is_admin and station['owner_id'] != actor.user_id:
        raise ForbiddenError(get_message('permission_denied'))
    return reservation_store.list_by_station(station_id, status=status)
