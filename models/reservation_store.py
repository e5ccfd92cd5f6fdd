"""
Reservation store.

Keeps every port booking and its status history. All inserts and status
changes go through this module; callers reach it via the booking lifecycle
manager (models/booking_lifecycle.py).
"""

import logging
from datetime import datetime

from database import get_db, write_transaction
from models.availability import find_conflict, validate_window
from models.errors import (
    NotFoundError, ForbiddenError, IllegalTransitionError, OverlapError
)
from models.port import validate_port
from utils.datetime_helpers import get_now, to_db, format_timestamp
from utils.messages import get_message

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

RESERVATION_STATUSES = ('pending', 'accepted', 'rejected', 'cancelled', 'expired')

TERMINAL_STATUSES = frozenset({'accepted', 'rejected', 'cancelled', 'expired'})

# Every transition leaves 'pending'; nothing leaves a terminal state
VALID_TRANSITIONS = {
    'pending': frozenset({'accepted', 'rejected', 'cancelled', 'expired'}),
    'accepted': frozenset(),
    'rejected': frozenset(),
    'cancelled': frozenset(),
    'expired': frozenset(),
}

# Wording used in "already <status>" messages
_STATUS_PAST_TENSE = {
    'accepted': 'accepted',
    'rejected': 'rejected',
    'cancelled': 'cancelled',
    'expired': 'expired',
    'pending': 'left pending',
}


# =============================================================================
# CREATE
# =============================================================================

def create(
    station: dict,
    port_number: int,
    user_id: int,
    start: datetime,
    end: datetime,
    now: datetime = None,
    cursor=None
) -> int:
    """
    Insert a new pending reservation.

    Validates the port and window, then runs the overlap check against
    pending/accepted reservations on the same (station, port). When no
    cursor is given the whole operation runs in its own write transaction.

    Args:
        station: Station dict (id, total_ports)
        port_number: Port number
        user_id: Requesting user ID
        start: Window start
        end: Window end
        now: Reference time for the "start in the future" rule
        cursor: Active write-transaction cursor

    Returns:
        int: New reservation ID

    Raises:
        InvalidPortError, InvalidWindowError, OverlapError
    """
    if cursor is None:
        with write_transaction() as cur:
            return create(station, port_number, user_id, start, end, now=now, cursor=cur)

    now = now or get_now()
    validate_port(station, port_number)
    start, end = validate_window(start, end, now)

    conflict = find_conflict(station['id'], port_number, start, end, cursor=cursor)
    if conflict:
        raise OverlapError(
            get_message('port_busy', port=port_number),
            conflicting_reservation_id=conflict['id']
        )

    now_db = to_db(now)
    cursor.execute('''
        INSERT INTO reservations (
            station_id, port_number, user_id, start_time, end_time,
            status, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, 'pending', ?, ?)
    ''', (station['id'], port_number, user_id, to_db(start), to_db(end), now_db, now_db))
    reservation_id = cursor.lastrowid

    _record_history(cursor, reservation_id, None, 'pending', user_id, 'Booking requested', now_db)
    return reservation_id


# =============================================================================
# READ
# =============================================================================

def get_reservation_by_id(reservation_id: int) -> dict:
    """
    Get reservation with its station's owner and approval status.

    Returns:
        Reservation dict or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        SELECT r.*, s.owner_id as station_owner_id, s.status as station_status,
               s.name as station_name
        FROM reservations r
        JOIN stations s ON r.station_id = s.id
        WHERE r.id = ?
    ''', (reservation_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def get(reservation_id: int) -> dict:
    """Get reservation by ID or raise NotFoundError."""
    reservation = get_reservation_by_id(reservation_id)
    if not reservation:
        raise NotFoundError(get_message('reservation_not_found'))
    return reservation


def _list(where: str, params: list) -> list:
    db = get_db()
    cursor = db.cursor()
    cursor.execute(f'''
        SELECT r.*, s.owner_id as station_owner_id, s.status as station_status,
               s.name as station_name
        FROM reservations r
        JOIN stations s ON r.station_id = s.id
        WHERE {where}
        ORDER BY r.start_time, r.id
    ''', params)
    return [dict(row) for row in cursor.fetchall()]


def list_by_station(station_id: int, status: str = None) -> list:
    """All reservations of a station, optionally filtered by status."""
    if status:
        return _list('r.station_id = ? AND r.status = ?', [station_id, status])
    return _list('r.station_id = ?', [station_id])


def list_by_requester(user_id: int, status: str = None) -> list:
    """All reservations requested by a user, optionally filtered by status."""
    if status:
        return _list('r.user_id = ? AND r.status = ?', [user_id, status])
    return _list('r.user_id = ?', [user_id])


def list_by_port(station_id: int, port_number: int, statuses=None) -> list:
    """Reservations on one port, optionally restricted to some statuses."""
    where = 'r.station_id = ? AND r.port_number = ?'
    params = [station_id, port_number]
    if statuses:
        where += f" AND r.status IN ({','.join('?' * len(statuses))})"
        params.extend(statuses)
    return _list(where, params)


def list_by_status(status: str) -> list:
    """All reservations in a status."""
    return _list('r.status = ?', [status])


def list_by_owner(owner_id: int, status: str = None) -> list:
    """Reservations across every station owned by a user."""
    if status:
        return _list('s.owner_id = ? AND r.status = ?', [owner_id, status])
    return _list('s.owner_id = ?', [owner_id])


def list_pending_started_before(now: datetime) -> list:
    """IDs of pending reservations whose start time has passed."""
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        SELECT id FROM reservations
        WHERE status = 'pending' AND start_time < ?
        ORDER BY start_time, id
    ''', (to_db(now),))
    return [row['id'] for row in cursor.fetchall()]


# =============================================================================
# TRANSITIONS
# =============================================================================

def is_valid_transition(current_status: str, new_status: str) -> bool:
    """True if new_status is reachable from current_status."""
    return new_status in VALID_TRANSITIONS.get(current_status, frozenset())


def authorize_transition(reservation: dict, new_status: str, actor) -> None:
    """
    Check that an actor may move a reservation to new_status.

    accepted/rejected: station owner or admin
    cancelled: the original requester
    expired: the system only (actor is None)

    Raises:
        ForbiddenError: If the actor is not allowed
    """
    if new_status in ('accepted', 'rejected'):
        if actor is None or not (actor.is_admin or actor.user_id == reservation['station_owner_id']):
            action = 'approve' if new_status == 'accepted' else 'reject'
            raise ForbiddenError(get_message('not_station_owner', action=action))
        if new_status == 'accepted' and reservation['station_status'] != 'accepted':
            raise ForbiddenError(get_message('station_not_approved'))

    elif new_status == 'cancelled':
        if actor is None or actor.user_id != reservation['user_id']:
            raise ForbiddenError(get_message('not_requester'))

    elif new_status == 'expired':
        if actor is not None:
            raise ForbiddenError(get_message('permission_denied'))


def transition(reservation_id: int, new_status: str, actor, message: str = None, now: datetime = None) -> dict:
    """
    Move a reservation to a new status.

    The update is a compare-and-set on status = 'pending'; if another
    transition landed first, this one fails with IllegalTransitionError.

    Args:
        reservation_id: Reservation ID
        new_status: Target status
        actor: models.user.Actor, or None for system transitions
        message: Optional owner message stored on the reservation
        now: Timestamp recorded on the change

    Returns:
        dict: Updated reservation

    Raises:
        NotFoundError, ForbiddenError, IllegalTransitionError
    """
    if new_status not in RESERVATION_STATUSES:
        raise IllegalTransitionError(f'Unknown status: {new_status}', target_status=new_status)

    reservation = get(reservation_id)
    authorize_transition(reservation, new_status, actor)

    current = reservation['status']
    if not is_valid_transition(current, new_status):
        raise IllegalTransitionError(
            get_message('already_resolved', status=_STATUS_PAST_TENSE.get(current, current)),
            current_status=current,
            target_status=new_status
        )

    now_db = to_db(now or get_now())
    actor_id = actor.user_id if actor else None

    with write_transaction() as cursor:
        cursor.execute('''
            UPDATE reservations
            SET status = ?,
                owner_message = COALESCE(?, owner_message),
                decided_by = ?,
                updated_at = ?
            WHERE id = ? AND status = 'pending'
        ''', (new_status, message, actor_id, now_db, reservation_id))

        if cursor.rowcount == 0:
            cursor.execute('SELECT status FROM reservations WHERE id = ?', (reservation_id,))
            latest = cursor.fetchone()['status']
            raise IllegalTransitionError(
                get_message('already_resolved', status=_STATUS_PAST_TENSE.get(latest, latest)),
                current_status=latest,
                target_status=new_status
            )

        _record_history(cursor, reservation_id, 'pending', new_status, actor_id, message, now_db)

    logger.info('Reservation %s: pending -> %s (by %s)', reservation_id, new_status, actor_id or 'system')
    return get(reservation_id)


# =============================================================================
# HISTORY
# =============================================================================

def _record_history(cursor, reservation_id, from_status, to_status, changed_by, notes, created_at):
    cursor.execute('''
        INSERT INTO reservation_status_history
        (reservation_id, from_status, to_status, changed_by, notes, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', (reservation_id, from_status, to_status, changed_by, notes, created_at))


def get_status_history(reservation_id: int) -> list:
    """
    Get state change history for reservation.

    Returns:
        list: History entries, oldest first
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        SELECT * FROM reservation_status_history
        WHERE reservation_id = ?
        ORDER BY id
    ''', (reservation_id,))
    return [dict(r) for r in cursor.fetchall()]


# =============================================================================
# SERIALIZATION
# =============================================================================

def reservation_to_dict(reservation: dict) -> dict:
    """Public representation of a reservation row."""
    return {
        'id': reservation['id'],
        'station_id': reservation['station_id'],
        'station_name': reservation.get('station_name'),
        'port_number': reservation['port_number'],
        'user_id': reservation['user_id'],
        'start_time': format_timestamp(reservation['start_time']),
        'end_time': format_timestamp(reservation['end_time']),
        'status': reservation['status'],
        'owner_message': reservation.get('owner_message') or '',
        'decided_by': reservation.get('decided_by'),
        'created_at': format_timestamp(reservation.get('created_at')),
        'updated_at': format_timestamp(reservation.get('updated_at')),
    }


def history_entry_to_dict(entry: dict) -> dict:
    return {
        'from_status': entry['from_status'],
        'to_status': entry['to_status'],
        'changed_by': entry['changed_by'],
        'notes': entry['notes'],
        'created_at': format_timestamp(entry['created_at']),
    }
