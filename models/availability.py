"""
Port availability checks and station snapshots.

Single source of truth for what "available" means: a port is blocked for a
window when a pending or accepted reservation on the same (station, port)
overlaps it. Windows are half-open, [start, end).

A pending request holds its window until it is accepted, rejected, cancelled
or expired, so first come is first served.
"""

from datetime import datetime

from database import get_db
from models.errors import InvalidWindowError
from models.port import get_port_numbers, validate_port
from models.station import require_station
from utils.datetime_helpers import get_now, to_db, to_utc, format_timestamp
from utils.messages import get_message

# Statuses that hold a port's window
BLOCKING_STATUSES = ('pending', 'accepted')

PORT_AVAILABLE = 'available'
PORT_PENDING = 'pending'
PORT_OCCUPIED = 'occupied'


# =============================================================================
# WINDOW VALIDATION
# =============================================================================

def windows_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval intersection test."""
    return a_start < b_end and b_start < a_end


def validate_window(start: datetime, end: datetime, now: datetime = None) -> tuple:
    """
    Reject zero-length, inverted, and past windows.

    Args:
        start: Window start
        end: Window end
        now: Reference time; when None only the ordering is checked

    Returns:
        tuple: (start, end) normalized to UTC

    Raises:
        InvalidWindowError: If end <= start, or start < now
    """
    start = to_utc(start)
    end = to_utc(end)

    if end <= start:
        raise InvalidWindowError(get_message('invalid_window'))

    if now is not None and start < to_utc(now):
        raise InvalidWindowError(get_message('start_in_past'))

    return start, end


# =============================================================================
# CONFLICT DETECTION
# =============================================================================

def find_conflict(
    station_id: int,
    port_number: int,
    start: datetime,
    end: datetime,
    cursor=None,
    exclude_reservation_id: int = None
) -> dict:
    """
    First blocking reservation overlapping [start, end) on a port.

    Args:
        station_id: Station ID
        port_number: Port number
        start: Window start
        end: Window end
        cursor: Active transaction cursor (so the check shares the writer's lock)
        exclude_reservation_id: Reservation to ignore

    Returns:
        dict: {'id', 'start_time', 'end_time', 'status'} or None
    """
    cur = cursor or get_db().cursor()

    placeholders = ','.join('?' * len(BLOCKING_STATUSES))
    query = f'''
        SELECT id, start_time, end_time, status
        FROM reservations
        WHERE station_id = ?
          AND port_number = ?
          AND status IN ({placeholders})
          AND start_time < ?
          AND ? < end_time
    '''
    params = [station_id, port_number, *BLOCKING_STATUSES, to_db(end), to_db(start)]

    if exclude_reservation_id:
        query += ' AND id != ?'
        params.append(exclude_reservation_id)

    query += ' ORDER BY start_time, id LIMIT 1'

    cur.execute(query, params)
    row = cur.fetchone()
    return dict(row) if row else None


def check_available(station_id: int, port_number: int, start: datetime, end: datetime) -> dict:
    """
    Check whether a port is free for a window.

    Args:
        station_id: Station ID
        port_number: Port number (1..total_ports)
        start: Window start
        end: Window end

    Returns:
        dict: {'available': bool, 'conflicting_reservation_id': int or None}

    Raises:
        NotFoundError: Unknown station
        InvalidPortError: Port outside the station's registry
        InvalidWindowError: end <= start
    """
    station = require_station(station_id)
    validate_port(station, port_number)
    start, end = validate_window(start, end)

    conflict = find_conflict(station_id, port_number, start, end)
    return {
        'available': conflict is None,
        'conflicting_reservation_id': conflict['id'] if conflict else None
    }


# =============================================================================
# SNAPSHOT
# =============================================================================

def snapshot(station_id: int, now: datetime = None) -> dict:
    """
    Port-by-port status of a station.

    Only pending/accepted reservations that have not ended are considered.

    Args:
        station_id: Station ID
        now: Reference time (defaults to the app clock)

    Returns:
        dict: {
            'station_id': int,
            'total_ports': int,
            'occupied_ports': [port, ...],
            'pending_ports': [port, ...],
            'is_available': bool,
            'ports': [{'port_number': int, 'state': 'available'|'pending'|'occupied'}],
            'per_port_schedule': {
                port: [{'reservation_id', 'start_time', 'end_time', 'status'}]
            },
            'generated_at': str
        }

    Raises:
        NotFoundError: Unknown station
    """
    station = require_station(station_id)
    now = to_utc(now) if now else get_now()
    now_db = to_db(now)

    db = get_db()
    cursor = db.cursor()
    placeholders = ','.join('?' * len(BLOCKING_STATUSES))
    cursor.execute(f'''
        SELECT id, port_number, start_time, end_time, status
        FROM reservations
        WHERE station_id = ?
          AND status IN ({placeholders})
          AND end_time > ?
        ORDER BY port_number, start_time, id
    ''', (station_id, *BLOCKING_STATUSES, now_db))
    rows = cursor.fetchall()

    port_numbers = get_port_numbers(station)
    schedule = {port: [] for port in port_numbers}
    occupied = set()
    pending = set()

    for row in rows:
        port = row['port_number']
        if port not in schedule:
            # Port beyond a shrunken total_ports; not part of the registry
            continue
        schedule[port].append({
            'reservation_id': row['id'],
            'start_time': format_timestamp(row['start_time']),
            'end_time': format_timestamp(row['end_time']),
            'status': row['status']
        })
        if row['status'] == 'accepted' and row['start_time'] <= now_db:
            occupied.add(port)
        elif row['status'] == 'pending':
            pending.add(port)

    pending -= occupied

    ports = []
    for port in port_numbers:
        if port in occupied:
            state = PORT_OCCUPIED
        elif port in pending:
            state = PORT_PENDING
        else:
            state = PORT_AVAILABLE
        ports.append({'port_number': port, 'state': state})

    return {
        'station_id': station['id'],
        'total_ports': station['total_ports'],
        'occupied_ports': sorted(occupied),
        'pending_ports': sorted(pending),
        'is_available': len(occupied) < station['total_ports'],
        'ports': ports,
        'per_port_schedule': schedule,
        'generated_at': format_timestamp(now)
    }
