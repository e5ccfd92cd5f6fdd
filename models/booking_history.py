"""
Booking history queries.

History is every reservation that is resolved (rejected, cancelled, expired)
or whose window has ended. Reservations are never deleted, so history is a
view over the reservations table.
"""

from datetime import datetime

from database import get_db
from utils.datetime_helpers import get_now, to_db

RESOLVED_STATUSES = ('rejected', 'cancelled', 'expired')


def _history(scope: str, params: list, now: datetime, limit: int) -> list:
    now = now or get_now()
    placeholders = ','.join('?' * len(RESOLVED_STATUSES))

    query = f'''
        SELECT r.*, s.name as station_name, s.owner_id as station_owner_id,
               s.status as station_status
        FROM reservations r
        JOIN stations s ON r.station_id = s.id
        WHERE (r.status IN ({placeholders}) OR r.end_time <= ?)
    '''
    all_params = [*RESOLVED_STATUSES, to_db(now)]

    if scope:
        query += f' AND {scope}'
        all_params.extend(params)

    query += ' ORDER BY r.end_time DESC, r.id DESC LIMIT ?'
    all_params.append(limit)

    db = get_db()
    cursor = db.cursor()
    cursor.execute(query, all_params)
    return [dict(row) for row in cursor.fetchall()]


def get_user_history(user_id: int, now: datetime = None, limit: int = 100) -> list:
    """Past bookings requested by a user, most recent first."""
    return _history('r.user_id = ?', [user_id], now, limit)


def get_owner_history(owner_id: int, now: datetime = None, limit: int = 100) -> list:
    """Past bookings on an owner's stations, most recent first."""
    return _history('s.owner_id = ?', [owner_id], now, limit)


def get_admin_history(now: datetime = None, limit: int = 100) -> list:
    """Past bookings across all stations, most recent first."""
    return _history(None, [], now, limit)
