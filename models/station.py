"""
Station catalog data access functions.

Stations are submitted by users, approved or rejected by admins, and never
hard-deleted. The booking core only reads them (ports, owner, status).
"""

import logging

from database import get_db, write_transaction
from models.errors import NotFoundError, IllegalTransitionError
from models.user import set_user_role
from utils.messages import get_message
from utils.validators import validate_coordinates, sanitize_input

logger = logging.getLogger(__name__)

STATION_STATUSES = ('pending', 'accepted', 'rejected')


# =============================================================================
# CREATE
# =============================================================================

def create_station(
    name: str,
    address: str,
    latitude: float,
    longitude: float,
    total_ports: int,
    owner_id: int
) -> int:
    """
    Submit a new station for admin approval.

    Args:
        name: Station display name
        address: Street address
        latitude: Latitude (-90..90)
        longitude: Longitude (-180..180)
        total_ports: Number of physical ports (>= 1)
        owner_id: Submitting user ID

    Returns:
        int: New station ID (status 'pending')

    Raises:
        ValueError: If validations fail
        sqlite3.IntegrityError: If a station already exists at the coordinates
    """
    name = sanitize_input(name, max_length=200)
    address = sanitize_input(address, max_length=500)
    if not name:
        raise ValueError('Station name is required')
    if not address:
        raise ValueError('Station address is required')
    if not validate_coordinates(latitude, longitude):
        raise ValueError('Invalid coordinates')
    if not isinstance(total_ports, int) or total_ports < 1:
        raise ValueError('A station needs at least one port')

    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        INSERT INTO stations (name, address, latitude, longitude, total_ports, owner_id, status)
        VALUES (?, ?, ?, ?, ?, ?, 'pending')
    ''', (name, address, float(latitude), float(longitude), total_ports, owner_id))
    db.commit()

    logger.info('Station %s submitted by user %s (%d ports)', cursor.lastrowid, owner_id, total_ports)
    return cursor.lastrowid


# =============================================================================
# READ
# =============================================================================

def get_station_by_id(station_id: int) -> dict:
    """
    Get station by ID.

    Args:
        station_id: Station ID

    Returns:
        Station dict or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM stations WHERE id = ?', (station_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def require_station(station_id: int) -> dict:
    """Get station by ID or raise NotFoundError."""
    station = get_station_by_id(station_id)
    if not station:
        raise NotFoundError(get_message('station_not_found'))
    return station


def get_stations(status: str = None, owner_id: int = None) -> list:
    """
    List stations with optional filters.

    Args:
        status: Filter by approval status (optional)
        owner_id: Filter by owner (optional)

    Returns:
        list: Station dicts ordered by name
    """
    query = 'SELECT * FROM stations WHERE 1=1'
    params = []

    if status:
        query += ' AND status = ?'
        params.append(status)

    if owner_id is not None:
        query += ' AND owner_id = ?'
        params.append(owner_id)

    query += ' ORDER BY name, id'

    db = get_db()
    cursor = db.cursor()
    cursor.execute(query, params)
    return [dict(row) for row in cursor.fetchall()]


def get_pending_stations() -> list:
    """Stations awaiting admin approval, oldest first."""
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        SELECT s.*, u.username as owner_username, u.full_name as owner_name
        FROM stations s
        JOIN users u ON s.owner_id = u.id
        WHERE s.status = 'pending'
        ORDER BY s.created_at, s.id
    ''')
    return [dict(row) for row in cursor.fetchall()]


# =============================================================================
# APPROVAL
# =============================================================================

def approve_station(station_id: int) -> dict:
    """
    Approve a pending station.

    The submitting user is promoted to the 'owner' role if they are still a
    plain user.

    Returns:
        dict: Updated station

    Raises:
        NotFoundError: Unknown station
        IllegalTransitionError: Station is not pending
    """
    with write_transaction() as cursor:
        station = _get_pending_for_update(cursor, station_id, 'approved')

        cursor.execute('''
            UPDATE stations SET status = 'accepted', updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (station_id,))

        cursor.execute('SELECT role FROM users WHERE id = ?', (station['owner_id'],))
        owner = cursor.fetchone()
        if owner and owner['role'] == 'user':
            set_user_role(station['owner_id'], 'owner', cursor=cursor)

    logger.info('Station %s approved', station_id)
    return get_station_by_id(station_id)


def reject_station(station_id: int) -> dict:
    """
    Reject a pending station. The row is kept with status 'rejected'.

    Raises:
        NotFoundError: Unknown station
        IllegalTransitionError: Station is not pending
    """
    with write_transaction() as cursor:
        _get_pending_for_update(cursor, station_id, 'rejected')
        cursor.execute('''
            UPDATE stations SET status = 'rejected', updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (station_id,))

    logger.info('Station %s rejected', station_id)
    return get_station_by_id(station_id)


def _get_pending_for_update(cursor, station_id: int, action: str) -> dict:
    cursor.execute('SELECT * FROM stations WHERE id = ?', (station_id,))
    row = cursor.fetchone()
    if not row:
        raise NotFoundError(get_message('station_not_found'))
    if row['status'] != 'pending':
        raise IllegalTransitionError(
            get_message('station_not_pending', action=action),
            current_status=row['status'],
            target_status='accepted' if action == 'approved' else 'rejected'
        )
    return dict(row)


# =============================================================================
# SERIALIZATION
# =============================================================================

def station_to_dict(station: dict) -> dict:
    """Public representation of a station row."""
    return {
        'id': station['id'],
        'name': station['name'],
        'address': station['address'],
        'latitude': station['latitude'],
        'longitude': station['longitude'],
        'total_ports': station['total_ports'],
        'owner_id': station['owner_id'],
        'status': station['status'],
        'created_at': station.get('created_at'),
    }
