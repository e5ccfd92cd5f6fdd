"""
Role-specific notification summaries.

Computed from current reservation and station state on every poll; nothing
here is stored. Each role gets a fixed-shape summary tagged with ``kind``.
"""

from dataclasses import dataclass, field, asdict

from database import get_db
from models import reservation_store
from models.station import get_stations, station_to_dict
from models.user import Actor


@dataclass(frozen=True)
class UserSummary:
    """Booking outcomes for a requester."""

    pending_count: int
    accepted_count: int
    rejected_count: int
    kind: str = field(default='user', init=False)

    @property
    def total(self) -> int:
        return self.pending_count + self.accepted_count + self.rejected_count

    def to_dict(self) -> dict:
        data = asdict(self)
        data['total'] = self.total
        return data


@dataclass(frozen=True)
class OwnerSummary:
    """Work waiting on a station owner."""

    pending_bookings: tuple
    pending_station_verifications: tuple
    kind: str = field(default='owner', init=False)

    @property
    def total(self) -> int:
        return len(self.pending_bookings) + len(self.pending_station_verifications)

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'pending_bookings': list(self.pending_bookings),
            'pending_booking_count': len(self.pending_bookings),
            'pending_station_verifications': list(self.pending_station_verifications),
            'pending_station_verification_count': len(self.pending_station_verifications),
            'total': self.total,
        }


@dataclass(frozen=True)
class AdminSummary:
    """Work waiting on an admin."""

    pending_station_approvals: int
    pending_user_actions: int
    kind: str = field(default='admin', init=False)

    @property
    def total(self) -> int:
        return self.pending_station_approvals + self.pending_user_actions

    def to_dict(self) -> dict:
        data = asdict(self)
        data['total'] = self.total
        return data


def for_user(user_id: int) -> UserSummary:
    """
    Count a user's bookings by outcome.

    Cancelled and expired bookings are not counted.
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        SELECT status, COUNT(*) as count
        FROM reservations
        WHERE user_id = ? AND status IN ('pending', 'accepted', 'rejected')
        GROUP BY status
    ''', (user_id,))
    counts = {row['status']: row['count'] for row in cursor.fetchall()}

    return UserSummary(
        pending_count=counts.get('pending', 0),
        accepted_count=counts.get('accepted', 0),
        rejected_count=counts.get('rejected', 0),
    )


def for_owner(owner_id: int) -> OwnerSummary:
    """
    Pending booking requests on an owner's stations, plus the owner's own
    stations still awaiting admin verification.
    """
    pending = reservation_store.list_by_owner(owner_id, status='pending')
    pending_bookings = tuple(
        {
            'reservation': reservation_store.reservation_to_dict(r),
            'station': {'id': r['station_id'], 'name': r['station_name']},
        }
        for r in pending
    )

    return OwnerSummary(
        pending_bookings=pending_bookings,
        pending_station_verifications=tuple(
            station_to_dict(s) for s in get_stations(status='pending', owner_id=owner_id)
        ),
    )


def for_admin() -> AdminSummary:
    """
    Stations awaiting approval, and users whose promotion to owner depends
    on one of those approvals.
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute("SELECT COUNT(*) as count FROM stations WHERE status = 'pending'")
    station_count = cursor.fetchone()['count']

    cursor.execute('''
        SELECT COUNT(DISTINCT u.id) as count
        FROM users u
        JOIN stations s ON s.owner_id = u.id
        WHERE s.status = 'pending' AND u.role = 'user' AND u.active = 1
    ''')
    user_count = cursor.fetchone()['count']

    return AdminSummary(
        pending_station_approvals=station_count,
        pending_user_actions=user_count,
    )


def for_actor(actor: Actor):
    """Summary matching the actor's role."""
    if actor.role == 'admin':
        return for_admin()
    if actor.role == 'owner':
        return for_owner(actor.user_id)
    return for_user(actor.user_id)
