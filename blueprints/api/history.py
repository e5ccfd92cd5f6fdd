"""
Booking history API routes.
"""

from flask import request
from flask_login import login_required, current_user

from models.booking_history import get_user_history, get_owner_history, get_admin_history
from models.reservation_store import reservation_to_dict
from utils.api_response import api_success
from utils.decorators import permission_required


def _limit() -> int:
    limit = request.args.get('limit', 100, type=int)
    return max(1, min(limit, 500))


def _respond(rows):
    return api_success(data=[reservation_to_dict(r) for r in rows], count=len(rows))


def register_routes(bp):
    """Register history routes on the blueprint."""

    @bp.route('/history/user', methods=['GET'])
    @login_required
    @permission_required('history.user')
    def user_history():
        """Past bookings requested by the caller."""
        return _respond(get_user_history(current_user.id, limit=_limit()))

    @bp.route('/history/owner', methods=['GET'])
    @login_required
    @permission_required('history.owner')
    def owner_history():
        """Past bookings on the caller's stations."""
        return _respond(get_owner_history(current_user.id, limit=_limit()))

    @bp.route('/history/admin', methods=['GET'])
    @login_required
    @permission_required('history.admin')
    def admin_history():
        """Past bookings across all stations."""
        return _respond(get_admin_history(limit=_limit()))
