"""
Notification API routes.
Clients poll these every NOTIFICATION_POLL_SECONDS.
"""

from flask import current_app
from flask_login import login_required, current_user

from models import notifications
from utils.api_response import api_success
from utils.decorators import permission_required


def _respond(summary):
    return api_success(
        data=summary.to_dict(),
        poll_seconds=current_app.config.get('NOTIFICATION_POLL_SECONDS', 30)
    )


def register_routes(bp):
    """Register notification routes on the blueprint."""

    @bp.route('/notifications', methods=['GET'])
    @login_required
    def my_notifications():
        """Summary for the caller's role."""
        return _respond(notifications.for_actor(current_user.as_actor()))

    @bp.route('/notifications/user', methods=['GET'])
    @login_required
    @permission_required('notifications.user')
    def user_notifications():
        """Pending/accepted/rejected counts of the caller's bookings."""
        return _respond(notifications.for_user(current_user.id))

    @bp.route('/notifications/owner', methods=['GET'])
    @login_required
    @permission_required('notifications.owner')
    def owner_notifications():
        """Pending requests on the caller's stations."""
        return _respond(notifications.for_owner(current_user.id))

    @bp.route('/notifications/admin', methods=['GET'])
    @login_required
    @permission_required('notifications.admin')
    def admin_notifications():
        """Stations and users awaiting admin action."""
        return _respond(notifications.for_admin())
