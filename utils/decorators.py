"""
Route decorators for authentication and authorization.
Provides permission-based access control for JSON routes.
"""

import logging
from functools import wraps

from flask import g
from flask_login import login_required, current_user

from utils.api_response import api_error
from utils.messages import get_message

logger = logging.getLogger(__name__)


def permission_required(permission_code: str):
    """
    Decorator to require specific permission for a route.

    Usage:
        @bp.route('/admin/stations/pending')
        @login_required
        @permission_required('stations.approve')
        def pending_stations():
            ...

    Args:
        permission_code: Permission code required (e.g., 'bookings.decide')

    Returns:
        Decorator function
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not hasattr(g, 'user_permissions'):
                from utils.permissions import cache_user_permissions
                cache_user_permissions(current_user)

            if permission_code not in g.user_permissions:
                logger.info('Permission %s denied for user %s', permission_code, current_user.id)
                return api_error(get_message('permission_denied'), status=403, code='forbidden')

            return func(*args, **kwargs)
        return wrapper
    return decorator


# Re-export login_required for convenience
__all__ = ['login_required', 'permission_required']
