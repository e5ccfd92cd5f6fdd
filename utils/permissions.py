"""
Permission checking and caching utilities.
Maps roles to permission codes and resolves them for the current user.
"""

from flask import g

USER_PERMISSIONS = {
    'bookings.request',
    'bookings.view_own',
    'stations.submit',
    'notifications.user',
    'history.user',
}

OWNER_PERMISSIONS = USER_PERMISSIONS | {
    'bookings.decide',
    'stations.view_requests',
    'notifications.owner',
    'history.owner',
}

ADMIN_PERMISSIONS = OWNER_PERMISSIONS | {
    'stations.approve',
    'bookings.sweep',
    'notifications.admin',
    'history.admin',
}

ROLE_PERMISSIONS = {
    'user': USER_PERMISSIONS,
    'owner': OWNER_PERMISSIONS,
    'admin': ADMIN_PERMISSIONS,
}


def load_user_permissions(user) -> set:
    """
    Load all permissions for a user based on their role.

    Args:
        user: User object (Flask-Login)

    Returns:
        Set of permission codes
    """
    role = getattr(user, 'role', None)
    return set(ROLE_PERMISSIONS.get(role, set()))


def has_permission(user, permission_code: str) -> bool:
    """
    Check if user has a specific permission.

    Args:
        user: User object (Flask-Login)
        permission_code: Permission code to check

    Returns:
        True if user has permission
    """
    return permission_code in load_user_permissions(user)


def cache_user_permissions(user):
    """
    Cache user permissions in flask g object.

    Args:
        user: User object (Flask-Login)
    """
    g.user_permissions = load_user_permissions(user)
