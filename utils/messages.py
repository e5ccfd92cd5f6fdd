"""
Centralized user-facing messages.
All API text lives here for consistency.
"""

MESSAGES = {
    # Success messages
    'login_success': 'Welcome {name}',
    'logout_success': 'Signed out',
    'user_registered': 'Account created',
    'booking_requested': 'Booking request sent to station owner',
    'booking_approved': 'Booking approved',
    'booking_rejected': 'Booking rejected',
    'booking_cancelled': 'Booking cancelled',
    'sweep_done': '{count} pending bookings expired',
    'station_submitted': 'Station submitted for admin approval',
    'station_approved': 'Station approved',
    'station_rejected': 'Station rejected',

    # Error messages
    'login_required': 'Authentication required',
    'invalid_credentials': 'Invalid username or password',
    'account_disabled': 'This account has been disabled',
    'permission_denied': 'You do not have permission for this action',
    'invalid_data': 'Invalid request data',
    'username_exists': 'Username already exists',
    'email_exists': 'Email already exists',
    'station_exists': 'A station already exists at these coordinates',
    'internal_error': 'Unexpected server error',

    # Booking errors
    'invalid_window': 'End time must be after start time',
    'start_in_past': 'Start time must be in the future',
    'invalid_port': 'Port {port} does not exist at this station (1-{total_ports})',
    'port_busy': 'Port {port} is already booked for the selected time range',
    'reservation_not_found': 'Booking not found',
    'station_not_found': 'Station not found',
    'user_not_found': 'User not found',
    'not_station_owner': 'Only the station owner or an admin can {action} bookings',
    'not_requester': 'Only the user who requested the booking can cancel it',
    'station_not_approved': 'Station is not approved and cannot accept bookings',
    'already_resolved': 'This booking has already been {status}',
    'station_not_pending': 'Only pending stations can be {action}',
    'view_denied': 'You cannot view this booking',

    # Defaults
    'default_reject_message': 'Booking rejected by owner',
}


def get_message(key: str, **kwargs) -> str:
    """
    Get message with optional formatting.

    Args:
        key: Message key
        **kwargs: Format parameters

    Returns:
        Formatted message or key if not found
    """
    message = MESSAGES.get(key, key)
    if kwargs:
        return message.format(**kwargs)
    return message
