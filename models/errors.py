"""
Booking error taxonomy.

Every error the booking core reports to a caller is a BookingError. Each
kind carries a machine-readable ``code`` and the HTTP status the API layer
answers with, so a client can tell "slot taken" from "already decided".
"""


class BookingError(ValueError):
    """Base class for recoverable, caller-facing booking errors."""

    code = 'booking_error'
    http_status = 400

    def details(self) -> dict:
        """Extra fields to expose alongside the message."""
        return {}


class InvalidWindowError(BookingError):
    """End not after start, or start already in the past."""

    code = 'invalid_window'
    http_status = 400


class InvalidPortError(BookingError):
    """Port number outside 1..total_ports."""

    code = 'invalid_port'
    http_status = 400

    def __init__(self, message: str, port_number=None, total_ports=None):
        super().__init__(message)
        self.port_number = port_number
        self.total_ports = total_ports

    def details(self) -> dict:
        return {'port': self.port_number, 'total_ports': self.total_ports}


class OverlapError(BookingError):
    """Window collides with a pending or accepted reservation on the same port."""

    code = 'overlap'
    http_status = 409

    def __init__(self, message: str, conflicting_reservation_id: int):
        super().__init__(message)
        self.conflicting_reservation_id = conflicting_reservation_id

    def details(self) -> dict:
        return {'conflicting_reservation_id': self.conflicting_reservation_id}


class NotFoundError(BookingError):
    """Unknown reservation, station or user."""

    code = 'not_found'
    http_status = 404


class ForbiddenError(BookingError):
    """Actor is not allowed to perform the requested action."""

    code = 'forbidden'
    http_status = 403


class IllegalTransitionError(BookingError):
    """Target status is unreachable from the current status."""

    code = 'illegal_transition'
    http_status = 409

    def __init__(self, message: str, current_status: str = None, target_status: str = None):
        super().__init__(message)
        self.current_status = current_status
        self.target_status = target_status

    def details(self) -> dict:
        return {'current_status': self.current_status, 'target_status': self.target_status}
