"""
Booking API routes.
Request, decide, cancel, and inspect charging-port reservations.
"""

import logging

from flask import request
from flask_login import login_required, current_user

from blueprints.api.forms import BookingRequestForm, DecisionForm
from models import booking_lifecycle
from models.errors import BookingError
from models.reservation_store import (
    RESERVATION_STATUSES, get_status_history, history_entry_to_dict,
    list_by_requester, reservation_to_dict
)
from utils.api_response import api_success, api_error, api_booking_error, api_form_error
from utils.decorators import permission_required
from utils.messages import get_message

logger = logging.getLogger(__name__)


def register_routes(bp):
    """Register booking routes on the blueprint."""

    @bp.route('/bookings', methods=['POST'])
    @login_required
    @permission_required('bookings.request')
    def request_booking():
        """
        Request a port for a time window.

        Body:
            station_id, port, start_time, end_time (ISO-8601)

        Returns:
            201 with the pending reservation, or 409 with
            conflicting_reservation_id when the window is taken
        """
        form = BookingRequestForm()
        if not form.validate_on_submit():
            return api_form_error(form, get_message('invalid_data'))

        start, end = form.window()
        try:
            reservation = booking_lifecycle.request_booking(
                form.station_id.data, form.port.data, start, end,
                requester=current_user.as_actor()
            )
        except BookingError as e:
            return api_booking_error(e)

        return api_success(
            data=reservation_to_dict(reservation),
            message=get_message('booking_requested'),
            status=201
        )

    @bp.route('/bookings/mine', methods=['GET'])
    @login_required
    @permission_required('bookings.view_own')
    def my_bookings():
        """
        Bookings requested by the current user.

        Query params:
            status: Filter by status (optional)
        """
        status = request.args.get('status')
        if status and status not in RESERVATION_STATUSES:
            return api_error(get_message('invalid_data'), status=400, code='invalid_data')

        reservations = list_by_requester(current_user.id, status=status)
        return api_success(
            data=[reservation_to_dict(r) for r in reservations],
            count=len(reservations)
        )

    @bp.route('/bookings/<int:reservation_id>', methods=['GET'])
    @login_required
    def get_booking(reservation_id):
        """Single booking, for its requester, the station owner, or an admin."""
        try:
            reservation = booking_lifecycle.get_for_actor(reservation_id, current_user.as_actor())
        except BookingError as e:
            return api_booking_error(e)
        return api_success(data=reservation_to_dict(reservation))

    @bp.route('/bookings/<int:reservation_id>/history', methods=['GET'])
    @login_required
    def booking_history(reservation_id):
        """Status changes of a booking, oldest first."""
        try:
            booking_lifecycle.get_for_actor(reservation_id, current_user.as_actor())
        except BookingError as e:
            return api_booking_error(e)

        entries = get_status_history(reservation_id)
        return api_success(data=[history_entry_to_dict(h) for h in entries])

    @bp.route('/bookings/<int:reservation_id>/approve', methods=['PATCH'])
    @login_required
    @permission_required('bookings.decide')
    def approve_booking(reservation_id):
        """Accept a pending booking. Body: owner_message (optional)."""
        form = DecisionForm()
        if not form.validate_on_submit():
            return api_form_error(form, get_message('invalid_data'))

        try:
            reservation = booking_lifecycle.approve(
                reservation_id, current_user.as_actor(), form.owner_message.data or None
            )
        except BookingError as e:
            logger.info('Approve of reservation %s by user %s refused: %s',
                        reservation_id, current_user.id, e)
            return api_booking_error(e)

        return api_success(data=reservation_to_dict(reservation), message=get_message('booking_approved'))

    @bp.route('/bookings/<int:reservation_id>/reject', methods=['PATCH'])
    @login_required
    @permission_required('bookings.decide')
    def reject_booking(reservation_id):
        """Reject a pending booking. Body: owner_message (optional)."""
        form = DecisionForm()
        if not form.validate_on_submit():
            return api_form_error(form, get_message('invalid_data'))

        try:
            reservation = booking_lifecycle.reject(
                reservation_id, current_user.as_actor(), form.owner_message.data
            )
        except BookingError as e:
            logger.info('Reject of reservation %s by user %s refused: %s',
                        reservation_id, current_user.id, e)
            return api_booking_error(e)

        return api_success(data=reservation_to_dict(reservation), message=get_message('booking_rejected'))

    @bp.route('/bookings/<int:reservation_id>/cancel', methods=['PATCH'])
    @login_required
    @permission_required('bookings.request')
    def cancel_booking(reservation_id):
        """Cancel one of the current user's pending bookings."""
        try:
            reservation = booking_lifecycle.cancel(reservation_id, current_user.as_actor())
        except BookingError as e:
            return api_booking_error(e)

        return api_success(data=reservation_to_dict(reservation), message=get_message('booking_cancelled'))

    @bp.route('/bookings/sweep', methods=['POST'])
    @login_required
    @permission_required('bookings.sweep')
    def sweep_bookings():
        """Run one expiry pass now."""
        count = booking_lifecycle.sweep_expired()
        return api_success(data={'expired': count}, message=get_message('sweep_done', count=count))
