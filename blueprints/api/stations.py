"""
Station API routes.
Submission, listing, availability snapshots, and incoming booking requests.
"""

import logging
import sqlite3

from flask import request
from flask_login import login_required, current_user

from blueprints.api.forms import StationForm
from models import booking_lifecycle
from models.availability import check_available, snapshot
from models.errors import BookingError
from models.reservation_store import RESERVATION_STATUSES, reservation_to_dict
from models.station import create_station, get_station_by_id, get_stations, station_to_dict
from utils.api_response import api_success, api_error, api_booking_error, api_form_error
from utils.datetime_helpers import parse_timestamp
from utils.decorators import permission_required
from utils.messages import get_message

logger = logging.getLogger(__name__)


def _can_see(station: dict) -> bool:
    """Accepted stations are public; others only to their owner and admins."""
    if station['status'] == 'accepted':
        return True
    return current_user.role == 'admin' or station['owner_id'] == current_user.id


def register_routes(bp):
    """Register station routes on the blueprint."""

    @bp.route('/stations', methods=['POST'])
    @login_required
    @permission_required('stations.submit')
    def submit_station():
        """
        Submit a station for admin approval.

        Body:
            name, address, latitude, longitude, total_ports

        Returns:
            201 with the pending station
        """
        form = StationForm()
        if not form.validate_on_submit():
            return api_form_error(form, get_message('invalid_data'))

        try:
            station_id = create_station(
                name=form.name.data,
                address=form.address.data,
                latitude=form.latitude.data,
                longitude=form.longitude.data,
                total_ports=form.total_ports.data,
                owner_id=current_user.id
            )
        except sqlite3.IntegrityError:
            return api_error(get_message('station_exists'), status=409, code='conflict')
        except ValueError as e:
            return api_error(str(e), status=400, code='invalid_data')

        return api_success(
            data=station_to_dict(get_station_by_id(station_id)),
            message=get_message('station_submitted'),
            status=201
        )

    @bp.route('/stations', methods=['GET'])
    @login_required
    def list_stations():
        """
        List stations.

        Query params:
            mine: If '1', the current user's stations in any status;
                  otherwise accepted stations only
        """
        if request.args.get('mine') == '1':
            stations = get_stations(owner_id=current_user.id)
        else:
            stations = get_stations(status='accepted')

        return api_success(data=[station_to_dict(s) for s in stations], count=len(stations))

    @bp.route('/stations/<int:station_id>', methods=['GET'])
    @login_required
    def get_station(station_id):
        """Single station."""
        station = get_station_by_id(station_id)
        if not station or not _can_see(station):
            return api_error(get_message('station_not_found'), status=404, code='not_found')
        return api_success(data=station_to_dict(station))

    @bp.route('/stations/<int:station_id>/availability', methods=['GET'])
    @login_required
    def station_availability(station_id):
        """
        Port-by-port availability snapshot.

        Query params:
            port, start_time, end_time: When all three are given, also check
                whether that port is free for the window
        """
        station = get_station_by_id(station_id)
        if not station or not _can_see(station):
            return api_error(get_message('station_not_found'), status=404, code='not_found')

        try:
            data = snapshot(station_id)

            port = request.args.get('port', type=int)
            start_raw = request.args.get('start_time')
            end_raw = request.args.get('end_time')
            if port is not None and start_raw and end_raw:
                try:
                    start = parse_timestamp(start_raw)
                    end = parse_timestamp(end_raw)
                except ValueError:
                    return api_error(get_message('invalid_data'), status=400, code='invalid_data')
                data['check'] = check_available(station_id, port, start, end)
        except BookingError as e:
            return api_booking_error(e)

        return api_success(data=data)

    @bp.route('/stations/<int:station_id>/requests', methods=['GET'])
    @login_required
    @permission_required('stations.view_requests')
    def station_requests(station_id):
        """
        Booking requests on a station (owner or admin).

        Query params:
            status: Reservation status, default 'pending'; 'all' for every status
        """
        status = request.args.get('status', 'pending')
        if status == 'all':
            status = None
        elif status not in RESERVATION_STATUSES:
            return api_error(get_message('invalid_data'), status=400, code='invalid_data')

        try:
            reservations = booking_lifecycle.list_station_requests(
                station_id, current_user.as_actor(), status=status
            )
        except BookingError as e:
            return api_booking_error(e)

        return api_success(
            data=[reservation_to_dict(r) for r in reservations],
            count=len(reservations)
        )
