"""
Admin routes for station approval.
"""

import logging

from flask import Blueprint
from flask_login import login_required, current_user

from models.errors import BookingError
from models.station import approve_station, reject_station, get_pending_stations, station_to_dict
from utils.api_response import api_success, api_booking_error
from utils.decorators import permission_required
from utils.messages import get_message

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/stations/pending', methods=['GET'])
@login_required
@permission_required('stations.approve')
def pending_stations():
    """Stations awaiting approval, oldest first."""
    stations = get_pending_stations()
    data = []
    for station in stations:
        item = station_to_dict(station)
        item['owner_username'] = station['owner_username']
        item['owner_name'] = station['owner_name']
        data.append(item)
    return api_success(data=data, count=len(data))


@admin_bp.route('/stations/<int:station_id>/approve', methods=['PATCH'])
@login_required
@permission_required('stations.approve')
def approve(station_id):
    """Approve a pending station; its owner is promoted to the owner role."""
    try:
        station = approve_station(station_id)
    except BookingError as e:
        return api_booking_error(e)

    logger.info('Station %s approved by admin %s', station_id, current_user.id)
    return api_success(data=station_to_dict(station), message=get_message('station_approved'))


@admin_bp.route('/stations/<int:station_id>/reject', methods=['PATCH'])
@login_required
@permission_required('stations.approve')
def reject(station_id):
    """Reject a pending station."""
    try:
        station = reject_station(station_id)
    except BookingError as e:
        return api_booking_error(e)

    logger.info('Station %s rejected by admin %s', station_id, current_user.id)
    return api_success(data=station_to_dict(station), message=get_message('station_rejected'))
