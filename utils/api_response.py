"""
Standardized API response helpers.

Provides consistent JSON response format across all API endpoints:

    Success:  {"success": true, "data": {...}, "message": "..."}
    Error:    {"success": false, "error": "...", "code": "..."}

Usage:
    from utils.api_response import api_success, api_error, api_booking_error

    return api_success(data={'id': 1}, message='Created', status=201)
    return api_error('Station not found', status=404, code='not_found')
"""

from flask import jsonify
from typing import Any


def api_success(
    data: dict | list | None = None,
    message: str | None = None,
    status: int = 200,
    **extra_fields: Any
) -> tuple:
    """
    Build a standardized success JSON response.

    Args:
        data: Optional payload to include as 'data' key.
        message: Optional success message.
        status: HTTP status code (default 200).
        **extra_fields: Additional top-level fields (e.g. count, poll_seconds).

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': True}

    if data is not None:
        response['data'] = data

    if message:
        response['message'] = message

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def api_error(error: str, status: int = 400, code: str | None = None, **extra_fields: Any) -> tuple:
    """
    Build a standardized error JSON response.

    Args:
        error: Human-readable error message.
        status: HTTP status code (default 400).
        code: Machine-readable error kind so clients can tell failures apart.
        **extra_fields: Additional top-level fields (e.g. conflicting_reservation_id).

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': False, 'error': error}

    if code:
        response['code'] = code

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def api_booking_error(exc) -> tuple:
    """
    Translate a BookingError into an error response.

    Args:
        exc: models.errors.BookingError instance

    Returns:
        Tuple of (Response, status_code)
    """
    return api_error(str(exc), status=exc.http_status, code=exc.code, **exc.details())


def api_form_error(form, message: str = 'Invalid request data') -> tuple:
    """Build a 400 response from Flask-WTF form validation errors."""
    return api_error(message, status=400, code='invalid_data', errors=form.errors)
