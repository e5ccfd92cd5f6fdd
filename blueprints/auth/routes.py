"""
Authentication routes: register, login, logout, current user.
Session-based (Flask-Login); every response is JSON.
"""

import logging
import sqlite3

from flask import Blueprint
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf

from blueprints.auth.forms import LoginForm, RegisterForm
from models.user import (
    User, create_user, get_user_by_id, get_user_by_username, get_user_by_email,
    update_last_login, check_password
)
from utils.api_response import api_success, api_error, api_form_error
from utils.messages import get_message
from utils.permissions import cache_user_permissions, load_user_permissions

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    """Token to send back in the X-CSRFToken header on writes."""
    return api_success(data={'csrf_token': generate_csrf()})


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Create an account with the 'user' role.

    Body:
        username, email, password, full_name (optional)

    Returns:
        201 with the new user
    """
    form = RegisterForm()
    if not form.validate_on_submit():
        return api_form_error(form, get_message('invalid_data'))

    if get_user_by_username(form.username.data):
        return api_error(get_message('username_exists'), status=409, code='conflict')
    if get_user_by_email(form.email.data):
        return api_error(get_message('email_exists'), status=409, code='conflict')

    try:
        user_id = create_user(
            username=form.username.data,
            email=form.email.data,
            password=form.password.data,
            full_name=form.full_name.data or None
        )
    except sqlite3.IntegrityError:
        # Lost a race with a concurrent registration
        return api_error(get_message('username_exists'), status=409, code='conflict')

    logger.info('User %s registered (id %s)', form.username.data, user_id)
    user = User(get_user_by_id(user_id))
    return api_success(data=user.to_dict(), message=get_message('user_registered'), status=201)


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Start a session.

    Body:
        username, password, remember_me (optional)
    """
    form = LoginForm()
    if not form.validate_on_submit():
        return api_form_error(form, get_message('invalid_data'))

    user_dict = get_user_by_username(form.username.data)

    if user_dict is None or not check_password(user_dict, form.password.data):
        logger.info('Failed login for %s', form.username.data)
        return api_error(get_message('invalid_credentials'), status=401, code='unauthorized')

    if not user_dict.get('active'):
        return api_error(get_message('account_disabled'), status=403, code='forbidden')

    user = User(user_dict)
    login_user(user, remember=form.remember_me.data)
    update_last_login(user.id)
    cache_user_permissions(user)

    return api_success(
        data=user.to_dict(),
        message=get_message('login_success', name=user.full_name or user.username)
    )


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """End the session."""
    logout_user()
    return api_success(message=get_message('logout_success'))


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    """Current user with resolved permissions."""
    data = current_user.to_dict()
    data['permissions'] = sorted(load_user_permissions(current_user))
    return api_success(data=data)
