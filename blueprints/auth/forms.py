"""
Authentication forms using Flask-WTF.
Accept form-encoded or JSON bodies; CSRF is enforced by CSRFProtect.
"""

from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, BooleanField
from wtforms.validators import DataRequired, Length, Optional, ValidationError

from utils.validators import validate_email as is_valid_email, validate_password as check_password_strength


class LoginForm(FlaskForm):
    """Login form with username and password."""

    username = StringField('Username', validators=[
        DataRequired(message='Username is required')
    ])

    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required')
    ])

    remember_me = BooleanField('Remember me')


class RegisterForm(FlaskForm):
    """Self-service account creation. New accounts get the 'user' role."""

    username = StringField('Username', validators=[
        DataRequired(message='Username is required'),
        Length(min=3, max=50)
    ])

    email = StringField('Email', validators=[
        DataRequired(message='Email is required'),
        Length(max=200)
    ])

    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required')
    ])

    full_name = StringField('Full name', validators=[
        Optional(),
        Length(max=200)
    ])

    def validate_email(self, field):
        if not is_valid_email(field.data):
            raise ValidationError('Invalid email format')

    def validate_password(self, field):
        valid, message = check_password_strength(field.data)
        if not valid:
            raise ValidationError(message)
