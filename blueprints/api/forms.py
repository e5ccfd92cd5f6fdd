"""
Request payload forms for the JSON API.
Flask-WTF reads JSON bodies into the same fields as form posts.
"""

from datetime import datetime

from flask_wtf import FlaskForm
from wtforms import StringField, IntegerField, FloatField
from wtforms.validators import DataRequired, Length, NumberRange, Optional, ValidationError

from utils.datetime_helpers import parse_timestamp


def present(form, field):
    """Like InputRequired, but accepts falsy values such as 0."""
    if field.data is None and not field.errors:
        raise ValidationError(f'{field.label.text} is required')


class WholeNumberField(IntegerField):
    """
    IntegerField that refuses JSON floats and booleans.

    Plain IntegerField runs int() on the raw value, which turns 1.9 and true
    into 1.
    """

    def process_formdata(self, valuelist):
        if valuelist:
            raw = valuelist[0]
            if isinstance(raw, bool) or not isinstance(raw, (int, str)):
                self.data = None
                raise ValueError(self.gettext('Not a valid integer value.'))
        super().process_formdata(valuelist)


def iso_timestamp(form, field):
    """Field must hold an ISO-8601 timestamp with whole seconds."""
    try:
        parse_timestamp(field.data)
    except (TypeError, ValueError):
        raise ValidationError('Expected an ISO-8601 timestamp')

    # Windows are stored at second precision
    if datetime.fromisoformat(field.data.strip()).microsecond:
        raise ValidationError('Timestamps must not have fractional seconds')


class BookingRequestForm(FlaskForm):
    """Booking request: station, port, and a time window."""

    station_id = WholeNumberField('Station', validators=[present])

    # Range is checked against the station, not here
    port = WholeNumberField('Port', validators=[present])

    start_time = StringField('Start time', validators=[DataRequired(), iso_timestamp])

    end_time = StringField('End time', validators=[DataRequired(), iso_timestamp])

    def window(self) -> tuple:
        """Parsed (start, end) as aware UTC datetimes."""
        return parse_timestamp(self.start_time.data), parse_timestamp(self.end_time.data)


class DecisionForm(FlaskForm):
    """Optional message attached to approve/reject."""

    owner_message = StringField('Message', validators=[Optional(), Length(max=500)])


class StationForm(FlaskForm):
    """Station submission."""

    name = StringField('Name', validators=[DataRequired(), Length(max=200)])

    address = StringField('Address', validators=[DataRequired(), Length(max=500)])

    latitude = FloatField('Latitude', validators=[present, NumberRange(min=-90, max=90)])

    longitude = FloatField('Longitude', validators=[present, NumberRange(min=-180, max=180)])

    total_ports = WholeNumberField('Total ports', validators=[present, NumberRange(min=1)])
