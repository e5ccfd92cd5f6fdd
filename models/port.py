"""
Port registry.

Ports are not stored: a station with ``total_ports = n`` has ports 1..n.
Their state (available / pending / occupied) is derived from reservations
in models/availability.py.
"""

from models.errors import InvalidPortError
from utils.messages import get_message


def get_port_numbers(station: dict) -> list:
    """
    Ordered port numbers of a station.

    Args:
        station: Station dict with 'total_ports'

    Returns:
        list: [1, 2, ..., total_ports]
    """
    return list(range(1, station['total_ports'] + 1))


def is_valid_port(station: dict, port_number) -> bool:
    """True if port_number is an integer in 1..total_ports."""
    if isinstance(port_number, bool) or not isinstance(port_number, int):
        return False
    return 1 <= port_number <= station['total_ports']


def validate_port(station: dict, port_number) -> int:
    """
    Check a port number against the station's registry.

    Returns:
        int: The validated port number

    Raises:
        InvalidPortError: If the port does not exist at the station
    """
    if not is_valid_port(station, port_number):
        raise InvalidPortError(
            get_message('invalid_port', port=port_number, total_ports=station['total_ports']),
            port_number=port_number,
            total_ports=station['total_ports']
        )
    return port_number
