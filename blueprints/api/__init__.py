"""
JSON API package.
Split into smaller modules by resource for maintainability.
"""

from flask import Blueprint

# Create the API blueprint
api_bp = Blueprint('api', __name__)

# Import and register routes from submodules
from blueprints.api import bookings
from blueprints.api import history
from blueprints.api import notifications
from blueprints.api import stations
from blueprints.api import system

# Register all route functions on the blueprint
bookings.register_routes(api_bp)
history.register_routes(api_bp)
notifications.register_routes(api_bp)
stations.register_routes(api_bp)
system.register_routes(api_bp)
