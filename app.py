"""
ChargeSlot - EV Charging Port Booking Service
Flask application factory and initialization
"""

import os
import click
import logging
from flask import Flask, g
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import login_manager, csrf

# Import database functions
from database import close_db, init_db

from models.errors import BookingError
from utils.api_response import api_error, api_booking_error
from utils.messages import get_message


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    # Start the expiry sweep
    register_scheduler(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions."""
    # Initialize Flask-Login
    login_manager.init_app(app)
    # Initialize CSRF Protection
    csrf.init_app(app)


def register_blueprints(app):
    """Register Flask blueprints."""
    # Import blueprints
    from blueprints.auth.routes import auth_bp
    from blueprints.admin.routes import admin_bp
    from blueprints.api import api_bp

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
    app.register_blueprint(api_bp, url_prefix='/api')

    @app.route('/')
    def index():
        """Service banner."""
        return {
            'app': app.config.get('APP_NAME', 'ChargeSlot'),
            'version': app.config.get('APP_VERSION', '1.0.0'),
        }


def register_error_handlers(app):
    """Register JSON error handlers."""

    @app.errorhandler(BookingError)
    def booking_error(error):
        """Booking errors not already handled by a route."""
        return api_booking_error(error)

    @app.errorhandler(400)
    def bad_request_error(error):
        """Handle 400 errors (including CSRF failures)."""
        return api_error(getattr(error, 'description', None) or get_message('invalid_data'),
                         status=400, code='bad_request')

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return api_error('Resource not found', status=404, code='not_found')

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 errors."""
        return api_error('Method not allowed', status=405, code='method_not_allowed')

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        db = g.get('db')
        if db:
            db.rollback()
        app.logger.error('Unhandled error: %s', error, exc_info=True)
        return api_error(get_message('internal_error'), status=500, code='internal_error')

    @app.errorhandler(403)
    def forbidden_error(error):
        """Handle 403 errors."""
        return api_error(get_message('permission_denied'), status=403, code='forbidden')


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('create-user')
    @click.argument('username')
    @click.argument('email')
    @click.option('--role', type=click.Choice(['user', 'owner', 'admin']), default='user',
                  show_default=True)
    @click.password_option()
    def create_user_command(username, email, role, password):
        """Create a new user."""
        from models.user import create_user

        with app.app_context():
            try:
                user_id = create_user(
                    username=username,
                    email=email,
                    password=password,
                    role=role
                )
                click.echo(f'User created successfully! ID: {user_id}')
            except Exception as e:
                click.echo(f'Error creating user: {str(e)}', err=True)

    @app.cli.command('sweep-expired')
    def sweep_expired_command():
        """Expire pending bookings whose start time has passed."""
        from models.booking_lifecycle import sweep_expired

        with app.app_context():
            count = sweep_expired()
        click.echo(get_message('sweep_done', count=count))


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def register_scheduler(app):
    """
    Run the expiry sweep in the background every
    EXPIRY_SWEEP_INTERVAL_SECONDS (0 disables it; never started in tests).
    """
    from models.booking_lifecycle import sweep_expired
    from utils.scheduler import IntervalScheduler

    interval = app.config.get('EXPIRY_SWEEP_INTERVAL_SECONDS', 0)
    if app.testing or not interval or interval <= 0:
        return None

    scheduler = IntervalScheduler(interval, name='expiry-sweep')

    def expiry_job():
        with app.app_context():
            return sweep_expired()

    scheduler.add_job(expiry_job, name='sweep_expired')
    app.extensions['expiry_scheduler'] = scheduler
    scheduler.start()
    return scheduler


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/chargeslot.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        logging.getLogger().addHandler(file_handler)
        logging.getLogger().setLevel(logging.INFO)

        app.logger.setLevel(logging.INFO)
        app.logger.info('ChargeSlot startup')
    else:
        # Development logging
        logging.basicConfig(level=logging.DEBUG)
        app.logger.setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', debug=True)
