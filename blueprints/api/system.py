"""
System API routes.
"""

from flask import current_app, jsonify


def register_routes(bp):
    """Register system routes on the blueprint."""

    @bp.route('/health')
    def health_check():
        """
        Health check endpoint (no authentication required).

        Returns:
            JSON with status and version
        """
        scheduler = current_app.extensions.get('expiry_scheduler')
        return jsonify({
            'status': 'ok',
            'version': current_app.config.get('APP_VERSION', '1.0.0'),
            'app': current_app.config.get('APP_NAME', 'ChargeSlot'),
            'expiry_sweep': 'running' if scheduler and scheduler.running else 'off'
        })
