"""
Database seed data.
Initial data population for fresh database installations.
"""

from werkzeug.security import generate_password_hash


def seed_database(db):
    """Insert initial seed data."""

    # Default administrator (change the password after first login)
    password_hash = generate_password_hash('admin123')
    db.execute('''
        INSERT INTO users (username, email, password_hash, full_name, role, active)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', ('admin', 'admin@chargeslot.local', password_hash, 'Administrator', 'admin', 1))
