"""
Database schema definitions.
Table creation, indexes, and structure management.

Timestamps on stations and reservations are stored as ISO-8601 UTC text
(``YYYY-MM-DDTHH:MM:SS``) so that range comparisons can run directly in SQL.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'reservation_status_history',
        'reservations',
        'stations',
        'users'
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Users
    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            role TEXT NOT NULL DEFAULT 'user'
                CHECK (role IN ('user', 'owner', 'admin')),
            active INTEGER DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            last_login TEXT
        )
    ''')

    # 2. Station catalog
    db.execute('''
        CREATE TABLE stations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            address TEXT NOT NULL,
            latitude REAL NOT NULL,
            longitude REAL NOT NULL,
            total_ports INTEGER NOT NULL CHECK (total_ports >= 1),
            owner_id INTEGER NOT NULL REFERENCES users(id),
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'accepted', 'rejected')),
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(latitude, longitude)
        )
    ''')

    # 3. Reservations (one row per port booking)
    db.execute('''
        CREATE TABLE reservations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            station_id INTEGER NOT NULL REFERENCES stations(id),
            port_number INTEGER NOT NULL CHECK (port_number >= 1),
            user_id INTEGER NOT NULL REFERENCES users(id),
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'accepted', 'rejected', 'cancelled', 'expired')),
            owner_message TEXT,
            decided_by INTEGER REFERENCES users(id),
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            CHECK (end_time > start_time)
        )
    ''')

    # 4. Status change history
    db.execute('''
        CREATE TABLE reservation_status_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reservation_id INTEGER NOT NULL REFERENCES reservations(id),
            from_status TEXT,
            to_status TEXT NOT NULL,
            changed_by INTEGER REFERENCES users(id),
            notes TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')


def create_indexes(db):
    """Create indexes for query performance."""
    indexes = [
        'CREATE INDEX idx_stations_owner ON stations(owner_id)',
        'CREATE INDEX idx_stations_status ON stations(status)',
        'CREATE INDEX idx_reservations_port ON reservations(station_id, port_number, status)',
        'CREATE INDEX idx_reservations_user ON reservations(user_id, status)',
        'CREATE INDEX idx_reservations_status_start ON reservations(status, start_time)',
        'CREATE INDEX idx_status_history_reservation ON reservation_status_history(reservation_id)',
    ]

    for statement in indexes:
        db.execute(statement)
