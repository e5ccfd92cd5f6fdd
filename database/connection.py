"""
Database connection management.
Handles per-request connections, write transactions, initialization, and teardown.
"""

import sqlite3
from contextlib import contextmanager

from flask import g, current_app


def get_db():
    """
    Get the request-scoped database connection with row factory.

    Returns:
        sqlite3.Connection: Database connection object
    """
    if 'db' not in g:
        db_path = current_app.config.get('DATABASE_PATH', 'instance/chargeslot.db')
        g.db = sqlite3.connect(db_path, timeout=10)
        g.db.row_factory = sqlite3.Row
        # Enable foreign key constraints
        g.db.execute('PRAGMA foreign_keys = ON')
        # WAL lets pollers read while a booking transaction holds the write lock
        g.db.execute('PRAGMA journal_mode = WAL')
    return g.db


def close_db(e=None):
    """
    Close database connection.

    Args:
        e: Exception if any (from Flask teardown context)
    """
    db = g.pop('db', None)
    if db is not None:
        db.close()


@contextmanager
def write_transaction():
    """
    Run a block inside a ``BEGIN IMMEDIATE`` transaction.

    The reserved lock is taken before the first read, so a check-then-insert
    inside the block cannot interleave with another writer. Commits on
    success, rolls back and re-raises on any error.

    Yields:
        sqlite3.Cursor bound to the request connection
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('BEGIN IMMEDIATE')
    try:
        yield cursor
        db.commit()
    except Exception:
        db.rollback()
        raise


def init_db():
    """
    Initialize database: drop existing tables, create new schema, insert seed data.
    WARNING: This will delete all existing data!
    """
    from database.schema import drop_tables, create_tables, create_indexes
    from database.seed import seed_database

    db = get_db()

    drop_tables(db)
    create_tables(db)
    create_indexes(db)
    seed_database(db)

    db.commit()
    current_app.logger.info('Database initialized at %s', current_app.config.get('DATABASE_PATH'))
