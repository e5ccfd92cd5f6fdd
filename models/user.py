"""
User model and data access functions.
Handles user authentication lookups, account creation, and Flask-Login integration.
"""

from dataclasses import dataclass

from werkzeug.security import generate_password_hash, check_password_hash

from database import get_db

ROLES = ('user', 'owner', 'admin')


@dataclass(frozen=True)
class Actor:
    """
    The acting principal for a booking operation.

    Built from the authenticated session by the API layer and passed
    explicitly into every lifecycle call.
    """

    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'


class User:
    """
    User class for Flask-Login integration.
    Wraps database row dictionary with required Flask-Login properties.
    """

    def __init__(self, user_dict):
        """
        Initialize User from database row.

        Args:
            user_dict: Dictionary with user data from database
        """
        self.id = user_dict['id']
        self.username = user_dict['username']
        self.email = user_dict['email']
        self.full_name = user_dict['full_name']
        self.role = user_dict['role']
        self.active = user_dict['active']
        self.created_at = user_dict['created_at']
        self.last_login = user_dict.get('last_login')

    @property
    def is_authenticated(self):
        """Required by Flask-Login."""
        return True

    @property
    def is_active(self):
        """Required by Flask-Login."""
        return self.active == 1

    @property
    def is_anonymous(self):
        """Required by Flask-Login."""
        return False

    def get_id(self):
        """Required by Flask-Login. Returns user ID as unicode string."""
        return str(self.id)

    def as_actor(self) -> Actor:
        """Principal passed to the booking core."""
        return Actor(user_id=self.id, role=self.role)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
        }


def get_user_by_id(user_id: int) -> dict:
    """
    Get user by ID.

    Args:
        user_id: User ID

    Returns:
        User dict or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM users WHERE id = ?', (user_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def get_user_by_username(username: str) -> dict:
    """
    Get user by username.

    Args:
        username: Username to search for

    Returns:
        User dict or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM users WHERE username = ?', (username,))
    row = cursor.fetchone()
    return dict(row) if row else None


def get_user_by_email(email: str) -> dict:
    """Get user by email, or None."""
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM users WHERE email = ?', (email.lower(),))
    row = cursor.fetchone()
    return dict(row) if row else None


def create_user(username: str, email: str, password: str, full_name: str = None, role: str = 'user') -> int:
    """
    Create new user with hashed password.

    Args:
        username: Unique username
        email: Unique email (stored lowercase)
        password: Plain text password (will be hashed)
        full_name: User's full name
        role: 'user', 'owner' or 'admin'

    Returns:
        New user ID

    Raises:
        ValueError: If the role is unknown
        sqlite3.IntegrityError: If username or email already exists
    """
    if role not in ROLES:
        raise ValueError(f'Unknown role: {role}')

    db = get_db()
    password_hash = generate_password_hash(password)

    cursor = db.cursor()
    cursor.execute('''
        INSERT INTO users (username, email, password_hash, full_name, role)
        VALUES (?, ?, ?, ?, ?)
    ''', (username, email.lower(), password_hash, full_name, role))

    db.commit()
    return cursor.lastrowid


def set_user_role(user_id: int, role: str, cursor=None) -> bool:
    """
    Change a user's role.

    Args:
        user_id: User ID
        role: New role
        cursor: Active transaction cursor (caller commits)

    Returns:
        True if a row was updated
    """
    if role not in ROLES:
        raise ValueError(f'Unknown role: {role}')

    own_cursor = cursor is None
    cur = cursor or get_db().cursor()
    cur.execute('''
        UPDATE users SET role = ?, updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
    ''', (role, user_id))
    if own_cursor:
        get_db().commit()
    return cur.rowcount > 0


def update_last_login(user_id: int) -> None:
    """
    Update last login timestamp.

    Args:
        user_id: User ID
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        UPDATE users SET last_login = CURRENT_TIMESTAMP
        WHERE id = ?
    ''', (user_id,))
    db.commit()


def check_password(user_dict: dict, password: str) -> bool:
    """
    Verify password against stored hash.

    Args:
        user_dict: User dictionary with password_hash
        password: Plain text password to check

    Returns:
        True if password matches
    """
    return check_password_hash(user_dict['password_hash'], password)
