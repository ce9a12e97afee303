"""
Helper Functions
Utility functions used across the application
"""
from datetime import datetime, timezone
from functools import wraps

from flask import session, jsonify


def now_utc():
    """Get current UTC timestamp"""
    return datetime.now(timezone.utc)


def as_utc(dt):
    """Attach UTC to naive datetimes read back from the database"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def isoformat(dt):
    """Serialize a datetime for JSON output"""
    if not dt:
        return None
    return as_utc(dt).isoformat()


def get_current_user_id():
    """Get the authenticated user id placed in the session by the auth layer"""
    user_id = session.get("user_id")
    if user_id is None:
        return None
    return int(user_id)


# Decorators
def require_user(f):
    """
    Decorator to require an authenticated caller
    Responds with 401 JSON instead of redirecting (API clients)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if get_current_user_id() is None:
            return jsonify({"error": "Unauthorized"}), 401
        return f(*args, **kwargs)
    return decorated_function
