"""
Utils Package
"""
from quizgrader.utils.helpers import (
    now_utc,
    as_utc,
    isoformat,
    get_current_user_id,
    require_user
)

__all__ = [
    'now_utc',
    'as_utc',
    'isoformat',
    'get_current_user_id',
    'require_user'
]
