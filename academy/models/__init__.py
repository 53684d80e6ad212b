from academy.models.base import IDModel, TimestampModel
from academy.models.user import User
from academy.models.refresh_token import RefreshToken

__all__ = [
    'IDModel',
    'TimestampModel',
    'User',
    'RefreshToken',
]
