from datetime import datetime

from sqlmodel import Field, SQLModel
from academy.models.base import IDModel, TimestampModel, timestamp_type


class RefreshToken(IDModel, TimestampModel, SQLModel, table=True):
    """One outstanding refresh credential, stored only as a SHA-256 hash."""

    __tablename__ = 'refresh_tokens'
    # a concurrent rotation may already have deleted the row; that is not an error
    __mapper_args__ = {'confirm_deleted_rows': False}

    user_id: str = Field(foreign_key='users.id', ondelete='CASCADE', index=True)
    token_hash: str = Field(max_length=64, index=True, unique=True)
    expires_at: datetime = Field(sa_type=timestamp_type(), index=True)
