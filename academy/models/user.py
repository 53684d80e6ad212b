from typing import Optional

from sqlmodel import Field, SQLModel
from academy.models.base import IDModel, TimestampModel
from academy.models.enums import UserRole, enum_column


class User(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'users'

    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: str = Field(max_length=255, index=True, unique=True)
    hashed_password: str = Field(max_length=255)
    role: UserRole = Field(default=UserRole.CLIENT, sa_column=enum_column(UserRole, 'user_role'))
    age: Optional[int] = None
    is_employed: bool = False
    whatsapp_number: Optional[str] = Field(default=None, max_length=20)
    is_active: bool = True
