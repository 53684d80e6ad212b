import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator
from academy.models.enums import UserRole

WHATSAPP_PATTERN = re.compile(r'^\+?[1-9]\d{1,14}$')
MAX_EMAIL_LENGTH = 254
MIN_PASSWORD_LENGTH = 8
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def _check_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError('must not be empty')
    if len(value) > 50:
        raise ValueError('must be less than 50 characters')
    return value


def _check_email_length(value):
    if isinstance(value, str) and len(value.strip()) > MAX_EMAIL_LENGTH:
        raise ValueError('Email is too long')
    return value


def _check_whatsapp(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not WHATSAPP_PATTERN.match(value):
        raise ValueError('WhatsApp number format is invalid (use international format, e.g., +212600000000)')
    return value


class SignupRequest(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    password: str
    age: Optional[int] = Field(default=None, ge=1, le=120)
    whatsapp_number: Optional[str] = None
    is_employed: Optional[bool] = None

    @field_validator('email', mode='before')
    @classmethod
    def validate_email_length(cls, value):
        return _check_email_length(value)

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _check_name(value)

    @field_validator('whatsapp_number')
    @classmethod
    def validate_whatsapp(cls, value: Optional[str]) -> Optional[str]:
        return _check_whatsapp(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError('Password must be at least 8 characters')
        if len(value.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise ValueError('Password must be at most 72 bytes')
        if not (re.search(r'[a-z]', value) and re.search(r'[A-Z]', value) and re.search(r'\d', value)):
            raise ValueError('Password must contain: lowercase letters, uppercase letters, and numbers')
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator('email', mode='before')
    @classmethod
    def validate_email_length(cls, value):
        return _check_email_length(value)


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=1, le=120)
    is_employed: Optional[bool] = None
    whatsapp_number: Optional[str] = None

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            raise ValueError('must not be null')
        return _check_name(value)

    @field_validator('is_employed')
    @classmethod
    def validate_is_employed(cls, value: Optional[bool]) -> Optional[bool]:
        if value is None:
            raise ValueError('must not be null')
        return value

    @field_validator('whatsapp_number')
    @classmethod
    def validate_whatsapp(cls, value: Optional[str]) -> Optional[str]:
        return _check_whatsapp(value)


class UserOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    role: UserRole
    age: Optional[int] = None
    is_employed: bool = False
    whatsapp_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime
