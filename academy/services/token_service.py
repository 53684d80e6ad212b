"""Signing and verification of access and refresh tokens.

Access tokens are self-contained: everything the request authenticator needs
is in the claims, so verifying one never touches the database. Refresh tokens
carry only the user id and a random nonce; whether one is still usable is
decided by the refresh token ledger, not by the signature alone.

The two token classes are signed with separate secrets and tagged with a
``type`` claim, so neither can be passed off as the other.
"""
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from academy.core.config import settings
from academy.core.errors import InvalidOrExpired, InvalidToken, TokenExpired
from academy.models.enums import UserRole
from academy.models.user import User

ACCESS_TOKEN_TYPE = 'access'
REFRESH_TOKEN_TYPE = 'refresh'
NONCE_BYTES = 16


class AccessClaims(BaseModel):
    model_config = ConfigDict(extra='ignore', frozen=True)

    id: str
    first_name: str
    last_name: str
    email: str
    role: UserRole


class RefreshClaims(BaseModel):
    model_config = ConfigDict(extra='ignore', frozen=True)

    id: str
    nonce: str


def access_claims_for(user: User) -> AccessClaims:
    return AccessClaims(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        role=user.role,
    )


def new_refresh_claims(user_id: str) -> RefreshClaims:
    return RefreshClaims(id=user_id, nonce=secrets.token_hex(NONCE_BYTES))


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _encode(claims: BaseModel, token_type: str, secret: str, lifetime: timedelta, issued_at: Optional[datetime]) -> str:
    issued = issued_at or _now()
    payload: dict[str, Any] = claims.model_dump(mode='json')
    payload.update({'type': token_type, 'iat': issued, 'exp': issued + lifetime})
    return jwt.encode(payload, secret, algorithm=settings.ALGORITHM)


def access_token_lifetime() -> timedelta:
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def refresh_token_lifetime() -> timedelta:
    return timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)


def refresh_expires_at(now: Optional[datetime] = None) -> datetime:
    return (now or _now()) + refresh_token_lifetime()


def sign_access(claims: AccessClaims, issued_at: Optional[datetime] = None) -> str:
    return _encode(claims, ACCESS_TOKEN_TYPE, settings.JWT_SECRET, access_token_lifetime(), issued_at)


def sign_refresh(claims: RefreshClaims, issued_at: Optional[datetime] = None) -> str:
    return _encode(claims, REFRESH_TOKEN_TYPE, settings.JWT_REFRESH_SECRET, refresh_token_lifetime(), issued_at)


def verify_access(token: str) -> AccessClaims:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except JWTError as exc:
        raise InvalidToken() from exc
    if payload.get('type') != ACCESS_TOKEN_TYPE:
        raise InvalidToken()
    try:
        return AccessClaims.model_validate(payload)
    except PydanticValidationError as exc:
        raise InvalidToken() from exc


def verify_refresh(token: str) -> RefreshClaims:
    try:
        payload = jwt.decode(token, settings.JWT_REFRESH_SECRET, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise InvalidOrExpired() from exc
    if payload.get('type') != REFRESH_TOKEN_TYPE:
        raise InvalidOrExpired()
    try:
        return RefreshClaims.model_validate(payload)
    except PydanticValidationError as exc:
        raise InvalidOrExpired() from exc


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()
