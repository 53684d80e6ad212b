from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlmodel import Session

from academy.core.errors import AppError, NoRefreshToken, RevokedOrExpired, UserNotFound
from academy.models.user import User
from academy.services import refresh_token_service as ledger
from academy.services.token_service import (
    access_claims_for,
    hash_token,
    new_refresh_claims,
    refresh_expires_at,
    sign_access,
    sign_refresh,
    verify_refresh,
)
from academy.services.user_service import authenticate, get_user


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class LoginResult:
    user: User
    tokens: IssuedTokens


def _mint(user: User) -> tuple[IssuedTokens, str]:
    access_token = sign_access(access_claims_for(user))
    refresh_token = sign_refresh(new_refresh_claims(user.id))
    return IssuedTokens(access_token=access_token, refresh_token=refresh_token), hash_token(refresh_token)


def login(session: Session, email: str, password: str) -> LoginResult:
    user = authenticate(session, email, password)
    tokens, token_hash = _mint(user)
    ledger.store(session, user.id, token_hash, refresh_expires_at())
    logger.info('User {} logged in', user.id)
    return LoginResult(user=user, tokens=tokens)


def logout(session: Session, refresh_token: Optional[str]) -> int:
    """Revoke every refresh token of the cookie's owner.

    Returns the number of revoked rows. An unverifiable cookie revokes nothing
    but does not fail the logout.
    """
    if not refresh_token:
        return 0
    try:
        claims = verify_refresh(refresh_token)
    except AppError:
        logger.warning('Invalid refresh token during logout')
        return 0
    revoked = ledger.revoke_all(session, claims.id)
    logger.info('User {} logged out, revoked {} refresh token(s)', claims.id, revoked)
    return revoked


def refresh(session: Session, refresh_token: Optional[str]) -> IssuedTokens:
    if not refresh_token:
        raise NoRefreshToken()
    try:
        claims = verify_refresh(refresh_token)
    except AppError as exc:
        raise RevokedOrExpired() from exc

    old_hash = hash_token(refresh_token)
    if ledger.find(session, claims.id, old_hash) is None:
        logger.warning('Rejected refresh token for user {}: revoked, rotated or expired', claims.id)
        raise RevokedOrExpired()

    user = get_user(session, claims.id)
    if user is None:
        raise UserNotFound()
    if not user.is_active:
        logger.warning('Rejected refresh token for inactive user {}', user.id)
        raise RevokedOrExpired()

    tokens, new_hash = _mint(user)
    ledger.rotate(session, old_hash, user.id, new_hash, refresh_expires_at())
    logger.info('Rotated refresh token for user {}', user.id)
    return tokens
