"""Server-side ledger of outstanding refresh tokens.

Rows hold the SHA-256 of a refresh token, never the token itself. A refresh
token is usable only while its hash is present here and unexpired; rotation
and logout work by deleting rows. Every mutating call commits exactly once,
and rolls back everything it did if any statement fails.
"""
from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from academy.core.errors import ForeignKeyViolation
from academy.models.base import ensure_utc, utc_now
from academy.models.refresh_token import RefreshToken


def _is_foreign_key_error(exc: IntegrityError) -> bool:
    return 'foreign key' in str(exc.orig).lower()


def _commit(session: Session) -> None:
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        if _is_foreign_key_error(exc):
            raise ForeignKeyViolation() from exc
        raise
    except Exception:
        session.rollback()
        raise


def store(session: Session, user_id: str, token_hash: str, expires_at: datetime) -> RefreshToken:
    record = RefreshToken(user_id=user_id, token_hash=token_hash, expires_at=ensure_utc(expires_at))
    session.add(record)
    _commit(session)
    session.refresh(record)
    return record


def find(session: Session, user_id: str, token_hash: str, now: Optional[datetime] = None) -> Optional[RefreshToken]:
    current = ensure_utc(now or utc_now())
    statement = select(RefreshToken).where(
        (RefreshToken.user_id == user_id)
        & (RefreshToken.token_hash == token_hash)
        & (RefreshToken.expires_at > current)
    )
    return session.exec(statement).first()


def rotate(
    session: Session,
    old_token_hash: str,
    user_id: str,
    new_token_hash: str,
    new_expires_at: datetime,
) -> RefreshToken:
    old = session.exec(select(RefreshToken).where(RefreshToken.token_hash == old_token_hash)).first()
    if old is not None:
        session.delete(old)
    else:
        logger.warning('Rotating refresh token for user {} whose old row is already gone', user_id)
    record = RefreshToken(user_id=user_id, token_hash=new_token_hash, expires_at=ensure_utc(new_expires_at))
    session.add(record)
    _commit(session)
    session.refresh(record)
    return record


def revoke_all(session: Session, user_id: str) -> int:
    records = session.exec(select(RefreshToken).where(RefreshToken.user_id == user_id)).all()
    for record in records:
        session.delete(record)
    _commit(session)
    return len(records)


def sweep_expired(session: Session, now: Optional[datetime] = None) -> int:
    current = ensure_utc(now or utc_now())
    records = session.exec(select(RefreshToken).where(RefreshToken.expires_at <= current)).all()
    for record in records:
        session.delete(record)
    _commit(session)
    if records:
        logger.info('Swept {} expired refresh token(s)', len(records))
    return len(records)


def count_for_user(session: Session, user_id: str) -> int:
    return len(session.exec(select(RefreshToken.id).where(RefreshToken.user_id == user_id)).all())
