from loguru import logger
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel

from academy.core.config import settings
from academy.models import refresh_token, user  # noqa: F401
from academy.models.enums import UserRole
from academy.models.user import User
from academy.schemas.user import SignupRequest
from academy.services.user_service import create_user, find_user_by_email


def init_db(engine: Engine, drop_all: bool = False) -> None:
    if drop_all:
        SQLModel.metadata.drop_all(engine)
    if (
        str(engine.url).startswith('sqlite')
        or settings.ENV != 'production'
        or settings.AUTO_CREATE_TABLES
    ):
        SQLModel.metadata.create_all(engine)


def seed_admin(session: Session) -> User | None:
    """Create the bootstrap admin from ADMIN_EMAIL / ADMIN_PASSWORD, once."""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        return None
    existing = find_user_by_email(session, settings.ADMIN_EMAIL)
    if existing:
        return existing
    payload = SignupRequest(
        first_name='Admin',
        last_name='User',
        email=settings.ADMIN_EMAIL,
        password=settings.ADMIN_PASSWORD,
    )
    admin = create_user(session, payload, UserRole.ADMIN)
    logger.info('Seeded admin account {}', admin.email)
    return admin
