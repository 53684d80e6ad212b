from typing import Optional

from loguru import logger
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from academy.core.errors import DuplicateIdentity, InvalidCredentials, ValidationError
from academy.models.enums import UserRole
from academy.models.user import User
from academy.schemas.user import ProfileUpdate, SignupRequest, UserOut

pwd_context = CryptContext(schemes=['bcrypt'], deprecated='auto')

# verified against when the email is unknown, so both failure paths cost one bcrypt round
_DUMMY_HASH = pwd_context.hash('academy-dummy-password')

_PROFILE_FIELDS = ('first_name', 'last_name', 'age', 'is_employed', 'whatsapp_number')


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(password, hashed_password)
    except (ValueError, TypeError):
        return False


def to_user_out(user: User) -> UserOut:
    return UserOut.model_validate(user, from_attributes=True)


def get_user(session: Session, user_id: str) -> Optional[User]:
    return session.get(User, user_id)


def find_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.exec(select(User).where(User.email == normalize_email(email))).first()


def create_user(session: Session, payload: SignupRequest, role: UserRole = UserRole.CLIENT) -> User:
    email = normalize_email(payload.email)
    if find_user_by_email(session, email):
        raise DuplicateIdentity()
    user = User(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=email,
        hashed_password=hash_password(payload.password),
        role=role,
        age=payload.age,
        is_employed=bool(payload.is_employed),
        whatsapp_number=payload.whatsapp_number,
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError as exc:
        # lost a race with a concurrent signup for the same email
        session.rollback()
        raise DuplicateIdentity() from exc
    session.refresh(user)
    logger.info('Created {} account {}', role.value, user.id)
    return user


def authenticate(session: Session, email: str, password: str) -> User:
    user = find_user_by_email(session, email)
    if not user:
        verify_password(password, _DUMMY_HASH)
        logger.warning('Login failed: unknown email')
        raise InvalidCredentials()
    if not verify_password(password, user.hashed_password) or not user.is_active:
        logger.warning('Login failed for user {}', user.id)
        raise InvalidCredentials()
    return user


def update_profile(session: Session, user: User, payload: ProfileUpdate) -> User:
    data = payload.model_dump(exclude_unset=True)
    if not any(field in data for field in _PROFILE_FIELDS):
        raise ValidationError('No valid fields to update')
    for field in _PROFILE_FIELDS:
        if field in data:
            setattr(user, field, data[field])
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def set_role(session: Session, user: User, role: UserRole) -> User:
    user.role = role
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def delete_user(session: Session, user: User) -> None:
    session.delete(user)
    session.commit()
