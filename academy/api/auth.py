from typing import Annotated, Optional

from fastapi import APIRouter, Cookie, Depends, Response, status
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from academy.api.deps import CurrentIdentity, get_current_identity, require_admin, require_owner_or_admin
from academy.api.error_handling import error_response
from academy.core.config import settings
from academy.core.errors import NotFound
from academy.db.session import get_session
from academy.models.enums import UserRole
from academy.schemas.auth import (
    IdentityOut,
    IdentityResponse,
    LoginResponse,
    MessageResponse,
    RefreshResponse,
    UserResponse,
)
from academy.schemas.user import LoginRequest, ProfileUpdate, SignupRequest
from academy.services import auth_service
from academy.services.user_service import create_user, get_user, to_user_out, update_profile

router = APIRouter(prefix='/auth', tags=['auth'])

# the refresh token only ever travels in this cookie; the access token only in JSON bodies
RefreshCookie = Annotated[Optional[str], Cookie(alias=settings.REFRESH_COOKIE_NAME)]


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.refresh_cookie_max_age,
        path='/',
        httponly=True,
        secure=settings.cookie_secure,
        samesite='lax',
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        path='/',
        httponly=True,
        secure=settings.cookie_secure,
        samesite='lax',
    )


@router.post('/signup', response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, session: Session = Depends(get_session)) -> UserResponse:
    user = create_user(session, payload, UserRole.CLIENT)
    return UserResponse(message='User registered successfully', data=to_user_out(user))


@router.post('/login', response_model=LoginResponse)
def login(payload: LoginRequest, response: Response, session: Session = Depends(get_session)) -> LoginResponse:
    result = auth_service.login(session, payload.email, payload.password)
    _set_refresh_cookie(response, result.tokens.refresh_token)
    return LoginResponse(access_token=result.tokens.access_token, data=to_user_out(result.user))


@router.post('/logout', response_model=MessageResponse)
def logout(
    response: Response,
    refresh_token: RefreshCookie = None,
    session: Session = Depends(get_session),
) -> MessageResponse:
    try:
        auth_service.logout(session, refresh_token)
    except SQLAlchemyError as exc:
        logger.opt(exception=exc).error('Logout could not revoke refresh tokens')
        failed = error_response(500, 'Internal server error', 'INTERNAL_ERROR')
        _clear_refresh_cookie(failed)
        return failed
    _clear_refresh_cookie(response)
    return MessageResponse(message='Logout successful')


@router.post('/refresh', response_model=RefreshResponse)
def refresh(
    response: Response,
    refresh_token: RefreshCookie = None,
    session: Session = Depends(get_session),
) -> RefreshResponse:
    tokens = auth_service.refresh(session, refresh_token)
    _set_refresh_cookie(response, tokens.refresh_token)
    return RefreshResponse(access_token=tokens.access_token)


@router.get('/me', response_model=IdentityResponse)
def me(identity: CurrentIdentity = Depends(get_current_identity)) -> IdentityResponse:
    return IdentityResponse(data=IdentityOut(**identity.model_dump()))


@router.post('/admin', response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_admin(
    payload: SignupRequest,
    session: Session = Depends(get_session),
    _: CurrentIdentity = Depends(require_admin),
) -> UserResponse:
    admin = create_user(session, payload, UserRole.ADMIN)
    return UserResponse(message='Admin user created successfully', data=to_user_out(admin))


@router.get('/profile/{user_id}', response_model=UserResponse)
def get_profile(
    user_id: str,
    session: Session = Depends(get_session),
    _: CurrentIdentity = Depends(require_owner_or_admin),
) -> UserResponse:
    user = get_user(session, user_id)
    if not user:
        raise NotFound('User not found')
    return UserResponse(data=to_user_out(user))


@router.put('/profile/{user_id}', response_model=UserResponse)
def put_profile(
    user_id: str,
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    _: CurrentIdentity = Depends(require_owner_or_admin),
) -> UserResponse:
    user = get_user(session, user_id)
    if not user:
        raise NotFound('User not found')
    record = update_profile(session, user, payload)
    return UserResponse(message='Profile updated successfully', data=to_user_out(record))
