"""Per-request authentication and authorization dependencies.

``get_current_identity`` trusts the access token's signature and expiry and
nothing else; it never queries the database. A revoked session is locked out
once its access token runs out and its refresh token is no longer in the
ledger.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from academy.core.errors import Forbidden, MissingToken
from academy.models.enums import UserRole
from academy.services.token_service import verify_access

security = HTTPBearer(auto_error=False)


class CurrentIdentity(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentIdentity:
    if credentials is None or not credentials.credentials:
        raise MissingToken()
    claims = verify_access(credentials.credentials)
    identity = CurrentIdentity(**claims.model_dump())
    request.state.identity = identity
    return identity


def require_admin(identity: CurrentIdentity = Depends(get_current_identity)) -> CurrentIdentity:
    if not identity.is_admin:
        raise Forbidden('Admin access required')
    return identity


def require_owner_or_admin(
    user_id: str,
    identity: CurrentIdentity = Depends(get_current_identity),
) -> CurrentIdentity:
    if not identity.is_admin and identity.id != user_id:
        raise Forbidden()
    return identity
