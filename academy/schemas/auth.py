from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from academy.models.enums import UserRole
from academy.schemas.user import UserOut


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class UserResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: UserOut


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = 'Login successful'
    access_token: str = Field(alias='accessToken')
    data: UserOut


class RefreshResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    access_token: str = Field(alias='accessToken')


class IdentityOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    role: UserRole


class IdentityResponse(BaseModel):
    success: bool = True
    data: IdentityOut
