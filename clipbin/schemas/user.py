from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from clipbin.schemas.common import CamelModel, UtcDateTime


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class LoginRequest(BaseModel):
    username: str
    password: str


class UserRead(CamelModel):
    # never carries password_hash or salt
    id: int
    username: str
    email: str
    status: int
    last_login_at: Optional[UtcDateTime] = None
    login_count: int = 0
    created_at: Optional[UtcDateTime] = None


class LoginResponse(CamelModel):
    user: UserRead
    access_token: str
    refresh_token: str
    expires_in: int


class RefreshResponse(CamelModel):
    access_token: str
    expires_in: int
    token_type: str = "Bearer"
