from datetime import datetime

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from clipbin.core.config import Settings
from clipbin.core.context import client_ip, get_now, get_settings, get_token_codec, user_agent
from clipbin.db.session import get_db
from clipbin.schemas.common import ApiResponse, success
from clipbin.schemas.user import LoginRequest, LoginResponse, RefreshResponse, UserCreate, UserRead
from clipbin.services.auth import AuthService
from clipbin.services.auth_gate import AuthContext, bearer_token, require_auth
from clipbin.services.tokens import TokenCodec

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def get_auth_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    codec: TokenCodec = Depends(get_token_codec),
) -> AuthService:
    return AuthService(db, settings, codec)


@router.post("/register", status_code=201, response_model=ApiResponse[UserRead])
def register(user_in: UserCreate, auth: AuthService = Depends(get_auth_service)):
    user = auth.register(user_in.username, user_in.email, user_in.password)
    return success(UserRead.model_validate(user), "User registered")


@router.post("/login", response_model=ApiResponse[LoginResponse])
def login(
    form_data: LoginRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
    now: datetime = Depends(get_now),
):
    result = auth.login(
        form_data.username,
        form_data.password,
        now,
        source_address=client_ip(request),
        device_info=user_agent(request),
    )
    body = LoginResponse(
        user=UserRead.model_validate(result.user),
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        expires_in=result.expires_in,
    )
    return success(body, "Login successful")


@router.post("/refresh", response_model=ApiResponse[RefreshResponse])
def refresh_token(
    token: str = Depends(bearer_token),
    auth: AuthService = Depends(get_auth_service),
    now: datetime = Depends(get_now),
):
    # the bearer here is the refresh token; the gate does not apply
    result = auth.refresh(token, now)
    body = RefreshResponse(access_token=result.access_token, expires_in=result.expires_in, token_type=result.token_type)
    return success(body, "Token refreshed")


@router.post("/logout", response_model=ApiResponse[None])
def logout(token: str = Depends(bearer_token), auth: AuthService = Depends(get_auth_service)):
    auth.logout(token)
    return success(None, "Logged out")


@router.get("/me", response_model=ApiResponse[UserRead])
def read_users_me(ctx: AuthContext = Depends(require_auth), auth: AuthService = Depends(get_auth_service)):
    user = auth.current_user(ctx.user_id)
    return success(UserRead.model_validate(user), "Current user")
