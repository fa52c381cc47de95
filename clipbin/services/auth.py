import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from clipbin.core.config import Settings
from clipbin.core.errors import DuplicateUsername, NotFound, TokenInvalid, UserDisabled
from clipbin.core.timezone_utils import add_seconds
from clipbin.models.user import User
from clipbin.repositories.sessions import SessionRepository
from clipbin.repositories.users import UserRepository
from clipbin.services.tokens import TokenCodec
from clipbin.utils.best_effort import best_effort

logger = logging.getLogger("clipbin.auth")


@dataclass
class LoginResult:
    user: User
    access_token: str
    refresh_token: str
    expires_in: int


@dataclass
class RefreshResult:
    access_token: str
    expires_in: int
    token_type: str = "Bearer"


class AuthService:
    """Register, login, refresh and logout, composed from the stores and the codec."""

    def __init__(self, db: Session, settings: Settings, codec: TokenCodec):
        self.db = db
        self.settings = settings
        self.codec = codec
        self.users = UserRepository(db)
        self.sessions = SessionRepository(db)

    def register(self, username: str, email: str, password: str) -> User:
        # Existence pre-check kept from the original flow; create_user still
        # maps a racing insert's unique violation to the same error.
        if self.users.username_exists(username):
            raise DuplicateUsername()
        return self.users.create_user(username, email, password)

    def login(
        self,
        username: str,
        password: str,
        now: datetime,
        source_address: Optional[str] = None,
        device_info: Optional[str] = None,
    ) -> LoginResult:
        user = self.users.verify_password(username, password)
        if not user.is_enabled:
            logger.info("login refused for disabled user id=%s", user.id)
            raise UserDisabled()

        access_ttl = self.settings.JWT_EXPIRES_IN
        refresh_ttl = self.settings.JWT_REFRESH_EXPIRES_IN
        access_token = self.codec.issue(user.id, now, access_ttl)
        refresh_token = self.codec.issue(user.id, now, refresh_ttl)

        self.sessions.create_session(
            user.id,
            access_token,
            refresh_token,
            add_seconds(now, access_ttl),
            add_seconds(now, refresh_ttl),
            ip_address=source_address,
            device_info=device_info,
        )

        # accounting must never fail the login
        best_effort(
            lambda: self.users.record_login(user.id, source_address, now),
            logger=logger,
            description=f"login accounting for user {user.id}",
            cleanup=self.db.rollback,
        )
        logger.info("user id=%s logged in from %s", user.id, source_address)
        return LoginResult(user=user, access_token=access_token, refresh_token=refresh_token, expires_in=access_ttl)

    def refresh(self, refresh_token: str, now: datetime) -> RefreshResult:
        """Mint a new access token for the session holding ``refresh_token``.

        The refresh token itself is not rotated. The new access token replaces
        the old one on the session row, which is what the gate checks.
        """
        ses = self.sessions.find_by_token(refresh_token, now, refresh=True)
        claims = self.codec.verify(refresh_token, now)
        if claims.sub != ses.user_id:
            raise TokenInvalid("refresh token subject does not match session owner")

        access_ttl = self.settings.JWT_EXPIRES_IN
        access_token = self.codec.issue(ses.user_id, now, access_ttl)
        self.sessions.replace_access_token(ses, access_token, add_seconds(now, access_ttl))
        logger.info("access token refreshed for user id=%s session=%s", ses.user_id, ses.id)
        return RefreshResult(access_token=access_token, expires_in=access_ttl)

    def logout(self, access_token: str) -> None:
        deleted = self.sessions.delete_by_token(access_token)
        logger.info("logout removed %d session(s)", deleted)

    def current_user(self, user_id: int) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            logger.warning("authenticated user id=%s no longer exists", user_id)
            raise NotFound("User not found")
        return user
