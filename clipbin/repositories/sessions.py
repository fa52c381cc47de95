"""Session store: issued token pairs, looked up by token value."""

import logging
from datetime import datetime
from typing import Optional

from clipbin.core.errors import SessionNotFound
from clipbin.core.timezone_utils import to_db_time
from clipbin.models.session import UserSession

from .base import BaseRepository, store_errors

logger = logging.getLogger("clipbin.auth.sessions")


class SessionRepository(BaseRepository[UserSession]):
    model = UserSession

    def create_session(
        self,
        user_id: int,
        access_token: str,
        refresh_token: str,
        access_expires_at: datetime,
        refresh_expires_at: datetime,
        ip_address: Optional[str] = None,
        device_info: Optional[str] = None,
    ) -> UserSession:
        # Tokens carry a random jti, so collisions are not retried; the unique
        # keys on both token columns still reject a duplicate.
        ses = UserSession(
            user_id=user_id,
            token=access_token,
            refresh_token=refresh_token,
            expires_at=to_db_time(access_expires_at),
            refresh_expires_at=to_db_time(refresh_expires_at),
            ip_address=ip_address,
            device_info=device_info[:500] if device_info else None,
        )
        with store_errors(self.db, "create session"):
            self.db.add(ses)
            self.db.commit()
            self.db.refresh(ses)
        return ses

    def find_by_token(self, token: str, now: datetime, refresh: bool = False) -> UserSession:
        """Return the live session holding ``token``.

        Matches the access-token column (still within ``expires_at``) or, with
        ``refresh=True``, the refresh-token column (within
        ``refresh_expires_at``). Expired rows count as missing.
        """
        now_db = to_db_time(now)
        if refresh:
            criteria = (UserSession.refresh_token == token, UserSession.refresh_expires_at > now_db)
        else:
            criteria = (UserSession.token == token, UserSession.expires_at > now_db)
        with store_errors(self.db, "find session by token"):
            ses = self.db.query(UserSession).filter(*criteria).first()
        if ses is None:
            raise SessionNotFound("refresh token not found or expired" if refresh else "session not found or expired")
        return ses

    def replace_access_token(self, ses: UserSession, access_token: str, expires_at: datetime) -> UserSession:
        with store_errors(self.db, "replace access token"):
            ses.token = access_token
            ses.expires_at = to_db_time(expires_at)
            self.db.add(ses)
            self.db.commit()
            self.db.refresh(ses)
        return ses

    def delete_by_token(self, token: str) -> int:
        """Delete the session whose access token is ``token``. Unknown tokens are a no-op."""
        with store_errors(self.db, "delete session"):
            deleted = self.db.query(UserSession).filter(UserSession.token == token).delete(synchronize_session=False)
            self.db.commit()
        return deleted

    def delete_expired(self, now: datetime) -> int:
        """Remove sessions that can no longer be refreshed."""
        with store_errors(self.db, "prune sessions"):
            deleted = (
                self.db.query(UserSession)
                .filter(UserSession.refresh_expires_at <= to_db_time(now))
                .delete(synchronize_session=False)
            )
            self.db.commit()
        if deleted:
            logger.info("pruned %d expired sessions", deleted)
        return deleted
