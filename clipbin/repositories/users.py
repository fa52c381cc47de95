"""Credential store: user records and password verification."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from clipbin.core.errors import DuplicateEmail, DuplicateUsername, InvalidCredentials
from clipbin.core.timezone_utils import to_db_time
from clipbin.models.user import User
from clipbin.services import passwords

from .base import BaseRepository, store_errors

logger = logging.getLogger("clipbin.auth.users")


class UserRepository(BaseRepository[User]):
    model = User

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.get_by_id(user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        with store_errors(self.db, "find user by username"):
            return self.db.query(User).filter(User.username == username).first()

    def username_exists(self, username: str) -> bool:
        return self.find_by_username(username) is not None

    def create_user(self, username: str, email: str, raw_password: str) -> User:
        """Persist a new user with a fresh salt and an adaptive hash.

        The store does not pre-check uniqueness; a violated unique key is
        reported as DuplicateUsername, or DuplicateEmail when the username
        is still free.
        """
        salt = passwords.generate_salt()
        user = User(
            username=username,
            email=email,
            password_hash=passwords.get_password_hash(raw_password, salt),
            salt=salt,
        )
        with store_errors(self.db, "create user"):
            try:
                self.db.add(user)
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                if self.username_exists(username):
                    raise DuplicateUsername()
                raise DuplicateEmail()
            self.db.refresh(user)
        logger.info("registered user id=%s username=%s", user.id, user.username)
        return user

    def verify_password(self, username: str, raw_password: str) -> User:
        user = self.find_by_username(username)
        if user is None:
            passwords.dummy_verify()
            raise InvalidCredentials()
        if not passwords.verify_password(raw_password, user.salt, user.password_hash):
            raise InvalidCredentials()
        return user

    def record_login(self, user_id: int, source_address: Optional[str], now: datetime) -> None:
        """Bump the login counter and remember when and where from."""
        with store_errors(self.db, "record login"):
            self.db.query(User).filter(User.id == user_id).update(
                {
                    User.login_count: User.login_count + 1,
                    User.last_login_at: to_db_time(now),
                    User.last_login_ip: source_address,
                },
                synchronize_session=False,
            )
            self.db.commit()
