from sqlalchemy import Column, Integer, String, DateTime, SmallInteger
from sqlalchemy.sql import func
from clipbin.db.session import Base, BigIntId


USER_DISABLED = 0
USER_ENABLED = 1


class User(Base):
    __tablename__ = "users"

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    # username is immutable after registration
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    salt = Column(String(50), nullable=False)
    # 0 = disabled, 1 = enabled
    status = Column(SmallInteger, nullable=False, default=USER_ENABLED, server_default=str(USER_ENABLED), index=True)
    last_login_at = Column(DateTime, nullable=True)
    last_login_ip = Column(String(45), nullable=True)
    login_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
    # soft-delete marker, owned by account management, never set here
    deleted_at = Column(DateTime, nullable=True)

    @property
    def is_enabled(self) -> bool:
        return self.status == USER_ENABLED
