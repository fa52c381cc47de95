from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from clipbin.db.session import Base, BigIntId


class UserSession(Base):
    """One issued login: an access/refresh token pair bound to a user."""

    __tablename__ = "user_sessions"

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    user_id = Column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    token = Column(String(512), unique=True, nullable=False)
    refresh_token = Column(String(512), unique=True, nullable=False)
    # naive UTC
    expires_at = Column(DateTime, index=True, nullable=False)
    refresh_expires_at = Column(DateTime, nullable=False)
    device_info = Column(String(500), nullable=True)
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
