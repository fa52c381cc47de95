from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, JSON
from sqlalchemy.sql import func
from clipbin.db.session import Base, BigIntId
import enum


class ContentType(str, enum.Enum):
    text = "text"
    code = "code"
    markdown = "markdown"
    url = "url"


class AccessType(str, enum.Enum):
    private = "private"
    public = "public"
    unlisted = "unlisted"


class Clip(Base):
    __tablename__ = "clip_contents"

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    user_id = Column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String(255), nullable=True)
    content = Column(Text, nullable=False)
    content_type = Column(String(20), nullable=False, default=ContentType.text.value, server_default=ContentType.text.value)
    # programming language, for code clips
    language = Column(String(50), nullable=True)
    # content was encrypted by the client; stored as-is
    is_encrypted = Column(Boolean, nullable=False, default=False)
    access_type = Column(String(20), nullable=False, default=AccessType.private.value, server_default=AccessType.private.value, index=True)
    view_count = Column(Integer, nullable=False, default=0, server_default="0")
    expires_at = Column(DateTime, nullable=True, index=True)
    short_url = Column(String(50), unique=True, nullable=True)
    tags = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime, nullable=True)


class ClipAccessLog(Base):
    __tablename__ = "clip_access_logs"

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    content_id = Column(BigIntId, ForeignKey("clip_contents.id", ondelete="CASCADE"), index=True, nullable=False)
    # viewer, when the request was authenticated
    user_id = Column(BigIntId, ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True)
    access_ip = Column(String(45), nullable=False)
    user_agent = Column(String(500), nullable=True)
    referrer = Column(String(500), nullable=True)
    accessed_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
