from pydantic import Field, field_validator
from typing import List, Optional
from datetime import datetime

from clipbin.models.clip import AccessType, ContentType
from clipbin.schemas.common import CamelModel, UtcDateTime


class ClipCreate(CamelModel):
    title: Optional[str] = Field(default=None, max_length=255)
    content: str = Field(min_length=1)
    content_type: ContentType = ContentType.text
    language: Optional[str] = Field(default=None, max_length=50)
    is_encrypted: bool = False
    access_type: AccessType = AccessType.private
    expires_at: Optional[datetime] = None
    tags: Optional[List[str]] = None


class ClipUpdate(CamelModel):
    # every field optional; only the ones sent are changed
    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    content_type: Optional[ContentType] = None
    language: Optional[str] = Field(default=None, max_length=50)
    is_encrypted: Optional[bool] = None
    access_type: Optional[AccessType] = None
    expires_at: Optional[datetime] = None
    tags: Optional[List[str]] = None

    @field_validator("content", "content_type", "is_encrypted", "access_type")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ClipRead(CamelModel):
    id: int
    user_id: int
    title: Optional[str] = None
    content: str
    content_type: str
    language: Optional[str] = None
    is_encrypted: bool
    access_type: str
    view_count: int
    expires_at: Optional[UtcDateTime] = None
    short_url: Optional[str] = None
    tags: Optional[List[str]] = None
    created_at: Optional[UtcDateTime] = None
    updated_at: Optional[UtcDateTime] = None
