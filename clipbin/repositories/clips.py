import logging
import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_

from clipbin.core.errors import InternalFailure, NotFound
from clipbin.core.timezone_utils import to_db_time
from clipbin.models.clip import AccessType, Clip, ClipAccessLog

from .base import BaseRepository, store_errors

logger = logging.getLogger("clipbin.clips")

SHORT_URL_BYTES = 6  # 8 url-safe characters
SHORT_URL_ATTEMPTS = 5

# columns a client may set on create/update
EDITABLE_FIELDS = ("title", "content", "content_type", "language", "is_encrypted", "access_type", "expires_at", "tags")


class ClipRepository(BaseRepository[Clip]):
    model = Clip

    def _live(self, now: datetime):
        """Clips that are neither soft-deleted nor expired at ``now``."""
        return self.db.query(Clip).filter(
            Clip.deleted_at.is_(None),
            or_(Clip.expires_at.is_(None), Clip.expires_at > to_db_time(now)),
        )

    def _new_short_url(self) -> str:
        for _ in range(SHORT_URL_ATTEMPTS):
            code = secrets.token_urlsafe(SHORT_URL_BYTES)
            if self.db.query(Clip.id).filter(Clip.short_url == code).first() is None:
                return code
        logger.error("could not allocate a free short url after %d attempts", SHORT_URL_ATTEMPTS)
        raise InternalFailure()

    def create_clip(self, user_id: int, data: Dict[str, Any]) -> Clip:
        with store_errors(self.db, "create clip"):
            clip = Clip(user_id=user_id, short_url=self._new_short_url())
            self._apply(clip, data)
            self.db.add(clip)
            self.db.commit()
            self.db.refresh(clip)
        logger.info("clip %s created by user %s", clip.id, user_id)
        return clip

    def find_by_user_id(self, user_id: int, page: int, page_size: int) -> List[Clip]:
        offset = (page - 1) * page_size
        with store_errors(self.db, "list clips"):
            return (
                self.db.query(Clip)
                .filter(Clip.user_id == user_id, Clip.deleted_at.is_(None))
                .order_by(Clip.created_at.desc(), Clip.id.desc())
                .offset(offset)
                .limit(page_size)
                .all()
            )

    def find_visible(self, clip_id: int, viewer_id: int, now: datetime) -> Clip:
        """A live clip the viewer owns, or any live public clip."""
        with store_errors(self.db, "load clip"):
            clip = (
                self._live(now)
                .filter(Clip.id == clip_id)
                .filter(or_(Clip.user_id == viewer_id, Clip.access_type == AccessType.public.value))
                .first()
            )
        if clip is None:
            raise NotFound("Clip not found")
        return clip

    def find_by_short_url(self, short_url: str, now: datetime) -> Clip:
        """A live public or unlisted clip by its short code."""
        with store_errors(self.db, "load clip by short url"):
            clip = (
                self._live(now)
                .filter(Clip.short_url == short_url)
                .filter(Clip.access_type.in_((AccessType.public.value, AccessType.unlisted.value)))
                .first()
            )
        if clip is None:
            raise NotFound("Clip not found or expired")
        return clip

    def _owned(self, clip_id: int, user_id: int) -> Clip:
        clip = (
            self.db.query(Clip)
            .filter(Clip.id == clip_id, Clip.user_id == user_id, Clip.deleted_at.is_(None))
            .first()
        )
        if clip is None:
            raise NotFound("Clip not found or access denied")
        return clip

    def update_clip(self, clip_id: int, user_id: int, data: Dict[str, Any]) -> Clip:
        with store_errors(self.db, "update clip"):
            clip = self._owned(clip_id, user_id)
            self._apply(clip, data)
            self.db.add(clip)
            self.db.commit()
            self.db.refresh(clip)
        return clip

    def delete_clip(self, clip_id: int, user_id: int, now: datetime) -> None:
        with store_errors(self.db, "delete clip"):
            clip = self._owned(clip_id, user_id)
            clip.deleted_at = to_db_time(now)
            self.db.add(clip)
            self.db.commit()
        logger.info("clip %s deleted by user %s", clip_id, user_id)

    def increment_view_count(self, clip_id: int) -> None:
        self.db.query(Clip).filter(Clip.id == clip_id).update(
            {Clip.view_count: Clip.view_count + 1}, synchronize_session=False
        )
        self.db.commit()

    def log_access(
        self,
        clip_id: int,
        access_ip: str,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> None:
        self.db.add(
            ClipAccessLog(
                content_id=clip_id,
                user_id=user_id,
                access_ip=access_ip,
                user_agent=user_agent[:500] if user_agent else None,
                referrer=referrer[:500] if referrer else None,
            )
        )
        self.db.commit()

    @staticmethod
    def _apply(clip: Clip, data: Dict[str, Any]) -> None:
        for key in EDITABLE_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if key == "expires_at":
                value = to_db_time(value)
            elif hasattr(value, "value"):
                # enum members are stored by value
                value = value.value
            setattr(clip, key, value)
