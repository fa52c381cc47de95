import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from clipbin.core.context import client_ip, get_now, user_agent
from clipbin.core.errors import BadRequest
from clipbin.db.session import get_db
from clipbin.repositories.clips import ClipRepository
from clipbin.schemas.clip import ClipCreate, ClipRead, ClipUpdate
from clipbin.schemas.common import ApiResponse, success
from clipbin.services.auth_gate import AuthContext, require_auth
from clipbin.utils.best_effort import best_effort

logger = logging.getLogger("clipbin.clips")

router = APIRouter(prefix="/api", tags=["Clips"])

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
# offsets are bound as signed 64-bit integers by the database driver
MAX_OFFSET = 2**63 - 1


@router.post("/clips", status_code=201, response_model=ApiResponse[ClipRead])
def create_clip(payload: ClipCreate, ctx: AuthContext = Depends(require_auth), db: Session = Depends(get_db)):
    clip = ClipRepository(db).create_clip(ctx.user_id, payload.model_dump())
    return success(ClipRead.model_validate(clip), "Clip created")


@router.get("/clips", response_model=ApiResponse[List[ClipRead]])
def list_clips(
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    ctx: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    page = 1 if page is None else page
    page_size = DEFAULT_PAGE_SIZE if page_size is None else page_size
    if page < 1 or page_size < 1 or page_size > MAX_PAGE_SIZE or (page - 1) * page_size > MAX_OFFSET:
        raise BadRequest("Invalid pagination parameters")
    rows = ClipRepository(db).find_by_user_id(ctx.user_id, page, page_size)
    return success([ClipRead.model_validate(r) for r in rows], "Clips loaded")


@router.get("/clips/{clip_id}", response_model=ApiResponse[ClipRead])
def get_clip(
    clip_id: int,
    ctx: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    repo = ClipRepository(db)
    clip = repo.find_visible(clip_id, ctx.user_id, now)
    body = ClipRead.model_validate(clip)
    best_effort(
        lambda: repo.increment_view_count(clip.id),
        logger=logger,
        description=f"view count for clip {clip_id}",
        cleanup=db.rollback,
    )
    return success(body, "Clip loaded")


@router.get("/s/{short_url}", response_model=ApiResponse[ClipRead])
def get_clip_by_short_url(
    short_url: str,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    repo = ClipRepository(db)
    clip = repo.find_by_short_url(short_url, now)
    body = ClipRead.model_validate(clip)
    clip_id = clip.id
    best_effort(
        lambda: repo.increment_view_count(clip_id),
        logger=logger,
        description=f"view count for clip {clip_id}",
        cleanup=db.rollback,
    )
    best_effort(
        lambda: repo.log_access(
            clip_id,
            client_ip(request),
            user_agent=user_agent(request),
            referrer=request.headers.get("referer"),
        ),
        logger=logger,
        description=f"access log for clip {clip_id}",
        cleanup=db.rollback,
    )
    return success(body, "Clip loaded")


@router.put("/clips/{clip_id}", response_model=ApiResponse[ClipRead])
def update_clip(
    clip_id: int,
    payload: ClipUpdate,
    ctx: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    clip = ClipRepository(db).update_clip(clip_id, ctx.user_id, payload.model_dump(exclude_unset=True))
    return success(ClipRead.model_validate(clip), "Clip updated")


@router.delete("/clips/{clip_id}", response_model=ApiResponse[None])
def delete_clip(
    clip_id: int,
    ctx: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    ClipRepository(db).delete_clip(clip_id, ctx.user_id, now)
    return success(None, "Clip deleted")
