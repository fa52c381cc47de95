"""Authentication gate for protected routes.

Every protected route depends on ``require_auth``. A request passes only if
its ``Authorization`` header is exactly ``Bearer <token>``, a live session row
holds that access token, and the token's signature and expiry verify. The
session check allows server-side revocation (logout); the signature check
stops a forged token that happens to match a row. Every rejection is the same
401 to the client; the specific reason goes to the log only.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from clipbin.core.context import get_now, get_token_codec
from clipbin.core.errors import TokenInvalid, TokenMalformed, TokenMissing
from clipbin.db.session import get_db
from clipbin.repositories.sessions import SessionRepository
from clipbin.services.tokens import TokenCodec

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthContext:
    """Identity resolved by the gate, handed to downstream handlers."""

    user_id: int
    session_id: int
    token: str


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header value.

    The prefix is case-sensitive and followed by exactly one space; the token
    must be non-empty and contain no whitespace.
    """
    if authorization is None:
        raise TokenMissing("no authorization header")
    if not authorization.startswith(BEARER_PREFIX):
        raise TokenMalformed("authorization header is not a bearer header")
    token = authorization[len(BEARER_PREFIX):]
    if not token or any(c.isspace() for c in token):
        raise TokenMalformed("bearer token empty or contains whitespace")
    return token


def authenticate(sessions: SessionRepository, codec: TokenCodec, token: str, now: datetime) -> AuthContext:
    # session lookup first: cheapest to fail and enforces revocation
    ses = sessions.find_by_token(token, now)
    claims = codec.verify(token, now)
    if claims.sub != ses.user_id:
        raise TokenInvalid("token subject does not match session owner")
    return AuthContext(user_id=claims.sub, session_id=ses.id, token=token)


def bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    """Dependency form of ``extract_bearer_token`` for routes that are not gated."""
    return extract_bearer_token(authorization)


def require_auth(
    token: str = Depends(bearer_token),
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    now: datetime = Depends(get_now),
) -> AuthContext:
    return authenticate(SessionRepository(db), codec, token, now)
