"""Signed, time-bound tokens.

Access and refresh tokens are the same kind of object: HS256 JWTs carrying
``sub`` (user id), ``iat``, ``exp`` and a random ``jti``. They differ only in
the TTL used for ``exp`` and the session column that stores them.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime

from jose import JWTError, jwt

from clipbin.core.config import Settings
from clipbin.core.errors import TokenInvalid
from clipbin.core.timezone_utils import to_epoch_seconds


@dataclass(frozen=True)
class TokenClaims:
    sub: int
    iat: int
    exp: int
    jti: str


class TokenCodec:
    def __init__(self, secret: str, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("a signing secret is required")
        self.secret = secret
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(settings.JWT_SECRET, settings.JWT_ALGORITHM)

    def issue(self, user_id: int, now: datetime, ttl_seconds: int) -> str:
        iat = to_epoch_seconds(now)
        claims = {
            # jose requires a string subject
            "sub": str(user_id),
            "iat": iat,
            "exp": iat + ttl_seconds,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str, now: datetime) -> TokenClaims:
        """Check signature, algorithm and expiry against ``now``.

        Only the configured algorithm is accepted. Expiry is checked here
        rather than by jose so the caller's clock decides: the token is valid
        while ``now < exp``.
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise TokenInvalid(f"malformed token: {exc}") from None
        if header.get("alg") != self.algorithm:
            raise TokenInvalid(f"unexpected algorithm {header.get('alg')!r}")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTError as exc:
            raise TokenInvalid(f"signature check failed: {exc}") from None

        try:
            claims = TokenClaims(
                sub=int(payload["sub"]),
                iat=int(payload["iat"]),
                exp=int(payload["exp"]),
                jti=str(payload.get("jti", "")),
            )
        except (KeyError, TypeError, ValueError):
            raise TokenInvalid("claims missing or not numeric") from None

        if claims.exp <= to_epoch_seconds(now):
            raise TokenInvalid("token expired")
        return claims
