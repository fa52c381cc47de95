import os
from dataclasses import dataclass, field, replace
from typing import Tuple

# Load .env automatically so variables defined next to the project are
# available when running uvicorn without --env-file.
from dotenv import load_dotenv


DEFAULT_JWT_SECRET = "default_secret_key"
DEFAULT_CORS_ORIGINS = (
    "http://localhost:8080",
    "http://127.0.0.1:8080",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a valid number, got {raw!r}") from exc


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, loaded once at startup.

    Instances are immutable and handed to ``create_app``; nothing reads the
    environment after that. Tests build their own instance with
    ``Settings(...)`` or ``Settings.from_env().with_overrides(...)``.
    """

    DATABASE_URL: str = "sqlite:///./clipbin.db"
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 3000

    JWT_SECRET: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    # access token lifetime in seconds
    JWT_EXPIRES_IN: int = 3600
    # refresh token lifetime in seconds (30 days)
    JWT_REFRESH_EXPIRES_IN: int = 2592000

    # Fixed-size pool: checkout waits DB_POOL_TIMEOUT seconds, then fails
    DB_POOL_SIZE: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    LOG_LEVEL: str = "INFO"
    # Log request counters every N hits per route
    REQUEST_LOG_EVERY_N: int = 100
    # Log pool events every N occurrences
    DB_LOG_EVERY_N: int = 50
    # Verbose per-request logging (development aid)
    REQUEST_LOG_VERBOSE: bool = False

    CORS_ORIGINS: Tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        raw_db = os.getenv("DATABASE_URL", cls.DATABASE_URL)
        # Tolerate a repeated prefix like "DATABASE_URL=DATABASE_URL=..." from
        # a malformed .env file.
        if raw_db.startswith("DATABASE_URL="):
            raw_db = raw_db.split("=", 1)[1]

        origins = os.getenv("CORS_ORIGINS")
        cors = tuple(o.strip() for o in origins.split(",") if o.strip()) if origins else DEFAULT_CORS_ORIGINS

        return cls(
            DATABASE_URL=raw_db,
            SERVER_HOST=os.getenv("SERVER_HOST", cls.SERVER_HOST),
            SERVER_PORT=_env_int("SERVER_PORT", cls.SERVER_PORT),
            JWT_SECRET=os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET),
            JWT_ALGORITHM=os.getenv("JWT_ALGORITHM", cls.JWT_ALGORITHM),
            JWT_EXPIRES_IN=_env_int("JWT_EXPIRES_IN", cls.JWT_EXPIRES_IN),
            JWT_REFRESH_EXPIRES_IN=_env_int("JWT_REFRESH_EXPIRES_IN", cls.JWT_REFRESH_EXPIRES_IN),
            DB_POOL_SIZE=_env_int("DB_POOL_SIZE", cls.DB_POOL_SIZE),
            DB_POOL_TIMEOUT=_env_int("DB_POOL_TIMEOUT", cls.DB_POOL_TIMEOUT),
            DB_POOL_RECYCLE=_env_int("DB_POOL_RECYCLE", cls.DB_POOL_RECYCLE),
            LOG_LEVEL=os.getenv("LOG_LEVEL", cls.LOG_LEVEL).upper(),
            REQUEST_LOG_EVERY_N=_env_int("REQUEST_LOG_EVERY_N", cls.REQUEST_LOG_EVERY_N),
            DB_LOG_EVERY_N=_env_int("DB_LOG_EVERY_N", cls.DB_LOG_EVERY_N),
            REQUEST_LOG_VERBOSE=_env_bool("REQUEST_LOG_VERBOSE"),
            CORS_ORIGINS=cors,
        )

    def with_overrides(self, **changes) -> "Settings":
        return replace(self, **changes)

    @property
    def uses_default_secret(self) -> bool:
        return self.JWT_SECRET == DEFAULT_JWT_SECRET
