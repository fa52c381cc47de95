from sqlalchemy import BigInteger, Integer, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import sessionmaker, declarative_base
from fastapi import Request
import logging
import threading
import contextvars

from clipbin.core.config import Settings

Base = declarative_base()

# BIGINT primary keys only autoincrement on SQLite when declared as INTEGER
BigIntId = BigInteger().with_variant(Integer, "sqlite")

_pool_logger = logging.getLogger("clipbin.db.pool")

# --- Per-request DB query counting using ContextVar ---
# The request middleware sets this to 0 at the start of each request. The
# before_cursor_execute listener increments it, so the middleware can log the
# number of DB roundtrips per HTTP request. It holds a one-item list so
# increments made on worker threads are visible to the middleware.
request_db_query_count = contextvars.ContextVar("request_db_query_count", default=None)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def build_engine(settings: Settings) -> Engine:
    url = settings.DATABASE_URL
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if _is_memory_sqlite(url):
            # one shared connection, otherwise every checkout sees an empty db
            return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(url, connect_args=connect_args)

    # Fixed-size pool: max_overflow=0 bounds concurrent store operations and
    # pool_timeout bounds how long a request waits for a connection.
    # pool_pre_ping avoids "MySQL server has gone away" on stale connections.
    return create_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=0,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_pre_ping=True,
        pool_recycle=settings.DB_POOL_RECYCLE,
        poolclass=QueuePool,
    )


class PoolMonitor:
    """Counts pool connect/checkout/checkin events and DB roundtrips."""

    def __init__(self, log_every_n: int):
        self.log_every_n = max(1, log_every_n)
        self.connects = 0
        self.checkouts = 0
        self.checkins = 0
        self.queries = 0
        self._lock = threading.Lock()

    def _bump(self, attr: str) -> int:
        with self._lock:
            value = getattr(self, attr) + 1
            setattr(self, attr, value)
            return value

    def install(self, engine: Engine) -> None:
        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            cnt = self._bump("connects")
            # Log every N events to avoid noisy output
            if cnt % self.log_every_n == 0:
                _pool_logger.info("Pool CONNECT events: total opened=%d", cnt)

        @event.listens_for(engine, "checkout")
        def _on_checkout(dbapi_connection, connection_record, connection_proxy):
            cnt = self._bump("checkouts")
            if cnt % self.log_every_n == 0:
                _pool_logger.info("Pool CHECKOUT events: total checkouts=%d", cnt)

        @event.listens_for(engine, "checkin")
        def _on_checkin(dbapi_connection, connection_record):
            cnt = self._bump("checkins")
            if cnt % self.log_every_n == 0:
                _pool_logger.info("Pool CHECKIN events: total checkins=%d", cnt)

        @event.listens_for(engine, "before_cursor_execute")
        def _on_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            cell = request_db_query_count.get()
            if cell is not None:
                cell[0] += 1
            self._bump("queries")


class Database:
    """Engine, session factory and schema management for one application."""

    def __init__(self, settings: Settings):
        self.engine = build_engine(settings)
        self.monitor = PoolMonitor(settings.DB_LOG_EVERY_N)
        self.monitor.install(self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        # Import models here so they are registered on the metadata
        import clipbin.models.user  # noqa: F401
        import clipbin.models.session  # noqa: F401
        import clipbin.models.clip  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def check_health(self) -> None:
        """Run ``SELECT 1``; raises the driver error if the store is unreachable."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request):
    """FastAPI dependency that provides a scoped SQLAlchemy Session.

    The connection is always returned to the pool after the request.
    """
    db = request.app.state.db.SessionLocal()
    try:
        yield db
    finally:
        db.close()
