from contextlib import asynccontextmanager
from typing import Optional
import logging
import threading
import time
from collections import defaultdict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from clipbin.core.config import Settings
from clipbin.core.errors import register_exception_handlers
from clipbin.core.timezone_utils import Clock, utc_now
from clipbin.db import session as db_session
from clipbin.routes import auth as auth_routes
from clipbin.routes import clips as clips_routes
from clipbin.routes import health
from clipbin.services.tokens import TokenCodec

logger = logging.getLogger("clipbin")
_req_logger = logging.getLogger("clipbin.request")


class RequestCounter:
    """In-memory request counters per route (method + path template)."""

    def __init__(self):
        self.per_route = defaultdict(int)
        self.total = 0
        self._lock = threading.Lock()

    def hit(self, key: str):
        with self._lock:
            self.per_route[key] += 1
            self.total += 1
            return self.per_route[key], self.total


def _install_request_logging(app: FastAPI, settings: Settings) -> None:
    counter = RequestCounter()
    app.state.request_counter = counter
    every_n = max(1, settings.REQUEST_LOG_EVERY_N)

    @app.middleware("http")
    async def request_count_middleware(request: Request, call_next):
        # per-request DB query count, incremented by the engine listener
        cell = [0]
        db_count_token = db_session.request_db_query_count.set(cell)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            db_session.request_db_query_count.reset(db_count_token)
        duration_ms = int((time.perf_counter() - start) * 1000)

        # Prefer the matched route template so /api/clips/1 and /api/clips/2 share a counter
        route = request.scope.get("route")
        key_path = getattr(route, "path", None) or request.url.path
        key = f"{request.method} {key_path}"
        count_val, global_count_val = counter.hit(key)

        # Log every N hits to avoid spam
        if count_val % every_n == 0:
            _req_logger.info("Request count threshold reached: %s -> %d (global=%d)", key, count_val, global_count_val)
        if settings.REQUEST_LOG_VERBOSE:
            _req_logger.info(
                "%s %s -> %d in %dms | db_queries=%d route_count=%d",
                request.method, request.url.path, response.status_code, duration_ms, cell[0], count_val,
            )
        return response


def create_app(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    # Configure logging level from settings
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))
    if settings.uses_default_secret:
        logger.warning("JWT_SECRET is not set; using the insecure default signing secret")

    database = db_session.Database(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # create database tables if they don't exist
        database.create_all()
        logger.info("database ready, serving on port %s", settings.SERVER_PORT)
        yield
        database.dispose()

    app = FastAPI(
        title="clipbin",
        version="1.0.0",
        description="Text clip sharing backend",
        redirect_slashes=False,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = database
    app.state.token_codec = TokenCodec.from_settings(settings)
    app.state.clock = clock or utc_now

    _install_request_logging(app, settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth_routes.router)
    app.include_router(clips_routes.router)

    @app.get("/")
    def root():
        return {"status": "success", "message": "clipbin API is running", "data": {"version": app.version}}

    return app


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.SERVER_HOST, port=settings.SERVER_PORT)


if __name__ == "__main__":
    run()
