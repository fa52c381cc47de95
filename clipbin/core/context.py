"""Typed accessors over the per-application state, used as FastAPI dependencies.

``create_app`` stores the settings, the token codec and the clock on
``app.state``; handlers reach them through these functions instead of
module-level globals.
"""
from datetime import datetime
from typing import Optional

from fastapi import Request

from clipbin.core.config import Settings
from clipbin.services.tokens import TokenCodec


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_now(request: Request) -> datetime:
    """The current instant according to the application's clock."""
    return request.app.state.clock()


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def user_agent(request: Request) -> Optional[str]:
    return request.headers.get("user-agent")
