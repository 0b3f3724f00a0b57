import logging
import sqlite3
from typing import Iterator

from fastapi import Depends, Request

from javidan.config import Settings
from javidan.errors import ForbiddenError
from javidan.services.storage import ObjectStorage

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[sqlite3.Connection]:
    """Dependency yielding a connection for the duration of one request"""
    with request.app.state.database.session() as conn:
        yield conn


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage


def get_client_ip(request: Request) -> str:
    """Contributor IP: first X-Forwarded-For hop, then X-Real-IP, then the peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


async def require_development(request: Request, settings: Settings = Depends(get_settings)):
    """Dependency rejecting dev-only endpoints outside development mode"""
    if not settings.is_development:
        logger.warning(f"Rejected dev-only call {request.method} {request.url.path} in {settings.environment}")
        raise ForbiddenError("This operation is only available in development mode")
