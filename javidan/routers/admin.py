"""
Admin API router.

Holds the database wipe used in development. It is refused outright in
production, whatever secret is sent.
"""

import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends

from javidan.config import Settings
from javidan.db_init import clean_database
from javidan.dependencies import get_db, get_settings
from javidan.errors import ForbiddenError, UnauthorizedError
from javidan.models import CleanRequest, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/clean", response_model=MessageResponse)
def clean(
    body: Optional[CleanRequest] = None,
    conn: sqlite3.Connection = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Delete every row from every table (development only, needs the admin secret)"""
    if settings.is_production:
        raise ForbiddenError("Database cleaning is disabled in production")

    if body is None or body.secret != settings.admin_secret:
        logger.warning("Rejected database clean with a wrong secret")
        raise UnauthorizedError("Invalid admin secret")

    clean_database(conn)
    logger.info("Database cleaned")
    return MessageResponse(message="Database cleaned successfully")
