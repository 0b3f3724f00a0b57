"""
Field fill API router.

Lets any visitor fill a field that is still empty on a subject. Existing
values are never overwritten, every fill is audited, and each contributor
IP gets a fixed number of fills per UTC day.
"""

import logging
import sqlite3

from fastapi import APIRouter, Depends, Request

from javidan import db_queries
from javidan.config import Settings
from javidan.dependencies import get_client_ip, get_db, get_settings
from javidan.errors import ValidationError
from javidan.models import FieldUpdateRequest, MessageResponse
from javidan.subjects import resolve_kind

logger = logging.getLogger(__name__)

router = APIRouter(tags=["field-updates"])


@router.post("/field-updates", response_model=MessageResponse)
def fill_field(
    body: FieldUpdateRequest,
    request: Request,
    conn: sqlite3.Connection = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Fill one empty field.

    Returns 400 for unknown kinds, fields or values, 429 once the daily
    limit is used up, 404 for missing subjects and 403 when the field
    already holds a value.
    """
    kind = resolve_kind(body.record_type)
    if kind is None:
        raise ValidationError("Invalid record type")

    submitter_ip = get_client_ip(request)
    db_queries.fill_field(
        conn,
        kind,
        body.record_id,
        body.field_name,
        body.value,
        submitter_ip=submitter_ip,
        submitter_twitter_id=body.submitter_twitter_id,
        daily_limit=settings.field_update_daily_limit,
    )
    logger.info(f"Filled {kind.value}.{body.field_name} on {body.record_id} from {submitter_ip}")

    return MessageResponse(message="Field updated successfully")
