"""
Subjects API router.

Endpoints for listing and viewing subjects, attaching media, and the
development-only delete.
"""

import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from starlette.concurrency import run_in_threadpool

from javidan import db_queries
from javidan.dependencies import get_db, get_storage, require_development
from javidan.errors import NotFoundError, ValidationError
from javidan.models import MediaAddResponse, MessageResponse, SubjectDetailResponse, SubjectListResponse
from javidan.services.storage import ObjectStorage
from javidan.services.uploads import collect_files, pending_from_metadata, store_files, validate_metadata
from javidan.subjects import SubjectKind, get_spec

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subjects", tags=["subjects"])


@router.get("/stats")
def get_subject_statistics(conn: sqlite3.Connection = Depends(get_db)):
    """Number of submitted subjects per kind"""
    return {"success": True, "counts": db_queries.subject_counts(conn)}


@router.get("/{kind}", response_model=SubjectListResponse)
def list_subjects(
    kind: SubjectKind,
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum number of subjects to return"),
    offset: int = Query(0, ge=0, description="Number of subjects to skip"),
    conn: sqlite3.Connection = Depends(get_db)
):
    """
    Get subjects of one kind, newest first.

    Each subject carries a media array of {type, url} pairs.
    """
    data = db_queries.list_subjects(conn, kind, limit or get_spec(kind).list_limit, offset)
    return SubjectListResponse(data=data, count=len(data))


@router.get("/{kind}/{subject_id}", response_model=SubjectDetailResponse)
def get_subject(kind: SubjectKind, subject_id: int, conn: sqlite3.Connection = Depends(get_db)):
    """Get a subject with its primary media, supporting media and links"""
    detail = db_queries.get_subject_detail(conn, kind, subject_id)
    if detail is None:
        raise NotFoundError(f"{get_spec(kind).label} not found")

    return SubjectDetailResponse(
        data=detail["data"],
        primary_media=detail["primaryMedia"],
        media=detail["media"],
        links=detail["links"],
    )


@router.post("/{kind}/{subject_id}/media", response_model=MediaAddResponse)
async def add_media(
    kind: SubjectKind,
    subject_id: int,
    request: Request,
    conn: sqlite3.Connection = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage)
):
    """
    Attach media to an existing subject.

    Accepts a JSON body {"uploadedFiles": [...]} or multipart with an
    uploadedFiles JSON field or raw files. The first image becomes primary
    when the subject has none.
    """
    if not await run_in_threadpool(db_queries.subject_exists, conn, kind, subject_id):
        raise NotFoundError(f"{get_spec(kind).label} not found")

    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError("Invalid JSON body")
        if isinstance(body, dict):
            body = body.get("uploadedFiles") or []
        pending = pending_from_metadata(validate_metadata(body))
    else:
        form = await request.form()
        pending = await collect_files(form, "files", "uploadedFiles")

    if not pending:
        raise ValidationError("At least one file is required")

    stored = await run_in_threadpool(store_files, storage, pending)
    count = await run_in_threadpool(db_queries.add_media, conn, kind, subject_id, stored)
    logger.info(f"Added {count} media files to {kind.value} {subject_id}")

    return MediaAddResponse(files_uploaded=count)


@router.delete("/{kind}/{subject_id}/primary-media", response_model=MessageResponse)
def delete_primary_media(kind: SubjectKind, subject_id: int, conn: sqlite3.Connection = Depends(get_db)):
    """Remove the subject's primary media so a new display image can be set"""
    if not db_queries.delete_primary_media(conn, kind, subject_id):
        raise NotFoundError("No primary media found")

    logger.info(f"Deleted primary media of {kind.value} {subject_id}")
    return MessageResponse(message="Primary media deleted successfully")


@router.delete(
    "/{kind}/{subject_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_development)]
)
def delete_subject(kind: SubjectKind, subject_id: int, conn: sqlite3.Connection = Depends(get_db)):
    """Delete a subject with its media and links (development mode only)"""
    if not db_queries.delete_subject(conn, kind, subject_id):
        raise NotFoundError(f"{get_spec(kind).label} not found")

    logger.info(f"Deleted {kind.value} {subject_id}")
    return MessageResponse(message=f"{get_spec(kind).label} deleted successfully")
