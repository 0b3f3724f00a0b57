"""
API endpoints for submissions.

One multipart endpoint per subject kind. Files arrive either as metadata for
objects already uploaded through a presigned URL (primaryFileMeta,
uploadedFiles) or as raw files (primaryFile, files).
"""

import logging
import sqlite3

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from javidan.dependencies import get_db, get_storage
from javidan.models import SubmissionResponse
from javidan.services.storage import ObjectStorage
from javidan.services.submissions import parse_submission, save_submission
from javidan.subjects import SubjectKind, get_spec

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/submissions", tags=["submissions"])


@router.post("/{kind}", response_model=SubmissionResponse)
async def submit(
    kind: SubjectKind,
    request: Request,
    conn: sqlite3.Connection = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage)
):
    """
    Submit a new subject with optional media.

    Returns 400 naming the missing fields when validation fails; in that
    case nothing is uploaded or written.
    """
    form = await request.form()
    submission = await parse_submission(kind, form)

    # Storage and database calls block, keep them off the event loop
    subject_id = await run_in_threadpool(save_submission, conn, storage, submission)

    return SubmissionResponse(
        id=subject_id,
        message=f"{get_spec(kind).label} submitted successfully"
    )
