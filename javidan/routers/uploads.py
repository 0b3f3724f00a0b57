"""Presigned upload API router"""

import logging

from fastapi import APIRouter, Depends

from javidan.dependencies import get_storage
from javidan.models import PresignRequest, PresignResponse
from javidan.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/presign", response_model=PresignResponse)
def presign_upload(body: PresignRequest, storage: ObjectStorage = Depends(get_storage)):
    """
    Issue a presigned PUT URL so the browser can upload straight to storage.

    The returned key and public URL go back to the server as uploaded file
    metadata when the form is submitted.
    """
    result = storage.presign(body.file_name, body.content_type)
    return PresignResponse(
        presigned_url=result["presignedUrl"],
        public_url=result["publicUrl"],
        key=result["key"],
    )
