"""
Resolve the files attached to a submission or media addition.

Files arrive either as metadata for objects the browser already PUT to
storage through a presigned URL, or as raw multipart files that the server
uploads itself. Both paths end as StoredFile values with the same shape.
Zero-byte files are dropped on both paths.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import FormData, UploadFile

from javidan.errors import ValidationError
from javidan.models import UploadedFileMeta
from javidan.services.storage import ObjectStorage, generate_key, media_type_for

logger = logging.getLogger(__name__)

MEDIA_TYPES = ("image", "video", "document")


@dataclass
class PendingFile:
    """A file that is attached to a request but not yet recorded"""
    file_name: str
    file_size: int
    media_type: str
    content_type: str = ""
    data: Optional[bytes] = None
    key: Optional[str] = None
    public_url: Optional[str] = None

    @property
    def needs_upload(self) -> bool:
        return self.data is not None


@dataclass
class StoredFile:
    """A file present in storage, ready to become a media row"""
    media_type: str
    key: str
    public_url: str
    file_name: str
    file_size: int
    is_primary: bool = False


def pending_from_metadata(metas: List[UploadedFileMeta]) -> List[PendingFile]:
    pending = []
    for meta in metas:
        if meta.file_size <= 0:
            continue
        media_type = meta.type if meta.type in MEDIA_TYPES else media_type_for(meta.content_type)
        pending.append(PendingFile(
            file_name=meta.file_name,
            file_size=meta.file_size,
            media_type=media_type,
            content_type=meta.content_type or "",
            key=meta.key,
            public_url=meta.public_url,
        ))
    return pending


def parse_metadata(raw: Any, many: bool = True) -> List[UploadedFileMeta]:
    """
    Parse pre-uploaded file metadata sent as a JSON form field.

    Args:
        raw: JSON text (an array, or a single object when many is False)
        many: Whether the field holds a list

    Raises:
        ValidationError: If the JSON is malformed
    """
    if raw is None:
        return []
    if not isinstance(raw, str):
        raise ValidationError("Invalid uploaded file metadata")
    if not raw.strip():
        return []
    try:
        payload = json.loads(raw)
    except ValueError as e:
        logger.info(f"Rejected uploaded file metadata: {e}")
        raise ValidationError("Invalid uploaded file metadata")
    if not many and isinstance(payload, dict):
        payload = [payload]
    return validate_metadata(payload)


def validate_metadata(payload: Any) -> List[UploadedFileMeta]:
    """Validate an already decoded list of uploaded file metadata"""
    try:
        if not isinstance(payload, list):
            raise ValueError("expected a list")
        return [UploadedFileMeta.model_validate(item) for item in payload]
    except (ValueError, PydanticValidationError) as e:
        logger.info(f"Rejected uploaded file metadata: {e}")
        raise ValidationError("Invalid uploaded file metadata")


async def read_raw_files(form: FormData, field: str) -> List[PendingFile]:
    """Read every non-empty multipart file under a form field"""
    pending = []
    for item in form.getlist(field):
        if not isinstance(item, UploadFile):
            continue
        data = await item.read()
        if not data:
            continue
        pending.append(PendingFile(
            file_name=item.filename or "upload",
            file_size=len(data),
            media_type=media_type_for(item.content_type),
            content_type=item.content_type or "",
            data=data,
        ))
    return pending


async def collect_files(form: FormData, raw_field: str, meta_field: str, many: bool = True) -> List[PendingFile]:
    """
    Gather the files for one slot of a form.

    Pre-uploaded metadata wins; raw files are the fallback path.
    """
    metas = parse_metadata(form.get(meta_field), many=many)
    if metas:
        pending = pending_from_metadata(metas)
    else:
        pending = await read_raw_files(form, raw_field)
    return pending if many else pending[:1]


def store_files(storage: ObjectStorage, pending: List[PendingFile]) -> List[StoredFile]:
    """
    Upload whatever still needs uploading.

    Raises:
        StorageError: If any upload fails
    """
    stored = []
    for item in pending:
        if item.needs_upload:
            key = generate_key(item.file_name, item.media_type)
            public_url = storage.upload(item.data, key, item.content_type)
        else:
            key, public_url = item.key, item.public_url
        stored.append(StoredFile(
            media_type=item.media_type,
            key=key,
            public_url=public_url,
            file_name=item.file_name,
            file_size=item.file_size,
        ))
    return stored
