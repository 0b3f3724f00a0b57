"""
Submission handling for every subject kind.

parse_submission validates a multipart form without any side effects;
save_submission uploads the files that still need uploading and writes the
subject, its media and its links in one transaction.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple

from starlette.datastructures import FormData

from javidan import db_queries
from javidan.errors import ValidationError
from javidan.services.storage import ObjectStorage
from javidan.services.text_utils import clean_text, coerce_value, resolve_names
from javidan.services.uploads import PendingFile, collect_files, store_files
from javidan.subjects import AgentType, FieldType, Gender, SubjectKind, VictimStatus

logger = logging.getLogger(__name__)


@dataclass
class Submission:
    kind: SubjectKind
    columns: Dict[str, Any]
    links: List[str] = field(default_factory=list)
    primary: List[PendingFile] = field(default_factory=list)
    supporting: List[PendingFile] = field(default_factory=list)


def _text(form: FormData, name: str):
    value = form.get(name)
    return clean_text(value) if isinstance(value, str) else None


def _number(form: FormData, name: str, field_type: FieldType):
    return coerce_value(_text(form, name), field_type, name)


def _enum(form: FormData, name: str, enum_cls, default=None):
    value = _text(form, name)
    if value is None:
        return default
    allowed = [member.value for member in enum_cls]
    if value not in allowed:
        raise ValidationError(f"Invalid {name}: must be one of {', '.join(allowed)}")
    return value


def _require(missing: List[str]):
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _person_names(form: FormData) -> Tuple[Dict[str, Any], bool]:
    """
    Read Farsi and English names in either full or split form.

    Returns:
        Tuple of (name columns, whether any name was given)
    """
    full, first, last = resolve_names(
        _text(form, "fullName"), _text(form, "firstName"), _text(form, "lastName")
    )
    full_en, first_en, last_en = resolve_names(
        _text(form, "fullNameEn"), _text(form, "firstNameEn"), _text(form, "lastNameEn")
    )
    columns = {
        "full_name": full,
        "first_name": first,
        "last_name": last,
        "full_name_en": full_en,
        "first_name_en": first_en,
        "last_name_en": last_en,
    }
    return columns, any(columns.values())


def _links(form: FormData, prefix: str) -> List[str]:
    return [url for url in (_text(form, f"{prefix}{i}") for i in range(1, 4)) if url]


def _common(form: FormData) -> Dict[str, Any]:
    return {
        "hashtags": _text(form, "hashtags"),
        "submitter_twitter_id": _text(form, "submitterTwitterId"),
    }


def _parse_victim(form: FormData) -> Tuple[Dict[str, Any], List[str]]:
    names, has_name = _person_names(form)
    location = _text(form, "location")
    _require(([] if has_name else ["fullName"]) + ([] if location else ["location"]))

    columns = {
        **names,
        "location": location,
        "birth_year": _number(form, "birthYear", FieldType.INT),
        "age": _number(form, "age", FieldType.INT),
        "incident_date": coerce_value(_text(form, "incidentDate"), FieldType.DATE, "incidentDate"),
        "national_id": _text(form, "nationalId"),
        "father_name": _text(form, "fatherName"),
        "mother_name": _text(form, "motherName"),
        "victim_status": _enum(form, "victimStatus", VictimStatus, VictimStatus.KILLED.value),
        "gender": _enum(form, "gender", Gender),
        "perpetrator": _text(form, "perpetrator"),
        "additional_info": _text(form, "additionalInfo"),
        **_common(form),
    }
    return columns, _links(form, "twitterUrl")


def _parse_force(form: FormData) -> Tuple[Dict[str, Any], List[str]]:
    names, has_name = _person_names(form)
    city = _text(form, "city")
    _require(([] if has_name else ["fullName"]) + ([] if city else ["city"]))

    columns = {
        **names,
        "city": city,
        "address": _text(form, "address"),
        "residence_address": _text(form, "residenceAddress"),
        "latitude": _number(form, "latitude", FieldType.FLOAT),
        "longitude": _number(form, "longitude", FieldType.FLOAT),
        "organization": _text(form, "organization"),
        "rank_position": _text(form, "rankPosition"),
        "twitter_handle": _text(form, "twitterHandle"),
        "instagram_handle": _text(form, "instagramHandle"),
        "additional_info": _text(form, "additionalInfo"),
        **_common(form),
    }
    return columns, _links(form, "externalUrl")


def _parse_agent(form: FormData) -> Tuple[Dict[str, Any], List[str]]:
    names, has_name = _person_names(form)
    agent_type = _text(form, "agentType")
    _require(([] if has_name else ["fullName"]) + ([] if agent_type else ["agentType"]))
    agent_type = _enum(form, "agentType", AgentType)

    city = _text(form, "city")
    country = _text(form, "country")
    if agent_type == AgentType.INTERNAL.value and not city:
        raise ValidationError("City is required for internal agents")
    if agent_type == AgentType.FOREIGN.value and not country:
        raise ValidationError("Country is required for foreign agents")

    columns = {
        **names,
        "agent_type": agent_type,
        "city": city,
        "country": country,
        "address": _text(form, "address"),
        "residence_address": _text(form, "residenceAddress"),
        "latitude": _number(form, "latitude", FieldType.FLOAT),
        "longitude": _number(form, "longitude", FieldType.FLOAT),
        "affiliation": _text(form, "affiliation"),
        "role": _text(form, "role"),
        "twitter_handle": _text(form, "twitterHandle"),
        "instagram_handle": _text(form, "instagramHandle"),
        "additional_info": _text(form, "additionalInfo"),
        **_common(form),
    }
    return columns, _links(form, "externalUrl")


def _parse_video(form: FormData) -> Tuple[Dict[str, Any], List[str]]:
    location = _text(form, "location")
    description = _text(form, "description") or _text(form, "additionalInfo")
    _require(([] if location else ["location"]) + ([] if description else ["description"]))
    return {"location": location, "description": description, **_common(form)}, []


def _parse_evidence(form: FormData) -> Tuple[Dict[str, Any], List[str]]:
    title = _text(form, "title")
    description = _text(form, "description") or _text(form, "additionalInfo")
    _require(([] if title else ["title"]) + ([] if description else ["description"]))
    return {"title": title, "description": description, **_common(form)}, []


PARSERS: Dict[SubjectKind, Callable[[FormData], Tuple[Dict[str, Any], List[str]]]] = {
    SubjectKind.VICTIM: _parse_victim,
    SubjectKind.FORCE: _parse_force,
    SubjectKind.AGENT: _parse_agent,
    SubjectKind.VIDEO: _parse_video,
    SubjectKind.EVIDENCE: _parse_evidence,
}


async def parse_submission(kind: SubjectKind, form: FormData) -> Submission:
    """
    Validate a submission form and read its files.

    Raises:
        ValidationError: Missing or malformed fields; nothing has been written
    """
    columns, links = PARSERS[kind](form)

    primary = await collect_files(form, "primaryFile", "primaryFileMeta", many=False)
    supporting = await collect_files(form, "files", "uploadedFiles")

    if kind == SubjectKind.VIDEO:
        supporting = [f for f in supporting if f.media_type == "video"]
        if not (primary or supporting):
            raise ValidationError("At least one video file is required")
    elif kind == SubjectKind.EVIDENCE and not (primary or supporting):
        raise ValidationError("At least one document/file is required")

    return Submission(kind, columns, links, primary, supporting)


def save_submission(conn: sqlite3.Connection, storage: ObjectStorage, submission: Submission) -> int:
    """
    Upload pending files and insert the subject graph.

    Returns:
        The new subject id

    Raises:
        StorageError: If an upload fails (no rows are written)
    """
    primary = store_files(storage, submission.primary)
    for stored in primary:
        stored.is_primary = True
    supporting = store_files(storage, submission.supporting)

    subject_id = db_queries.insert_subject(
        conn, submission.kind, submission.columns, primary + supporting, submission.links
    )
    logger.info(
        f"Created {submission.kind.value} {subject_id} with {len(primary) + len(supporting)} media files"
    )
    return subject_id
