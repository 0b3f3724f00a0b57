"""
Registry of subject kinds.

Each kind maps to its table, the media foreign key that points at it, its
link table (if any), the columns folded into search_text, and the fields
that may be filled in by community contributors.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class SubjectKind(str, Enum):
    """Top-level entity kinds"""
    VICTIM = "victim"
    FORCE = "force"
    AGENT = "agent"
    VIDEO = "video"
    EVIDENCE = "evidence"


class FieldType(str, Enum):
    TEXT = "text"
    INT = "int"
    FLOAT = "float"
    DATE = "date"


class VictimStatus(str, Enum):
    EXECUTED = "executed"
    KILLED = "killed"
    INCARCERATED = "incarcerated"
    DISAPPEARED = "disappeared"
    INJURED = "injured"
    OTHER = "other"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class AgentType(str, Enum):
    INTERNAL = "internal"
    FOREIGN = "foreign"


class VerificationLevel(str, Enum):
    """Ordinal trust ladder, lowest first"""
    UNVERIFIED = "unverified"
    COMMUNITY = "community"
    DOCUMENT = "document"
    TRUSTED = "trusted"


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    DOCUMENT = "document"


NAME_COLUMNS = (
    "full_name", "full_name_en",
    "first_name", "last_name",
    "first_name_en", "last_name_en",
)


@dataclass(frozen=True)
class SubjectSpec:
    kind: SubjectKind
    table: str
    media_fk: str
    label: str
    search_columns: Tuple[str, ...]
    fillable: Dict[str, FieldType] = field(default_factory=dict)
    link_table: Optional[str] = None
    link_fk: Optional[str] = None
    has_names: bool = False
    list_limit: int = 100


SUBJECTS: Dict[SubjectKind, SubjectSpec] = {
    SubjectKind.VICTIM: SubjectSpec(
        kind=SubjectKind.VICTIM,
        table="records",
        media_fk="record_id",
        label="Record",
        search_columns=NAME_COLUMNS + (
            "location", "national_id", "father_name", "mother_name",
            "perpetrator", "hashtags", "additional_info",
        ),
        fillable={
            "first_name_en": FieldType.TEXT,
            "last_name_en": FieldType.TEXT,
            "birth_year": FieldType.INT,
            "age": FieldType.INT,
            "incident_date": FieldType.DATE,
            "national_id": FieldType.TEXT,
            "father_name": FieldType.TEXT,
            "mother_name": FieldType.TEXT,
            "perpetrator": FieldType.TEXT,
            "hashtags": FieldType.TEXT,
            "additional_info": FieldType.TEXT,
        },
        link_table="twitter_links",
        link_fk="record_id",
        has_names=True,
    ),
    SubjectKind.FORCE: SubjectSpec(
        kind=SubjectKind.FORCE,
        table="security_forces",
        media_fk="security_force_id",
        label="Security force",
        search_columns=NAME_COLUMNS + (
            "city", "address", "organization", "rank_position",
            "twitter_handle", "instagram_handle", "hashtags", "additional_info",
        ),
        fillable={
            "first_name_en": FieldType.TEXT,
            "last_name_en": FieldType.TEXT,
            "address": FieldType.TEXT,
            "residence_address": FieldType.TEXT,
            "latitude": FieldType.FLOAT,
            "longitude": FieldType.FLOAT,
            "organization": FieldType.TEXT,
            "rank_position": FieldType.TEXT,
            "twitter_handle": FieldType.TEXT,
            "instagram_handle": FieldType.TEXT,
            "hashtags": FieldType.TEXT,
            "additional_info": FieldType.TEXT,
        },
        link_table="external_links",
        link_fk="security_force_id",
        has_names=True,
    ),
    SubjectKind.AGENT: SubjectSpec(
        kind=SubjectKind.AGENT,
        table="ir_agents",
        media_fk="ir_agent_id",
        label="Agent",
        search_columns=NAME_COLUMNS + (
            "city", "country", "address", "affiliation", "role",
            "twitter_handle", "instagram_handle", "hashtags", "additional_info",
        ),
        fillable={
            "first_name_en": FieldType.TEXT,
            "last_name_en": FieldType.TEXT,
            "city": FieldType.TEXT,
            "country": FieldType.TEXT,
            "address": FieldType.TEXT,
            "residence_address": FieldType.TEXT,
            "latitude": FieldType.FLOAT,
            "longitude": FieldType.FLOAT,
            "affiliation": FieldType.TEXT,
            "role": FieldType.TEXT,
            "twitter_handle": FieldType.TEXT,
            "instagram_handle": FieldType.TEXT,
            "hashtags": FieldType.TEXT,
            "additional_info": FieldType.TEXT,
        },
        link_table="external_links",
        link_fk="ir_agent_id",
        has_names=True,
    ),
    SubjectKind.VIDEO: SubjectSpec(
        kind=SubjectKind.VIDEO,
        table="videos",
        media_fk="video_id",
        label="Video",
        search_columns=("location", "description", "hashtags"),
        fillable={"hashtags": FieldType.TEXT},
    ),
    SubjectKind.EVIDENCE: SubjectSpec(
        kind=SubjectKind.EVIDENCE,
        table="evidence",
        media_fk="evidence_id",
        label="Evidence",
        search_columns=("title", "description", "hashtags"),
        fillable={"hashtags": FieldType.TEXT},
    ),
}

# Legacy record-type tags accepted by the field-update endpoint
KIND_ALIASES = {"document": SubjectKind.EVIDENCE}


def get_spec(kind) -> SubjectSpec:
    return SUBJECTS[SubjectKind(kind)]


def resolve_kind(value: str) -> Optional[SubjectKind]:
    """Map a record-type tag to a SubjectKind, or None if unknown"""
    if value in KIND_ALIASES:
        return KIND_ALIASES[value]
    try:
        return SubjectKind(value)
    except ValueError:
        return None
