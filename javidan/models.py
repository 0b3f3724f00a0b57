"""
Pydantic models for the archive API.

Subject and media models use snake_case attributes and serialize with
camelCase aliases, which is the shape the browser forms and pages consume.
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# GENERAL MODELS
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    database: str


class ErrorResponse(BaseModel):
    """Error response"""
    success: bool = False
    error: str


# ============================================================================
# MEDIA MODELS
# ============================================================================

class UploadedFileMeta(CamelModel):
    """Metadata for a file the browser already uploaded through a presigned URL"""
    key: str = Field(validation_alias=AliasChoices("key", "r2Key", "r2_key"))
    public_url: str
    file_name: str
    file_size: int
    type: Optional[str] = None  # image, video or document
    content_type: Optional[str] = None


class MediaSummary(BaseModel):
    """Kind and URL pair used in list views"""
    type: str
    url: str


class MediaItem(CamelModel):
    """Media row attached to a subject"""
    id: int
    type: str
    r2_key: str
    public_url: str
    file_name: str
    file_size: int
    is_primary: bool
    uploaded_at: str


class LinkItem(CamelModel):
    """External or Twitter link attached to a subject"""
    id: int
    url: str
    created_at: str


# ============================================================================
# SUBJECT MODELS
# ============================================================================

class SubjectBase(CamelModel):
    """Fields shared by every subject kind"""
    id: int
    public_id: str
    hashtags: Optional[str] = None
    submitter_twitter_id: Optional[str] = None
    verified: bool = False
    verification_level: str = "unverified"
    evidence_count: int = 0
    submitted_at: str
    updated_at: str
    media: List[MediaSummary] = []


class PersonNames(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    first_name_en: Optional[str] = None
    last_name_en: Optional[str] = None
    full_name: Optional[str] = None
    full_name_en: Optional[str] = None


class VictimRecord(SubjectBase, PersonNames):
    location: str
    birth_year: Optional[int] = None
    age: Optional[int] = None
    incident_date: Optional[str] = None
    national_id: Optional[str] = None
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    victim_status: Optional[str] = None
    gender: Optional[str] = None
    perpetrator: Optional[str] = None
    additional_info: Optional[str] = None


class SecurityForce(SubjectBase, PersonNames):
    city: str
    address: Optional[str] = None
    residence_address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    organization: Optional[str] = None
    rank_position: Optional[str] = None
    twitter_handle: Optional[str] = None
    instagram_handle: Optional[str] = None
    additional_info: Optional[str] = None


class IrAgent(SubjectBase, PersonNames):
    agent_type: str
    city: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None
    residence_address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    affiliation: Optional[str] = None
    role: Optional[str] = None
    twitter_handle: Optional[str] = None
    instagram_handle: Optional[str] = None
    additional_info: Optional[str] = None


class VideoSubmission(SubjectBase):
    location: str
    description: str


class EvidenceSubmission(SubjectBase):
    title: str
    description: str


# ============================================================================
# REQUEST / RESPONSE MODELS
# ============================================================================

class SubmissionResponse(BaseModel):
    success: bool = True
    id: int
    message: str


class SubjectListResponse(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]]
    count: int


class SearchResponse(BaseModel):
    success: bool = True
    records: List[Dict[str, Any]]
    count: int


class SubjectDetailResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]
    primary_media: Optional[Dict[str, Any]] = Field(default=None, serialization_alias="primaryMedia")
    media: List[Dict[str, Any]]
    links: List[Dict[str, Any]]


class MediaAddResponse(BaseModel):
    success: bool = True
    files_uploaded: int = Field(serialization_alias="filesUploaded")
    message: str = "Files uploaded successfully"


class FieldUpdateRequest(BaseModel):
    record_type: str = Field(alias="recordType")
    record_id: int = Field(alias="recordId")
    field_name: str = Field(alias="fieldName")
    value: Any = None
    submitter_twitter_id: Optional[str] = Field(default=None, alias="submitterTwitterId")


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class CleanRequest(BaseModel):
    secret: Optional[str] = None


class PresignRequest(BaseModel):
    file_name: str = Field(alias="fileName", min_length=1)
    content_type: str = Field(alias="contentType", min_length=1)


class PresignResponse(BaseModel):
    presigned_url: str = Field(serialization_alias="presignedUrl")
    public_url: str = Field(serialization_alias="publicUrl")
    key: str


class SocialExtractRequest(BaseModel):
    url: Optional[str] = None


class ExtractedVideo(BaseModel):
    url: str
    poster: Optional[str] = None


class ExtractedPost(CamelModel):
    """Prefill data pulled from a tweet or profile"""
    text: str = ""
    author: str = ""
    author_name: str = ""
    date: str = ""
    images: List[str] = []
    videos: List[ExtractedVideo] = []
    hashtags: List[str] = []
    is_profile: bool = False


class SocialExtractResponse(BaseModel):
    success: bool = True
    data: ExtractedPost


class MediaDownloadRequest(BaseModel):
    url: Optional[str] = None
    type: Optional[str] = None


class MediaDownloadResponse(BaseModel):
    success: bool = True
    data: str
    size: int
    type: str
