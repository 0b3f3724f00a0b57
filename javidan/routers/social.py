"""
Social prefill API router.

Pulls details from Twitter/X links so submitters do not have to retype
them, and proxies media downloads the browser cannot fetch cross-origin.
"""

import logging

from fastapi import APIRouter, Depends

from javidan.config import Settings
from javidan.dependencies import get_settings
from javidan.errors import ValidationError
from javidan.models import MediaDownloadRequest, MediaDownloadResponse, SocialExtractRequest, SocialExtractResponse
from javidan.services import social

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/social", tags=["social"])


@router.post("/extract", response_model=SocialExtractResponse)
def extract_post(body: SocialExtractRequest, settings: Settings = Depends(get_settings)):
    """Extract prefill data from a tweet or profile URL"""
    if not body.url or not body.url.strip():
        raise ValidationError("URL is required")

    post = social.extract(body.url.strip(), timeout=settings.social_request_timeout)
    return SocialExtractResponse(data=post)


@router.post("/download", response_model=MediaDownloadResponse)
def download_media(body: MediaDownloadRequest, settings: Settings = Depends(get_settings)):
    """Download a media file and return it base64-encoded"""
    if not body.url or not body.url.strip():
        raise ValidationError("URL is required")

    result = social.download_media(body.url.strip(), body.type, timeout=settings.social_request_timeout)
    logger.info(f"Downloaded {result['size']} bytes from {body.url}")
    return MediaDownloadResponse(**result)
