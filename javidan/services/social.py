"""
Prefill helpers for Twitter/X links.

Uses the public syndication endpoints to pull text, author, media and
hashtags for a tweet, or name, handle, bio and avatar for a profile. This is
convenience tooling only: failures degrade to partial data where possible.
"""

import base64
import logging
import re
from typing import Dict, Optional
from urllib.parse import urlparse

import requests

from javidan.errors import UpstreamError, ValidationError
from javidan.models import ExtractedPost, ExtractedVideo

logger = logging.getLogger(__name__)

SYNDICATION_TWEET_URL = "https://cdn.syndication.twimg.com/tweet-result"
SYNDICATION_PROFILE_URL = "https://cdn.syndication.twimg.com/timeline/profile"

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
}

TWEET_PATTERNS = [
    re.compile(r"(?:twitter|x)\.com/\w+/status/(\d+)"),
    re.compile(r"(?:twitter|x)\.com/i/web/status/(\d+)"),
]
PROFILE_PATTERN = re.compile(r"(?:twitter|x)\.com/([a-zA-Z0-9_]+)/?$")
RESERVED_PATHS = {"i", "intent", "home", "explore", "notifications"}
MEDIA_HOSTS = {"pbs.twimg.com", "video.twimg.com"}


def extract_tweet_id(url: str) -> Optional[str]:
    for pattern in TWEET_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def extract_username(url: str) -> Optional[str]:
    match = PROFILE_PATTERN.search(url.strip())
    if match and match.group(1) not in RESERVED_PATHS:
        return match.group(1)
    return None


def fetch_tweet(tweet_id: str, timeout: int = 10) -> ExtractedPost:
    """
    Fetch a tweet through the syndication API.

    Args:
        tweet_id: Numeric tweet id
        timeout: Request timeout in seconds

    Returns:
        ExtractedPost with text, author, images, best mp4 video and hashtags

    Raises:
        UpstreamError: If the request fails or returns invalid JSON
    """
    try:
        response = requests.get(
            SYNDICATION_TWEET_URL,
            params={"id": tweet_id, "lang": "en", "token": "abc"},
            headers={
                **BROWSER_HEADERS,
                "Accept": "application/json",
                "Referer": "https://publish.twitter.com/",
            },
            timeout=timeout,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error(f"Syndication API failed for tweet {tweet_id}: {e}")
        raise UpstreamError("Could not extract tweet information. Please try again later.")

    user = data.get("user") or {}
    hashtags = [tag.get("text", "") for tag in (data.get("entities") or {}).get("hashtags") or []]
    images = [photo.get("url") for photo in data.get("photos") or [] if photo.get("url")]

    videos = []
    video = data.get("video") or {}
    mp4_variants = sorted(
        (v for v in video.get("variants") or [] if v.get("type") == "video/mp4"),
        key=lambda v: v.get("bitrate") or 0,
        reverse=True,
    )
    if mp4_variants:
        best_url = mp4_variants[0].get("src") or mp4_variants[0].get("url")
        if best_url:
            videos.append(ExtractedVideo(url=best_url, poster=video.get("poster")))

    return ExtractedPost(
        text=data.get("text") or "",
        author=user.get("screen_name") or "",
        author_name=user.get("name") or "",
        date=data.get("created_at") or "",
        images=images,
        videos=videos,
        hashtags=hashtags,
    )


def fetch_profile(username: str, timeout: int = 10) -> ExtractedPost:
    """
    Fetch profile details from the syndication timeline.

    Falls back to a username-only result when the lookup fails.
    """
    try:
        response = requests.get(
            SYNDICATION_PROFILE_URL,
            params={"screen_name": username, "limit": 1},
            headers={**BROWSER_HEADERS, "Accept": "application/json"},
            timeout=timeout,
        )
        response.raise_for_status()
        user = (response.json() or {}).get("user")
        if not user:
            raise ValueError("No user data in response")
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning(f"Profile extraction failed for {username}: {e}")
        return ExtractedPost(author=username, author_name=username, is_profile=True)

    avatar = user.get("profile_image_url_https")
    return ExtractedPost(
        text=user.get("description") or "",
        author=user.get("screen_name") or username,
        author_name=user.get("name") or "",
        images=[avatar] if avatar else [],
        is_profile=True,
    )


def extract(url: str, timeout: int = 10) -> ExtractedPost:
    """
    Extract prefill data from a tweet or profile URL.

    Raises:
        ValidationError: If the URL is neither a tweet nor a profile
        UpstreamError: If a tweet cannot be fetched
    """
    tweet_id = extract_tweet_id(url)
    if tweet_id:
        return fetch_tweet(tweet_id, timeout)

    username = extract_username(url)
    if not username:
        raise ValidationError("Invalid Twitter/X URL. Please provide a valid profile or tweet URL.")
    return fetch_profile(username, timeout)


def download_media(url: str, media_type: Optional[str] = None, timeout: int = 10) -> Dict[str, object]:
    """
    Download a Twitter media file and return it base64-encoded.

    Only https URLs on MEDIA_HOSTS are fetched.

    Raises:
        ValidationError: If the URL is not a Twitter media URL
        UpstreamError: If the download fails or is empty
    """
    parsed = urlparse(url)
    if parsed.scheme != "https" or parsed.hostname not in MEDIA_HOSTS:
        raise ValidationError("Only Twitter media URLs can be downloaded")

    accept = "video/*" if media_type == "video" else "image/*"
    try:
        response = requests.get(
            url,
            headers={**BROWSER_HEADERS, "Accept": accept, "Referer": "https://twitter.com/"},
            timeout=timeout,
            allow_redirects=False,
        )
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.error(f"Media download failed for {url}: {e}")
        raise UpstreamError("Failed to download media file")

    content = response.content
    if not content:
        raise UpstreamError("Downloaded file is empty (0 bytes)")

    fallback_type = "video/mp4" if media_type == "video" else "image/jpeg"
    return {
        "data": base64.b64encode(content).decode("ascii"),
        "size": len(content),
        "type": response.headers.get("Content-Type") or fallback_type,
    }
