"""
Search API router.

Free-text search over any subject kind, plus the structured victim record
search used for duplicate checks before submitting.
"""

import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, Query

from javidan import db_queries
from javidan.config import Settings
from javidan.dependencies import get_db, get_settings
from javidan.models import SearchResponse
from javidan.subjects import SubjectKind

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse)
def search(
    q: str = Query("", description="Case-insensitive substring to look for"),
    kind: SubjectKind = Query(SubjectKind.VICTIM, description="Subject kind to search"),
    conn: sqlite3.Connection = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Search subjects of one kind.

    An empty query returns the newest subjects, capped at the search limit.
    """
    records = db_queries.search_subjects(conn, kind, q, settings.search_limit)
    return SearchResponse(records=records, count=len(records))


@router.get("/records", response_model=SearchResponse)
def search_records(
    name: Optional[str] = Query(None, description="Substring of any name column"),
    location: Optional[str] = Query(None, description="Substring of the location"),
    birth_year: Optional[int] = Query(None, alias="birthYear", description="Exact birth year"),
    conn: sqlite3.Connection = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Search victim records by name, location and birth year (all optional, AND-ed)"""
    records = db_queries.search_records_by_fields(
        conn, name=name, location=location, birth_year=birth_year, limit=settings.search_limit
    )
    return SearchResponse(records=records, count=len(records))
