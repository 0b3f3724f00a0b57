"""
Database query helpers for the archive API.

These functions encapsulate the SQL for subjects, media, links and field
fills and return structured data for the routers. Every write runs inside
a single transaction.
"""

import json
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from javidan.database import format_timestamp, transaction, utc_now
from javidan.errors import ConflictError, NotFoundError, RateLimitError, ValidationError
from javidan.models import (
    EvidenceSubmission,
    IrAgent,
    LinkItem,
    MediaItem,
    SecurityForce,
    VictimRecord,
    VideoSubmission,
)
from javidan.services.text_utils import coerce_value
from javidan.services.uploads import StoredFile
from javidan.subjects import NAME_COLUMNS, SubjectKind, SubjectSpec, get_spec

logger = logging.getLogger(__name__)

SUBJECT_MODELS = {
    SubjectKind.VICTIM: VictimRecord,
    SubjectKind.FORCE: SecurityForce,
    SubjectKind.AGENT: IrAgent,
    SubjectKind.VIDEO: VideoSubmission,
    SubjectKind.EVIDENCE: EvidenceSubmission,
}


class Predicates:
    """
    Accumulates optional WHERE clauses and their parameters.

    Clauses are AND-ed; with no clauses the WHERE is omitted entirely.
    """

    def __init__(self):
        self.clauses: List[str] = []
        self.params: List[Any] = []

    def add(self, clause: str, *params) -> "Predicates":
        self.clauses.append(clause)
        self.params.extend(params)
        return self

    def sql(self) -> str:
        if not self.clauses:
            return ""
        return "WHERE " + " AND ".join(f"({clause})" for clause in self.clauses)


def like_pattern(text: str) -> str:
    """Lowercased substring pattern with LIKE wildcards in the input escaped"""
    escaped = text.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# ============================================================================
# ROW CONVERSION
# ============================================================================

def row_to_subject(kind: SubjectKind, row: sqlite3.Row) -> Dict[str, Any]:
    """Convert a subject row (with optional media_json) to its camelCase dict"""
    data = dict(row)
    data.pop("search_text", None)
    media_json = data.pop("media_json", None)
    data["media"] = json.loads(media_json) if media_json else []
    model = SUBJECT_MODELS[kind].model_validate(data)
    return model.model_dump(by_alias=True)


# ============================================================================
# WRITES
# ============================================================================

def _insert_media(conn: sqlite3.Connection, spec: SubjectSpec, subject_id: int, files: List[StoredFile]):
    for stored in files:
        conn.execute(f"""
            INSERT INTO media ({spec.media_fk}, type, r2_key, public_url, file_name, file_size, is_primary)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            subject_id,
            stored.media_type,
            stored.key,
            stored.public_url,
            stored.file_name,
            stored.file_size,
            stored.is_primary,
        ))


def _refresh_evidence_count(conn: sqlite3.Connection, spec: SubjectSpec, subject_id: int,
                            touch: bool = False) -> int:
    """Recompute evidence_count as the exact number of media rows"""
    count = conn.execute(
        f"SELECT COUNT(*) FROM media WHERE {spec.media_fk} = ?", (subject_id,)
    ).fetchone()[0]
    if touch:
        conn.execute(
            f"UPDATE {spec.table} SET evidence_count = ?, updated_at = ? WHERE id = ?",
            (count, format_timestamp(utc_now()), subject_id)
        )
    else:
        conn.execute(
            f"UPDATE {spec.table} SET evidence_count = ? WHERE id = ?",
            (count, subject_id)
        )
    return count


def _has_primary(conn: sqlite3.Connection, spec: SubjectSpec, subject_id: int) -> bool:
    row = conn.execute(
        f"SELECT id FROM media WHERE {spec.media_fk} = ? AND is_primary = 1 LIMIT 1",
        (subject_id,)
    ).fetchone()
    return row is not None


def _subject_exists(conn: sqlite3.Connection, spec: SubjectSpec, subject_id: int) -> bool:
    row = conn.execute(f"SELECT id FROM {spec.table} WHERE id = ?", (subject_id,)).fetchone()
    return row is not None


def insert_subject(
    conn: sqlite3.Connection,
    kind: SubjectKind,
    columns: Dict[str, Any],
    files: List[StoredFile],
    links: Optional[List[str]] = None
) -> int:
    """
    Create a subject together with its media and link rows.

    Args:
        conn: Database connection
        kind: Subject kind
        columns: Column values for the subject row
        files: Stored files; is_primary must already be decided
        links: External/Twitter URLs (blank ones are dropped)

    Returns:
        The new subject id
    """
    spec = get_spec(kind)
    values = dict(columns)
    values["public_id"] = str(uuid.uuid4())
    names = list(values)

    with transaction(conn):
        cursor = conn.execute(
            f"INSERT INTO {spec.table} ({', '.join(names)}) "
            f"VALUES ({', '.join('?' for _ in names)})",
            [values[name] for name in names]
        )
        subject_id = cursor.lastrowid

        if spec.link_table:
            for url in links or []:
                if url and url.strip():
                    conn.execute(
                        f"INSERT INTO {spec.link_table} ({spec.link_fk}, url) VALUES (?, ?)",
                        (subject_id, url.strip())
                    )

        _insert_media(conn, spec, subject_id, files)
        _refresh_evidence_count(conn, spec, subject_id)

    return subject_id


def add_media(conn: sqlite3.Connection, kind: SubjectKind, subject_id: int, files: List[StoredFile]) -> int:
    """
    Append media to an existing subject.

    The first file of the batch becomes primary only if it is an image and
    the subject has no primary media yet.

    Returns:
        Number of media rows inserted

    Raises:
        NotFoundError: If the subject does not exist
    """
    spec = get_spec(kind)

    with transaction(conn):
        if not _subject_exists(conn, spec, subject_id):
            raise NotFoundError(f"{spec.label} not found")

        has_primary = _has_primary(conn, spec, subject_id)
        for index, stored in enumerate(files):
            stored.is_primary = index == 0 and stored.media_type == "image" and not has_primary

        _insert_media(conn, spec, subject_id, files)
        _refresh_evidence_count(conn, spec, subject_id, touch=True)

    return len(files)


def delete_primary_media(conn: sqlite3.Connection, kind: SubjectKind, subject_id: int) -> bool:
    """Remove the subject's primary media row; False if it has none"""
    spec = get_spec(kind)
    with transaction(conn):
        cursor = conn.execute(
            f"DELETE FROM media WHERE {spec.media_fk} = ? AND is_primary = 1",
            (subject_id,)
        )
        if cursor.rowcount == 0:
            return False
        _refresh_evidence_count(conn, spec, subject_id, touch=True)
    return True


def delete_subject(conn: sqlite3.Connection, kind: SubjectKind, subject_id: int) -> bool:
    """Delete a subject and its children; False if it does not exist"""
    spec = get_spec(kind)
    with transaction(conn):
        if not _subject_exists(conn, spec, subject_id):
            return False
        conn.execute(f"DELETE FROM media WHERE {spec.media_fk} = ?", (subject_id,))
        if spec.link_table:
            conn.execute(f"DELETE FROM {spec.link_table} WHERE {spec.link_fk} = ?", (subject_id,))
        conn.execute(f"DELETE FROM {spec.table} WHERE id = ?", (subject_id,))
    return True


def fill_field(
    conn: sqlite3.Connection,
    kind: SubjectKind,
    subject_id: int,
    field_name: str,
    value: Any,
    submitter_ip: str,
    submitter_twitter_id: Optional[str] = None,
    daily_limit: int = 10,
    now: Optional[datetime] = None
):
    """
    Set one currently-empty field on a subject and record it in the audit log.

    Raises:
        ValidationError: Field not fillable for this kind, or value invalid/empty
        RateLimitError: The contributor IP already made daily_limit fills today (UTC)
        NotFoundError: The subject does not exist
        ConflictError: The field already holds a value
    """
    spec = get_spec(kind)
    field_type = spec.fillable.get(field_name)
    if field_type is None:
        raise ValidationError(f"Invalid field '{field_name}' for record type '{kind.value}'")

    new_value = coerce_value(value, field_type, field_name)
    if new_value is None:
        raise ValidationError("Missing required fields: value")

    now = now or utc_now()
    day_start = format_timestamp(now)[:10] + " 00:00:00"

    with transaction(conn):
        update_count = conn.execute("""
            SELECT COUNT(*) FROM field_updates
            WHERE submitter_ip = ? AND created_at >= ?
        """, (submitter_ip, day_start)).fetchone()[0]
        if update_count >= daily_limit:
            raise RateLimitError(f"Rate limit exceeded. Maximum {daily_limit} updates per day.")

        # field_name is checked against the allow-list above
        row = conn.execute(
            f"SELECT {field_name} FROM {spec.table} WHERE id = ?", (subject_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError(f"{spec.label} not found")

        current = row[0]
        if current is not None and current != "":
            raise ConflictError("Field already has a value. Cannot overwrite existing data.")

        conn.execute(
            f"UPDATE {spec.table} SET {field_name} = ?, updated_at = ? WHERE id = ?",
            (new_value, format_timestamp(now), subject_id)
        )
        conn.execute("""
            INSERT INTO field_updates (
                record_type, record_id, field_name, old_value, new_value,
                submitter_twitter_id, submitter_ip, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            kind.value,
            subject_id,
            field_name,
            current,
            str(new_value),
            submitter_twitter_id,
            submitter_ip,
            format_timestamp(now),
        ))


# ============================================================================
# READS
# ============================================================================

def _select_subjects(
    conn: sqlite3.Connection,
    spec: SubjectSpec,
    predicates: Predicates,
    limit: int,
    offset: int = 0
) -> List[Dict[str, Any]]:
    # Media is aggregated in a scalar subquery so subjects are not multiplied
    query = f"""
        SELECT
            t.*,
            (SELECT json_group_array(json_object('type', m.type, 'url', m.public_url))
             FROM media m
             WHERE m.{spec.media_fk} = t.id) AS media_json
        FROM {spec.table} t
        {predicates.sql()}
        ORDER BY t.submitted_at DESC, t.id DESC
        LIMIT ? OFFSET ?
    """
    cursor = conn.execute(query, [*predicates.params, limit, offset])
    return [row_to_subject(spec.kind, row) for row in cursor.fetchall()]


def list_subjects(conn: sqlite3.Connection, kind: SubjectKind, limit: int, offset: int = 0) -> List[Dict[str, Any]]:
    """
    Get subjects of one kind, newest first.

    Args:
        conn: Database connection
        kind: Subject kind
        limit: Maximum number of subjects
        offset: Offset for pagination
    """
    return _select_subjects(conn, get_spec(kind), Predicates(), limit, offset)


def search_subjects(conn: sqlite3.Connection, kind: SubjectKind, query: str, limit: int) -> List[Dict[str, Any]]:
    """
    Case-insensitive substring search over the denormalized search_text.

    A blank query behaves like list_subjects(limit).
    """
    spec = get_spec(kind)
    predicates = Predicates()
    if query and query.strip():
        predicates.add("t.search_text LIKE ? ESCAPE '\\'", like_pattern(query))
    return _select_subjects(conn, spec, predicates, limit)


def search_records_by_fields(
    conn: sqlite3.Connection,
    name: Optional[str] = None,
    location: Optional[str] = None,
    birth_year: Optional[int] = None,
    limit: int = 100
) -> List[Dict[str, Any]]:
    """
    Search victim records by any combination of name, location and birth year.

    Name and location are case-insensitive substring matches; birth year is
    an exact match. Supplied predicates are AND-ed.
    """
    spec = get_spec(SubjectKind.VICTIM)
    predicates = Predicates()

    if name and name.strip():
        pattern = like_pattern(name)
        name_columns = NAME_COLUMNS
        predicates.add(
            " OR ".join(f"LOWER(t.{col}) LIKE ? ESCAPE '\\'" for col in name_columns),
            *([pattern] * len(name_columns))
        )
    if location and location.strip():
        predicates.add("LOWER(t.location) LIKE ? ESCAPE '\\'", like_pattern(location))
    if birth_year is not None:
        predicates.add("t.birth_year = ?", birth_year)

    return _select_subjects(conn, spec, predicates, limit)


def get_subject_detail(conn: sqlite3.Connection, kind: SubjectKind, subject_id: int) -> Optional[Dict[str, Any]]:
    """
    Get a subject with its media and links.

    Returns:
        Dict with data, primaryMedia, media (supporting only) and links,
        or None if the subject does not exist
    """
    spec = get_spec(kind)
    row = conn.execute(f"SELECT * FROM {spec.table} WHERE id = ?", (subject_id,)).fetchone()
    if row is None:
        return None

    cursor = conn.execute(f"""
        SELECT id, type, r2_key, public_url, file_name, file_size, is_primary, uploaded_at
        FROM media
        WHERE {spec.media_fk} = ?
        ORDER BY is_primary DESC, uploaded_at, id
    """, (subject_id,))
    media = [MediaItem.model_validate(dict(r)).model_dump(by_alias=True) for r in cursor.fetchall()]
    summary = [{"type": m["type"], "url": m["publicUrl"]} for m in media]

    primary_media = None
    if media and media[0]["isPrimary"]:
        primary_media = media.pop(0)

    links = []
    if spec.link_table:
        cursor = conn.execute(f"""
            SELECT id, url, created_at
            FROM {spec.link_table}
            WHERE {spec.link_fk} = ?
            ORDER BY created_at ASC, id ASC
        """, (subject_id,))
        links = [LinkItem.model_validate(dict(r)).model_dump(by_alias=True) for r in cursor.fetchall()]

    data = row_to_subject(kind, row)
    data["media"] = summary

    return {
        "data": data,
        "primaryMedia": primary_media,
        "media": media,
        "links": links,
    }


def subject_exists(conn: sqlite3.Connection, kind: SubjectKind, subject_id: int) -> bool:
    return _subject_exists(conn, get_spec(kind), subject_id)


def count_rows(conn: sqlite3.Connection, table: str) -> int:
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def subject_counts(conn: sqlite3.Connection) -> Dict[str, int]:
    """Row counts of every subject table keyed by kind"""
    return {kind.value: count_rows(conn, get_spec(kind).table) for kind in SubjectKind}
