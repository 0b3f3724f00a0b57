"""
Database schema for the public-submission archive.

Five subject tables (records, security_forces, ir_agents, videos, evidence)
plus media, link and field-update audit tables. search_text on every subject
table is maintained by triggers, never by application code.
"""

from javidan.subjects import SUBJECTS

# SQL Schema for the archive database
TABLES_SQL = """
-- Victim records
CREATE TABLE IF NOT EXISTS records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    public_id TEXT UNIQUE NOT NULL,
    first_name TEXT,
    last_name TEXT,
    first_name_en TEXT,
    last_name_en TEXT,
    full_name TEXT,
    full_name_en TEXT,
    location TEXT NOT NULL,
    birth_year INTEGER,
    age INTEGER,
    incident_date TEXT,
    national_id TEXT,
    father_name TEXT,
    mother_name TEXT,
    victim_status TEXT DEFAULT 'killed'
        CHECK(victim_status IN ('executed', 'killed', 'incarcerated', 'disappeared', 'injured', 'other')),
    gender TEXT CHECK(gender IN ('male', 'female')),
    perpetrator TEXT,
    hashtags TEXT,
    additional_info TEXT,
    submitter_twitter_id TEXT,
    search_text TEXT,
    verified BOOLEAN NOT NULL DEFAULT 0,
    verification_level TEXT NOT NULL DEFAULT 'unverified'
        CHECK(verification_level IN ('unverified', 'community', 'document', 'trusted')),
    evidence_count INTEGER NOT NULL DEFAULT 0,
    submitted_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Security force personnel
CREATE TABLE IF NOT EXISTS security_forces (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    public_id TEXT UNIQUE NOT NULL,
    first_name TEXT,
    last_name TEXT,
    first_name_en TEXT,
    last_name_en TEXT,
    full_name TEXT,
    full_name_en TEXT,
    city TEXT NOT NULL,
    address TEXT,
    residence_address TEXT,
    latitude REAL,
    longitude REAL,
    organization TEXT,
    rank_position TEXT,
    twitter_handle TEXT,
    instagram_handle TEXT,
    additional_info TEXT,
    hashtags TEXT,
    search_text TEXT,
    submitter_twitter_id TEXT,
    verified BOOLEAN NOT NULL DEFAULT 0,
    verification_level TEXT NOT NULL DEFAULT 'unverified'
        CHECK(verification_level IN ('unverified', 'community', 'document', 'trusted')),
    evidence_count INTEGER NOT NULL DEFAULT 0,
    submitted_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Regime agents (internal or foreign)
CREATE TABLE IF NOT EXISTS ir_agents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    public_id TEXT UNIQUE NOT NULL,
    first_name TEXT,
    last_name TEXT,
    first_name_en TEXT,
    last_name_en TEXT,
    full_name TEXT,
    full_name_en TEXT,
    agent_type TEXT NOT NULL CHECK(agent_type IN ('internal', 'foreign')),
    city TEXT,
    country TEXT,
    address TEXT,
    residence_address TEXT,
    latitude REAL,
    longitude REAL,
    affiliation TEXT,
    role TEXT,
    twitter_handle TEXT,
    instagram_handle TEXT,
    additional_info TEXT,
    hashtags TEXT,
    search_text TEXT,
    submitter_twitter_id TEXT,
    verified BOOLEAN NOT NULL DEFAULT 0,
    verification_level TEXT NOT NULL DEFAULT 'unverified'
        CHECK(verification_level IN ('unverified', 'community', 'document', 'trusted')),
    evidence_count INTEGER NOT NULL DEFAULT 0,
    submitted_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Video submissions
CREATE TABLE IF NOT EXISTS videos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    public_id TEXT UNIQUE NOT NULL,
    location TEXT NOT NULL,
    description TEXT NOT NULL,
    hashtags TEXT,
    search_text TEXT,
    submitter_twitter_id TEXT,
    verified BOOLEAN NOT NULL DEFAULT 0,
    verification_level TEXT NOT NULL DEFAULT 'unverified'
        CHECK(verification_level IN ('unverified', 'community', 'document', 'trusted')),
    evidence_count INTEGER NOT NULL DEFAULT 0,
    submitted_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Documentary evidence submissions
CREATE TABLE IF NOT EXISTS evidence (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    public_id TEXT UNIQUE NOT NULL,
    title TEXT NOT NULL,
    description TEXT NOT NULL,
    hashtags TEXT,
    search_text TEXT,
    submitter_twitter_id TEXT,
    verified BOOLEAN NOT NULL DEFAULT 0,
    verification_level TEXT NOT NULL DEFAULT 'unverified'
        CHECK(verification_level IN ('unverified', 'community', 'document', 'trusted')),
    evidence_count INTEGER NOT NULL DEFAULT 0,
    submitted_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Media attached to exactly one subject
CREATE TABLE IF NOT EXISTS media (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    record_id INTEGER,
    security_force_id INTEGER,
    ir_agent_id INTEGER,
    video_id INTEGER,
    evidence_id INTEGER,
    type TEXT NOT NULL CHECK(type IN ('image', 'video', 'document')),
    r2_key TEXT NOT NULL,
    public_url TEXT NOT NULL,
    file_name TEXT NOT NULL,
    file_size INTEGER NOT NULL,
    is_primary BOOLEAN NOT NULL DEFAULT 0,
    uploaded_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (record_id) REFERENCES records(id) ON DELETE CASCADE,
    FOREIGN KEY (security_force_id) REFERENCES security_forces(id) ON DELETE CASCADE,
    FOREIGN KEY (ir_agent_id) REFERENCES ir_agents(id) ON DELETE CASCADE,
    FOREIGN KEY (video_id) REFERENCES videos(id) ON DELETE CASCADE,
    FOREIGN KEY (evidence_id) REFERENCES evidence(id) ON DELETE CASCADE,
    CHECK (
        (record_id IS NOT NULL) + (security_force_id IS NOT NULL) + (ir_agent_id IS NOT NULL)
        + (video_id IS NOT NULL) + (evidence_id IS NOT NULL) = 1
    )
);

-- Twitter links (victim records only)
CREATE TABLE IF NOT EXISTS twitter_links (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    record_id INTEGER NOT NULL,
    url TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (record_id) REFERENCES records(id) ON DELETE CASCADE
);

-- External links (security forces and agents)
CREATE TABLE IF NOT EXISTS external_links (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    security_force_id INTEGER,
    ir_agent_id INTEGER,
    url TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (security_force_id) REFERENCES security_forces(id) ON DELETE CASCADE,
    FOREIGN KEY (ir_agent_id) REFERENCES ir_agents(id) ON DELETE CASCADE
);

-- Audit log of community field fills
CREATE TABLE IF NOT EXISTS field_updates (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    record_type TEXT NOT NULL,
    record_id INTEGER NOT NULL,
    field_name TEXT NOT NULL,
    old_value TEXT,
    new_value TEXT NOT NULL,
    submitter_twitter_id TEXT,
    submitter_ip TEXT,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Create indexes for better query performance
CREATE INDEX IF NOT EXISTS idx_records_submitted ON records(submitted_at DESC);
CREATE INDEX IF NOT EXISTS idx_records_location ON records(location);
CREATE INDEX IF NOT EXISTS idx_records_names ON records(first_name, last_name);
CREATE INDEX IF NOT EXISTS idx_security_forces_submitted ON security_forces(submitted_at DESC);
CREATE INDEX IF NOT EXISTS idx_ir_agents_submitted ON ir_agents(submitted_at DESC);
CREATE INDEX IF NOT EXISTS idx_videos_submitted ON videos(submitted_at DESC);
CREATE INDEX IF NOT EXISTS idx_evidence_submitted ON evidence(submitted_at DESC);
CREATE INDEX IF NOT EXISTS idx_media_record ON media(record_id);
CREATE INDEX IF NOT EXISTS idx_media_security_force ON media(security_force_id);
CREATE INDEX IF NOT EXISTS idx_media_ir_agent ON media(ir_agent_id);
CREATE INDEX IF NOT EXISTS idx_media_video ON media(video_id);
CREATE INDEX IF NOT EXISTS idx_media_evidence ON media(evidence_id);
CREATE INDEX IF NOT EXISTS idx_twitter_links_record ON twitter_links(record_id);
CREATE INDEX IF NOT EXISTS idx_external_links_force ON external_links(security_force_id);
CREATE INDEX IF NOT EXISTS idx_external_links_agent ON external_links(ir_agent_id);
CREATE INDEX IF NOT EXISTS idx_field_updates_ip ON field_updates(submitter_ip, created_at);
"""


def _primary_media_indexes() -> str:
    """At most one primary media row per subject"""
    statements = []
    for spec in SUBJECTS.values():
        statements.append(
            f"CREATE UNIQUE INDEX IF NOT EXISTS uq_media_primary_{spec.media_fk} "
            f"ON media({spec.media_fk}) "
            f"WHERE is_primary = 1 AND {spec.media_fk} IS NOT NULL;"
        )
    return "\n".join(statements)


def _search_text_triggers() -> str:
    """Keep search_text as a lowercase concatenation of searchable columns"""
    statements = []
    for spec in SUBJECTS.values():
        concat = " || ' ' || ".join(f"COALESCE({col}, '')" for col in spec.search_columns)
        refresh = (
            f"UPDATE {spec.table} SET search_text = LOWER({concat}) "
            f"WHERE id = NEW.id;"
        )
        statements.append(
            f"CREATE TRIGGER IF NOT EXISTS trg_{spec.table}_search_insert "
            f"AFTER INSERT ON {spec.table} BEGIN {refresh} END;"
        )
        statements.append(
            f"CREATE TRIGGER IF NOT EXISTS trg_{spec.table}_search_update "
            f"AFTER UPDATE OF {', '.join(spec.search_columns)} ON {spec.table} "
            f"BEGIN {refresh} END;"
        )
    return "\n".join(statements)


SCHEMA_SQL = "\n".join([TABLES_SQL, _primary_media_indexes(), _search_text_triggers()])

# Tables wiped by clean_database, children first
ALL_TABLES = [
    "field_updates",
    "media",
    "twitter_links",
    "external_links",
    "records",
    "security_forces",
    "ir_agents",
    "videos",
    "evidence",
]
