"""Database schema definition and initialization."""

from __future__ import annotations

import logging

from premisehub.storage.connection import get_connection

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """\
-- Registered upstream origins
CREATE TABLE IF NOT EXISTS sources (
    id                  TEXT PRIMARY KEY,
    platform            TEXT NOT NULL CHECK (platform IN (
                            'youtube', 'reddit', 'tiktok'
                        )),
    url                 TEXT NOT NULL UNIQUE,
    name                TEXT NOT NULL,
    registered_at       TEXT NOT NULL,
    last_extraction_at  TEXT
);

-- Canonical content items extracted from sources
CREATE TABLE IF NOT EXISTS premises (
    id                  TEXT PRIMARY KEY,
    source_id           TEXT NOT NULL REFERENCES sources(id) ON DELETE CASCADE,
    source_platform     TEXT NOT NULL,          -- snapshot at extraction time
    source_url          TEXT NOT NULL,
    source_name         TEXT NOT NULL,
    link                TEXT NOT NULL UNIQUE,   -- dedup key
    body                TEXT NOT NULL,
    short_description   TEXT NOT NULL,
    first_person        TEXT NOT NULL DEFAULT '',
    title               TEXT NOT NULL DEFAULT '',
    author              TEXT NOT NULL DEFAULT '',
    observed_at         TEXT NOT NULL,
    like_count          INTEGER NOT NULL DEFAULT 0,
    comment_count       INTEGER NOT NULL DEFAULT 0,
    view_count          INTEGER NOT NULL DEFAULT 0,
    simulated           INTEGER NOT NULL DEFAULT 0,
    niche               TEXT NOT NULL DEFAULT '',
    sub_niche           TEXT NOT NULL DEFAULT '',
    used                INTEGER NOT NULL DEFAULT 0,
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL
);

-- Categorization labels
CREATE TABLE IF NOT EXISTS niches (
    id              TEXT PRIMARY KEY,
    name            TEXT NOT NULL UNIQUE,
    sub_niches      TEXT NOT NULL DEFAULT '[]',     -- JSON array, ordered
    created_at      TEXT NOT NULL
);

-- Indexes: sources
CREATE INDEX IF NOT EXISTS idx_sources_platform ON sources(platform);

-- Indexes: premises
CREATE INDEX IF NOT EXISTS idx_premises_source_id ON premises(source_id);
CREATE INDEX IF NOT EXISTS idx_premises_source_platform ON premises(source_platform);
CREATE INDEX IF NOT EXISTS idx_premises_observed_at ON premises(observed_at);
CREATE INDEX IF NOT EXISTS idx_premises_created_at ON premises(created_at);
CREATE INDEX IF NOT EXISTS idx_premises_niche ON premises(niche, sub_niche);
CREATE INDEX IF NOT EXISTS idx_premises_used ON premises(used);
"""


def init_db(database_path: str) -> None:
    """Create all tables and indexes if they do not already exist."""
    with get_connection(database_path) as conn:
        conn.executescript(_SCHEMA_SQL)
    logger.info("Database initialized at %s", database_path)
