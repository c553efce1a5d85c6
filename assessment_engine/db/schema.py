"""
SQLite schema DDL for the assessment store.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent.

Tables (FK order):
  1. assessments               (no FKs)
  2. improvement_actions       (→ assessments)
  3. action_generation_claims  (→ assessments)

``action_generation_claims`` holds one row per ``(assessment_id, user_id)``.
Its primary key is the exactly-once guard for action generation: the claim
and the action rows are written in one transaction, so a second run either
sees the claim or loses the insert race on the key.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_ASSESSMENTS = """
CREATE TABLE IF NOT EXISTS assessments (
    assessment_id           TEXT    PRIMARY KEY,
    user_id                 TEXT    NOT NULL,
    organization_id         TEXT    NOT NULL,
    answers_json            TEXT    NOT NULL DEFAULT '{}',
    department_scores_json  TEXT    NOT NULL DEFAULT '{}',
    overall_score           INTEGER NOT NULL DEFAULT 0
                                    CHECK (overall_score BETWEEN 0 AND 100),
    status                  TEXT    NOT NULL DEFAULT 'completed',
    completed_at            TEXT,
    created_at              TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_assessments_user
    ON assessments (user_id, organization_id);
"""

_DDL_IMPROVEMENT_ACTIONS = """
CREATE TABLE IF NOT EXISTS improvement_actions (
    action_id               INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id                 TEXT    NOT NULL,
    organization_id         TEXT    NOT NULL,
    assessment_id           TEXT    NOT NULL REFERENCES assessments(assessment_id),
    department              TEXT    NOT NULL,
    priority                TEXT    NOT NULL
                                    CHECK (priority IN ('critical', 'high', 'medium', 'low')),
    action_title            TEXT    NOT NULL,
    action_description      TEXT    NOT NULL,
    status                  TEXT    NOT NULL DEFAULT 'Open',
    responsible_person      TEXT    NOT NULL,
    target_completion_date  TEXT    NOT NULL,
    support_required_from   TEXT    NOT NULL DEFAULT '[]',
    kpis_linked_to          TEXT    NOT NULL DEFAULT '[]',
    created_at              TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_actions_assessment_user
    ON improvement_actions (assessment_id, user_id);
"""

_DDL_ACTION_GENERATION_CLAIMS = """
CREATE TABLE IF NOT EXISTS action_generation_claims (
    assessment_id       TEXT    NOT NULL REFERENCES assessments(assessment_id),
    user_id             TEXT    NOT NULL,
    run_slug            TEXT    NOT NULL,
    actions_generated   INTEGER NOT NULL DEFAULT 0,
    config_snapshot     TEXT    NOT NULL DEFAULT '{}',
    created_at          TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    PRIMARY KEY (assessment_id, user_id)
);
"""

_ALL_DDL: list[str] = [
    _DDL_ASSESSMENTS,
    _DDL_IMPROVEMENT_ACTIONS,
    _DDL_ACTION_GENERATION_CLAIMS,
]

ALL_TABLE_NAMES = [
    "assessments",
    "improvement_actions",
    "action_generation_claims",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes on ``conn`` (idempotent)."""
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Table names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
