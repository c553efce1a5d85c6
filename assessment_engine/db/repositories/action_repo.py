"""
Repository for improvement actions and generation claims.

``improvement_actions`` rows are written once per ``(assessment_id, user_id)``
by the generation run; ``action_generation_claims`` records that the run
happened. Both are written in the caller's transaction.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date
from typing import Any

from assessment_engine.db.repositories.base import BaseRepository
from assessment_engine.models.action import PersistedAction

logger = logging.getLogger(__name__)


class ImprovementActionRepository(BaseRepository):
    """Read/write access to ``improvement_actions`` and ``action_generation_claims``."""

    # ── improvement_actions ─────────────────────────────────────────────────

    def count_for_assessment(self, assessment_id: str, user_id: str) -> int:
        return self.count(
            """
            SELECT COUNT(*) AS n FROM improvement_actions
            WHERE assessment_id = ? AND user_id = ?;
            """,
            (assessment_id, user_id),
        )

    def insert_actions(self, actions: list[PersistedAction]) -> int:
        """Batch insert ``actions``; returns the number of rows written."""
        if not actions:
            return 0
        self.executemany(
            """
            INSERT INTO improvement_actions (
                user_id, organization_id, assessment_id, department, priority,
                action_title, action_description, status, responsible_person,
                target_completion_date, support_required_from, kpis_linked_to
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            [
                (
                    a.user_id,
                    a.organization_id,
                    a.assessment_id,
                    a.department,
                    str(a.priority),
                    a.action_title,
                    a.action_description,
                    a.status,
                    a.responsible_person,
                    a.target_completion_date.isoformat(),
                    json.dumps(a.support_required_from),
                    json.dumps(a.kpis_linked_to),
                )
                for a in actions
            ],
        )
        return len(actions)

    def get_for_assessment(self, assessment_id: str, user_id: str) -> list[PersistedAction]:
        """Actions for one assessment in insertion order."""
        rows = self.fetchall(
            """
            SELECT * FROM improvement_actions
            WHERE assessment_id = ? AND user_id = ?
            ORDER BY action_id;
            """,
            (assessment_id, user_id),
        )
        return [_row_to_action(r) for r in rows]

    # ── action_generation_claims ────────────────────────────────────────────

    def claim_exists(self, assessment_id: str, user_id: str) -> bool:
        return (
            self.count(
                """
                SELECT COUNT(*) AS n FROM action_generation_claims
                WHERE assessment_id = ? AND user_id = ?;
                """,
                (assessment_id, user_id),
            )
            > 0
        )

    def insert_claim(
        self,
        assessment_id: str,
        user_id: str,
        run_slug: str,
        actions_generated: int,
        config_snapshot: dict[str, Any],
    ) -> bool:
        """Claim the generation run for ``(assessment_id, user_id)``.

        Returns:
            ``True`` if this call created the claim, ``False`` if a claim
            already existed.

        Raises:
            sqlite3.IntegrityError: On foreign key violations (unknown assessment).
        """
        cursor = self.execute(
            """
            INSERT INTO action_generation_claims (
                assessment_id, user_id, run_slug, actions_generated, config_snapshot
            ) VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (assessment_id, user_id) DO NOTHING;
            """,
            (
                assessment_id,
                user_id,
                run_slug,
                actions_generated,
                json.dumps(config_snapshot, sort_keys=True, default=str),
            ),
        )
        return cursor.rowcount == 1


def _row_to_action(row: sqlite3.Row) -> PersistedAction:
    return PersistedAction(
        action_id=row["action_id"],
        user_id=row["user_id"],
        organization_id=row["organization_id"],
        assessment_id=row["assessment_id"],
        department=row["department"],
        priority=row["priority"],
        action_title=row["action_title"],
        action_description=row["action_description"],
        status=row["status"],
        responsible_person=row["responsible_person"],
        target_completion_date=date.fromisoformat(row["target_completion_date"]),
        support_required_from=json.loads(row["support_required_from"]),
        kpis_linked_to=json.loads(row["kpis_linked_to"]),
    )
