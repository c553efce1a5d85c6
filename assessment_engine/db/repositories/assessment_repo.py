"""
Repository for submitted assessments.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from assessment_engine.db.repositories.base import BaseRepository
from assessment_engine.models.action import AssessmentRecord
from assessment_engine.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class AssessmentRepository(BaseRepository):
    """Read/write access to the ``assessments`` table."""

    def insert(self, record: AssessmentRecord) -> str:
        """Persist a completed assessment.

        ``completed_at`` is set to now when the record does not carry one.

        Returns:
            The ``assessment_id``.

        Raises:
            sqlite3.IntegrityError: If the id already exists.
        """
        completed_at = record.completed_at or utcnow()
        self.execute(
            """
            INSERT INTO assessments (
                assessment_id, user_id, organization_id, answers_json,
                department_scores_json, overall_score, status, completed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                record.assessment_id,
                record.user_id,
                record.organization_id,
                json.dumps(record.answers, sort_keys=True),
                json.dumps(record.department_scores, sort_keys=True),
                record.overall_score,
                record.status,
                completed_at.isoformat(),
            ),
        )
        record.completed_at = completed_at
        logger.debug("Stored assessment %s", record.assessment_id)
        return record.assessment_id

    def get_by_id(self, assessment_id: str) -> Optional[AssessmentRecord]:
        row = self.fetchone(
            "SELECT * FROM assessments WHERE assessment_id = ?;", (assessment_id,)
        )
        return _row_to_record(row) if row else None

    def exists(self, assessment_id: str) -> bool:
        return (
            self.count(
                "SELECT COUNT(*) AS n FROM assessments WHERE assessment_id = ?;",
                (assessment_id,),
            )
            > 0
        )


def _row_to_record(row: sqlite3.Row) -> AssessmentRecord:
    return AssessmentRecord(
        assessment_id=row["assessment_id"],
        user_id=row["user_id"],
        organization_id=row["organization_id"],
        answers=json.loads(row["answers_json"]),
        department_scores=json.loads(row["department_scores_json"]),
        overall_score=row["overall_score"],
        status=row["status"],
        completed_at=datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None,
    )
