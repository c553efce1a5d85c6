"""
Assessment submission: score an answer map and store it.

Action generation is a separate, best-effort step run afterwards by
``ActionGenerationOrchestrator``; storing the assessment never depends on it.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any, Optional

from assessment_engine.catalog.loader import AssessmentCatalog
from assessment_engine.config import AppConfig
from assessment_engine.db.connection import get_connection
from assessment_engine.db.repositories.assessment_repo import AssessmentRepository
from assessment_engine.models.action import AssessmentRecord
from assessment_engine.scoring.scorer import ScoringEngine, calculate_department_scores

logger = logging.getLogger(__name__)


def submit_assessment(
    answers: Mapping[str, Any],
    user_id: str,
    organization_id: str,
    catalog: AssessmentCatalog,
    config: AppConfig,
    assessment_id: Optional[str] = None,
    db_path: Optional[str] = None,
) -> AssessmentRecord:
    """Compute scores for ``answers`` and insert a completed assessment.

    Args:
        answers:         Question id → score in [1, 5].
        user_id:         Owner of the assessment.
        organization_id: Tenant id.
        catalog:         Supplies the questionnaire and category weights.
        config:          Database settings.
        assessment_id:   Explicit id (stored lowercase); a new UUID4 when omitted.
        db_path:         Overrides ``config.database.db_path``.

    Returns:
        The stored ``AssessmentRecord`` with ``completed_at`` set.
    """
    department_scores = calculate_department_scores(answers, catalog.questionnaire)
    overall = ScoringEngine(catalog.category_weights).calculate_weighted_score(
        department_scores
    )

    record = AssessmentRecord(
        assessment_id=(assessment_id or str(uuid.uuid4())).lower(),
        user_id=user_id,
        organization_id=organization_id,
        answers=dict(answers),
        department_scores=department_scores,
        overall_score=overall,
    )

    with get_connection(
        db_path or config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        AssessmentRepository(conn).insert(record)

    logger.info(
        "Assessment %s stored | overall_score=%d | departments=%d",
        record.assessment_id, overall, len(department_scores),
    )
    return record
