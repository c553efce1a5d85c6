"""Tests for storing a scored assessment."""

from __future__ import annotations

from assessment_engine.db.connection import get_connection
from assessment_engine.db.repositories.assessment_repo import AssessmentRepository
from assessment_engine.pipeline.orchestrator import is_canonical_uuid
from assessment_engine.pipeline.submission import submit_assessment

from conftest import ASSESSMENT_ID, ORGANIZATION_ID, USER_ID


def test_submit_stores_scores(app_config, catalog, db_path):
    answers = {qid: 5 for qid in catalog.questionnaire.question_ids()}
    record = submit_assessment(
        answers, USER_ID, ORGANIZATION_ID, catalog, app_config, assessment_id=ASSESSMENT_ID
    )
    assert record.overall_score == 100
    assert record.completed_at is not None

    with get_connection(db_path) as conn:
        stored = AssessmentRepository(conn).get_by_id(ASSESSMENT_ID)
    assert stored is not None
    assert stored.answers == answers
    assert stored.overall_score == 100
    assert len(stored.department_scores) == len(catalog.questionnaire.sections)


def test_submit_generates_uuid(app_config, catalog):
    record = submit_assessment({}, USER_ID, ORGANIZATION_ID, catalog, app_config)
    assert is_canonical_uuid(record.assessment_id)
    assert record.overall_score == 0
    assert record.department_scores == {}


def test_explicit_id_stored_lowercase(app_config, catalog, db_path):
    record = submit_assessment(
        {}, USER_ID, ORGANIZATION_ID, catalog, app_config, assessment_id=ASSESSMENT_ID.upper()
    )
    assert record.assessment_id == ASSESSMENT_ID

    with get_connection(db_path) as conn:
        assert AssessmentRepository(conn).exists(ASSESSMENT_ID)
