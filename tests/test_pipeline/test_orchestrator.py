"""
Tests for assessment_engine/pipeline/orchestrator.py: ActionGenerationOrchestrator.

What we test
------------
Guards:
  - Feature flag off → success, 0, nothing written.
  - Missing user → "User not authenticated".
  - Malformed assessment/organization ids → failure.
  - Unknown assessment → "Assessment not found in database".
  - A :memory: database is rejected at construction.

Generation:
  - Weak answers → rows inserted, capped at max_actions, claim recorded.
  - No weak answers → success, 0, no claim.
  - Target dates follow the injected ``today``.
  - Uppercase ids resolve to the stored lowercase assessment.

Exactly-once:
  - Second call for the same assessment → 0, no duplicate rows.
  - A claim taken between the fast path and the write → 0, no rows.
  - Concurrent runs insert exactly one batch.
  - Insert failure rolls back the claim too; a retry then succeeds.
"""

from __future__ import annotations

import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta

import pytest

from assessment_engine.config import EngineConfig
from assessment_engine.db.connection import get_connection
from assessment_engine.db.repositories.action_repo import ImprovementActionRepository
from assessment_engine.pipeline.orchestrator import (
    ASSESSMENT_NOT_FOUND_ERROR,
    NOT_AUTHENTICATED_ERROR,
    ActionGenerationOrchestrator,
    is_canonical_uuid,
)

from conftest import ASSESSMENT_ID, ORGANIZATION_ID, USER_ID, store_assessment

TODAY = date(2026, 5, 4)


# ── Helpers ────────────────────────────────────────────────────────────────────

def _all_ones(catalog) -> dict[str, int]:
    return {qid: 1 for qid in catalog.questionnaire.question_ids()}


def _generate(orchestrator, answers, **overrides):
    kwargs = dict(
        assessment_id=ASSESSMENT_ID,
        answers=answers,
        organization_id=ORGANIZATION_ID,
        user_id=USER_ID,
        today=TODAY,
    )
    kwargs.update(overrides)
    return orchestrator.generate_actions(**kwargs)


def _action_count(db_path: str) -> int:
    with get_connection(db_path) as conn:
        return ImprovementActionRepository(conn).count_for_assessment(ASSESSMENT_ID, USER_ID)


def _claim_exists(db_path: str) -> bool:
    with get_connection(db_path) as conn:
        return ImprovementActionRepository(conn).claim_exists(ASSESSMENT_ID, USER_ID)


# ── Guards ────────────────────────────────────────────────────────────────────

class TestGuards:
    def test_feature_flag_off_is_noop(self, app_config, catalog, db_path):
        store_assessment(db_path)
        config = app_config.model_copy(update={"engine": EngineConfig(enable_auto_actions=False)})
        result = _generate(ActionGenerationOrchestrator(config, catalog), _all_ones(catalog))
        assert result.success is True
        assert result.actions_generated == 0
        assert result.error is None
        assert _action_count(db_path) == 0
        assert _claim_exists(db_path) is False

    @pytest.mark.parametrize("user_id", [None, ""])
    def test_missing_user(self, app_config, catalog, user_id):
        result = _generate(
            ActionGenerationOrchestrator(app_config, catalog), _all_ones(catalog), user_id=user_id
        )
        assert result.success is False
        assert result.error == NOT_AUTHENTICATED_ERROR

    def test_invalid_assessment_id(self, app_config, catalog):
        result = _generate(
            ActionGenerationOrchestrator(app_config, catalog),
            _all_ones(catalog),
            assessment_id="not-a-uuid",
        )
        assert result.success is False
        assert "assessment_id" in result.error

    def test_invalid_organization_id(self, app_config, catalog):
        result = _generate(
            ActionGenerationOrchestrator(app_config, catalog),
            _all_ones(catalog),
            organization_id="org-1",
        )
        assert result.success is False
        assert "organization_id" in result.error

    def test_assessment_not_found(self, app_config, catalog):
        result = _generate(ActionGenerationOrchestrator(app_config, catalog), _all_ones(catalog))
        assert result.success is False
        assert result.error == ASSESSMENT_NOT_FOUND_ERROR

    def test_in_memory_database_rejected(self, app_config, catalog):
        with pytest.raises(ValueError, match=":memory:"):
            ActionGenerationOrchestrator(app_config, catalog, db_path=":memory:")


# ── Generation ────────────────────────────────────────────────────────────────

class TestGeneration:
    def test_generates_capped_batch(self, app_config, catalog, db_path):
        store_assessment(db_path)
        result = _generate(ActionGenerationOrchestrator(app_config, catalog), _all_ones(catalog))
        assert result.success is True
        assert result.actions_generated == app_config.engine.max_actions
        assert _action_count(db_path) == app_config.engine.max_actions
        assert _claim_exists(db_path) is True

    def test_rows_carry_traceability_and_dates(self, app_config, catalog, db_path):
        store_assessment(db_path)
        _generate(ActionGenerationOrchestrator(app_config, catalog), _all_ones(catalog))
        with get_connection(db_path) as conn:
            rows = ImprovementActionRepository(conn).get_for_assessment(ASSESSMENT_ID, USER_ID)

        titles = [r.action_title for r in rows]
        assert len(titles) == len(set(titles))
        for row in rows:
            assert row.status == "Open"
            assert row.organization_id == ORGANIZATION_ID
            assert "Triggered because: " in row.action_description
            assert "Related questions: " in row.action_description
            assert row.target_completion_date >= TODAY
            assert row.target_completion_date <= TODAY + timedelta(days=60)
            assert row.priority in ("high", "medium", "low")

    def test_no_weak_answers(self, app_config, catalog, db_path):
        store_assessment(db_path)
        answers = {qid: 5 for qid in catalog.questionnaire.question_ids()}
        result = _generate(ActionGenerationOrchestrator(app_config, catalog), answers)
        assert result.success is True
        assert result.actions_generated == 0
        assert _claim_exists(db_path) is False

    def test_smaller_cap(self, app_config, catalog, db_path):
        store_assessment(db_path)
        config = app_config.model_copy(update={"engine": EngineConfig(max_actions=3)})
        result = _generate(ActionGenerationOrchestrator(config, catalog), _all_ones(catalog))
        assert result.actions_generated == 3

    def test_uppercase_ids_match_stored_assessment(self, app_config, catalog, db_path):
        store_assessment(db_path)
        orchestrator = ActionGenerationOrchestrator(app_config, catalog)
        result = _generate(
            orchestrator,
            _all_ones(catalog),
            assessment_id=ASSESSMENT_ID.upper(),
            organization_id=ORGANIZATION_ID.upper(),
        )
        assert result.success is True
        assert result.actions_generated == 10

        with get_connection(db_path) as conn:
            rows = ImprovementActionRepository(conn).get_for_assessment(ASSESSMENT_ID, USER_ID)
        assert {r.organization_id for r in rows} == {ORGANIZATION_ID}

        again = _generate(orchestrator, _all_ones(catalog))
        assert again.actions_generated == 0
        assert _action_count(db_path) == 10


# ── Exactly-once ──────────────────────────────────────────────────────────────

class TestIdempotency:
    def test_second_call_generates_nothing(self, app_config, catalog, db_path):
        store_assessment(db_path)
        orchestrator = ActionGenerationOrchestrator(app_config, catalog)
        first = _generate(orchestrator, _all_ones(catalog))
        second = _generate(orchestrator, _all_ones(catalog))
        assert first.actions_generated == 10
        assert second.success is True
        assert second.actions_generated == 0
        assert _action_count(db_path) == 10

    def test_claim_taken_after_fast_path(self, app_config, catalog, db_path, monkeypatch):
        store_assessment(db_path)
        with get_connection(db_path) as conn:
            ImprovementActionRepository(conn).insert_claim(
                ASSESSMENT_ID, USER_ID, "other-run", 0, {}
            )
        # Simulate the competing run landing between the read and the write.
        monkeypatch.setattr(
            ImprovementActionRepository, "claim_exists", lambda self, a, u: False
        )
        result = _generate(ActionGenerationOrchestrator(app_config, catalog), _all_ones(catalog))
        assert result.success is True
        assert result.actions_generated == 0
        assert _action_count(db_path) == 0

    def test_concurrent_runs_insert_one_batch(self, app_config, catalog, db_path):
        store_assessment(db_path)
        answers = _all_ones(catalog)

        def run(_):
            return _generate(ActionGenerationOrchestrator(app_config, catalog), answers)

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(run, range(4)))

        assert all(r.success for r in results)
        assert sum(r.actions_generated for r in results) == 10
        assert _action_count(db_path) == 10

    def test_insert_failure_rolls_back_claim(self, app_config, catalog, db_path, monkeypatch):
        store_assessment(db_path)
        original = ImprovementActionRepository.insert_actions

        def failing_insert(self, actions):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(ImprovementActionRepository, "insert_actions", failing_insert)
        orchestrator = ActionGenerationOrchestrator(app_config, catalog)
        result = _generate(orchestrator, _all_ones(catalog))

        assert result.success is False
        assert result.actions_generated == 0
        assert "disk I/O error" in result.error
        assert _claim_exists(db_path) is False
        assert _action_count(db_path) == 0

        monkeypatch.setattr(ImprovementActionRepository, "insert_actions", original)
        retry = _generate(orchestrator, _all_ones(catalog))
        assert retry.success is True
        assert retry.actions_generated == 10


class TestIsCanonicalUuid:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (ASSESSMENT_ID, True),
            (ASSESSMENT_ID.upper(), True),
            (ASSESSMENT_ID.replace("-", ""), False),
            ("{" + ASSESSMENT_ID + "}", False),
            ("not-a-uuid", False),
            (None, False),
            (42, False),
        ],
    )
    def test_values(self, value, expected):
        assert is_canonical_uuid(value) is expected
