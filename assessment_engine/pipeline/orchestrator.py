"""
Action generation orchestrator.

The only component with side effects. A run is linear, with no retries:

  1. Feature flag off                    → success, 0 actions
  2. No user id                          → failure "User not authenticated"
  3. Malformed assessment/org id         → failure
  4. Assessment not stored               → failure
  5. Actions or a claim already exist    → success, 0 actions
  6. Signals → actions; none produced    → success, 0 actions (nothing written)
  7. One transaction: claim + batch insert
       claim already taken by a concurrent run → success, 0 actions
       any other error → rollback, failure

Step 7 makes generation exactly-once per ``(assessment_id, user_id)``: the
claim table's primary key decides the winner, and the claim and the action
rows commit or roll back together. Step 5 is only a fast path.

Failures are returned, never raised, so a caller completing an assessment is
not blocked by action generation.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from assessment_engine.actions.formatter import format_actions_for_insert
from assessment_engine.actions.instantiator import ActionInstantiator, InstantiatedAction
from assessment_engine.catalog.loader import AssessmentCatalog
from assessment_engine.config import AppConfig, EngineConfig
from assessment_engine.db.connection import MEMORY_DB, get_connection
from assessment_engine.db.repositories.action_repo import ImprovementActionRepository
from assessment_engine.db.repositories.assessment_repo import AssessmentRepository
from assessment_engine.scoring.maturity import classify_maturity
from assessment_engine.scoring.scorer import (
    CategoryScore,
    ScoringEngine,
    calculate_department_scores,
)
from assessment_engine.signals.detector import Signal, SignalEngine
from assessment_engine.taxonomy.department_taxonomy import MaturityLevel
from assessment_engine.utils.logging import run_logger

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED_ERROR = "User not authenticated"
ASSESSMENT_NOT_FOUND_ERROR = "Assessment not found in database"


@dataclass
class GenerationResult:
    """Outcome of one generation run, shaped for UI feedback."""

    success: bool
    actions_generated: int = 0
    error: Optional[str] = None


@dataclass
class AssessmentEvaluation:
    """Everything computed from one answer map, with no side effects."""

    department_scores: dict[str, float]
    overall_score:     int
    category_scores:   dict[str, CategoryScore]
    maturity_level:    MaturityLevel
    signals:           list[Signal] = field(default_factory=list)
    actions:           list[InstantiatedAction] = field(default_factory=list)
    score_error:       Optional[str] = None


def evaluate_assessment(
    answers: Mapping[str, Any],
    catalog: AssessmentCatalog,
    config: Optional[EngineConfig] = None,
) -> AssessmentEvaluation:
    """Score ``answers`` and derive signals and actions in one pass.

    Args:
        answers: Question id → score in [1, 5].
        catalog: Questionnaire, weights, mappings and templates.
        config:  Engine thresholds and caps; defaults to ``EngineConfig()``.
    """
    config = config or EngineConfig()

    department_scores = calculate_department_scores(answers, catalog.questionnaire)
    summary = ScoringEngine(catalog.category_weights).summarize(department_scores)

    signals = SignalEngine(catalog.signal_mappings, config).generate_signals(
        answers, catalog.questionnaire.question_weights()
    )
    actions = ActionInstantiator(catalog.action_templates).instantiate_actions(
        signals, max_actions=config.max_actions
    )

    return AssessmentEvaluation(
        department_scores=department_scores,
        overall_score=summary.overall_score,
        category_scores=summary.categories,
        maturity_level=classify_maturity(summary.overall_score),
        signals=signals,
        actions=actions,
        score_error=summary.error,
    )


class ActionGenerationOrchestrator:
    """Generates and persists improvement actions for a stored assessment.

    Args:
        config:  Application config; ``config.engine`` drives the engines.
        catalog: Loaded assessment catalog.
        db_path: Database path; defaults to ``config.database.db_path``.

    Raises:
        ValueError: If the database is ``:memory:``. Each step opens its own
            connection, and every in-memory connection is a separate database.
    """

    stage_name = "generate-actions"

    def __init__(
        self,
        config: AppConfig,
        catalog: AssessmentCatalog,
        db_path: str | None = None,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.db_path = db_path or config.database.db_path
        if self.db_path == MEMORY_DB:
            raise ValueError("Action generation needs a file-backed database, not :memory:.")
        self.signal_engine = SignalEngine(catalog.signal_mappings, config.engine)
        self.instantiator = ActionInstantiator(catalog.action_templates)

    def generate_actions(
        self,
        assessment_id: str,
        answers: Mapping[str, Any],
        organization_id: str,
        user_id: Optional[str],
        today: Optional[date] = None,
    ) -> GenerationResult:
        """Run one generation attempt for ``assessment_id``.

        Args:
            assessment_id:   Canonical UUID of a stored assessment.
            answers:         Question id → score in [1, 5].
            organization_id: Canonical UUID of the tenant.
            user_id:         Authenticated user; ``None`` or empty fails.
            today:           Reference date for target completion dates.
        """
        if not self.config.engine.enable_auto_actions:
            logger.info("Auto-generation of actions is disabled; skipping %s", assessment_id)
            return GenerationResult(success=True)

        if not user_id:
            logger.warning("Action generation refused: no authenticated user")
            return GenerationResult(success=False, error=NOT_AUTHENTICATED_ERROR)

        for label, value in (("assessment_id", assessment_id), ("organization_id", organization_id)):
            if not is_canonical_uuid(value):
                logger.warning("Action generation refused: invalid %s %r", label, value)
                return GenerationResult(success=False, error=f"Invalid {label}: {value!r}")
        # Stored ids are lowercase; SQLite compares TEXT case-sensitively.
        assessment_id = assessment_id.lower()
        organization_id = organization_id.lower()

        run_slug = str(uuid.uuid4())
        log = run_logger(logger, assessment_id=assessment_id, run_slug=run_slug)
        log.info(
            "Stage [%s] starting | assessment_id=%s | run_slug=%s",
            self.stage_name, assessment_id, run_slug,
        )

        try:
            return self._execute(
                log, run_slug, assessment_id, answers, organization_id, user_id, today
            )
        except Exception as exc:
            log.error(
                "Stage [%s] FAILED: %s | assessment_id=%s | run_slug=%s",
                self.stage_name, exc, assessment_id, run_slug,
            )
            return GenerationResult(success=False, error=str(exc))

    def _execute(
        self,
        log: logging.LoggerAdapter,
        run_slug: str,
        assessment_id: str,
        answers: Mapping[str, Any],
        organization_id: str,
        user_id: str,
        today: Optional[date],
    ) -> GenerationResult:
        with self._connect() as conn:
            if not AssessmentRepository(conn).exists(assessment_id):
                log.warning("Assessment %s not found", assessment_id)
                return GenerationResult(success=False, error=ASSESSMENT_NOT_FOUND_ERROR)

            action_repo = ImprovementActionRepository(conn)
            if (
                action_repo.count_for_assessment(assessment_id, user_id) > 0
                or action_repo.claim_exists(assessment_id, user_id)
            ):
                log.info("Actions already exist for assessment %s; skipping", assessment_id)
                return GenerationResult(success=True)

        signals = self.signal_engine.generate_signals(
            answers, self.catalog.questionnaire.question_weights()
        )
        actions = self.instantiator.instantiate_actions(
            signals, max_actions=self.config.engine.max_actions
        )
        log.debug(
            "Assessment %s: %d signal(s), %d action(s)",
            assessment_id, len(signals), len(actions),
        )

        if not actions:
            log.info("No actions to generate for assessment %s", assessment_id)
            return GenerationResult(success=True)

        rows = format_actions_for_insert(
            actions,
            user_id=user_id,
            assessment_id=assessment_id,
            organization_id=organization_id,
            mappings=self.catalog.signal_mappings,
            today=today,
        )

        with self._connect() as conn:
            action_repo = ImprovementActionRepository(conn)
            claimed = action_repo.insert_claim(
                assessment_id,
                user_id,
                run_slug=run_slug,
                actions_generated=len(rows),
                config_snapshot=self.config.engine.model_dump(),
            )
            if not claimed:
                log.info(
                    "Concurrent run already generated actions for %s; skipping", assessment_id
                )
                return GenerationResult(success=True)
            inserted = action_repo.insert_actions(rows)

        log.info(
            "Stage [%s] completed | rows=%d | run_slug=%s",
            self.stage_name, inserted, run_slug,
        )
        return GenerationResult(success=True, actions_generated=inserted)

    def _connect(self):
        return get_connection(
            self.db_path,
            wal_mode=self.config.database.wal_mode,
            busy_timeout_ms=self.config.database.busy_timeout_ms,
        )


def is_canonical_uuid(value: Any) -> bool:
    """True for a hyphenated 36-character UUID string (any case)."""
    if not isinstance(value, str) or len(value) != 36:
        return False
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False
