"""
Signal detection from weak answers.

Algorithm
---------
1. Disabled engine → no signals.
2. Keep whole-number answers with ``score <= weak_score_threshold`` whose
   question maps to a signal code other than ``NONE``.
3. Per-question base severity from ``(score, weight)``:
       HIGH    score <= critical  and weight >= 1.3
       MEDIUM  score <= critical  and weight >= 1.0
       LOW     everything else that is weak (incl. score == weak threshold)
4. Group by ``(signal_code, module_key)``; a group's severity is the maximum
   of its members.
5. Escalation: a group with at least ``escalation_trigger_count`` (3)
   questions moves up one level. HIGH stays HIGH.
6. One ``Signal`` per group.
7. Order: severity descending, then trigger count descending. Ties keep the
   order in which their first question appeared in ``answers``.

The order in step 7 decides which signals claim the action budget first, so
it must be deterministic for a given ``answers`` mapping.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from assessment_engine.config import EngineConfig
from assessment_engine.models.catalog import SignalMappingTable
from assessment_engine.scoring.scorer import is_valid_answer
from assessment_engine.taxonomy.signal_taxonomy import Severity, SignalCode

logger = logging.getLogger(__name__)

HIGH_WEIGHT_THRESHOLD = 1.3
MEDIUM_WEIGHT_THRESHOLD = 1.0
DEFAULT_QUESTION_WEIGHT = 1.0


@dataclass(frozen=True)
class Signal:
    """A detected failure mode within one module.

    Attributes:
        signal_code:             Never ``SignalCode.NONE``.
        severity:                Group severity after escalation.
        module_key:              Department key the questions belong to.
        triggering_question_ids: Weak questions in first-seen order.
        rationale:               Human-readable summary.
        source_question_scores:  Question id → the answer that triggered it.
    """

    signal_code:             SignalCode
    severity:                Severity
    module_key:              str
    triggering_question_ids: tuple[str, ...]
    rationale:               str
    source_question_scores:  dict[str, int] = field(default_factory=dict)

    @property
    def trigger_count(self) -> int:
        return len(self.triggering_question_ids)


@dataclass
class _SignalGroup:
    """Mutable accumulator for one ``(signal_code, module_key)`` pair."""

    signal_code: SignalCode
    module_key:  str
    severity:    Severity
    question_ids: list[str] = field(default_factory=list)
    scores:      dict[str, int] = field(default_factory=dict)


# ── Severity rules ────────────────────────────────────────────────────────────

def determine_severity(
    score: int,
    weight: float,
    critical_threshold: int = 2,
) -> Severity:
    """Per-question base severity.

    Args:
        score:              Answer in [1, 5], already known to be weak.
        weight:             Question weight.
        critical_threshold: Highest score considered critical.
    """
    if score <= critical_threshold and weight >= HIGH_WEIGHT_THRESHOLD:
        return Severity.HIGH
    if score <= critical_threshold and weight >= MEDIUM_WEIGHT_THRESHOLD:
        return Severity.MEDIUM
    # Boundary answers (score == weak threshold) and light critical answers.
    return Severity.LOW


def escalate_severity(
    severity: Severity,
    trigger_count: int,
    escalation_trigger_count: int = 3,
) -> Severity:
    """Bump ``severity`` one level when enough questions corroborate it."""
    if trigger_count >= escalation_trigger_count:
        return severity.escalated()
    return severity


def build_rationale(trigger_count: int, module_name: str) -> str:
    return f"Detected in {trigger_count} question(s) in {module_name}"


# ── Engine ────────────────────────────────────────────────────────────────────

class SignalEngine:
    """Turns an answer map into ranked signals.

    Args:
        mappings: Question → signal mapping table.
        config:   Thresholds and the auto-action feature flag.
    """

    def __init__(self, mappings: SignalMappingTable, config: EngineConfig) -> None:
        self.mappings = mappings
        self.config = config

    def generate_signals(
        self,
        answers: Mapping[str, Any],
        question_weights: Mapping[str, float],
    ) -> list[Signal]:
        """Detect, group, escalate and rank signals.

        Args:
            answers:          Question id → score in [1, 5].
            question_weights: Question id → weight. Missing ids weigh 1.0.

        Returns:
            Signals in priority order; empty when the engine is disabled or
            no answer is weak.
        """
        if not self.config.enable_auto_actions:
            return []

        groups: dict[tuple[SignalCode, str], _SignalGroup] = {}

        for question_id, score in answers.items():
            if not is_valid_answer(score):
                logger.debug("Skipping malformed answer %s=%r", question_id, score)
                continue
            if score > self.config.weak_score_threshold:
                continue

            mapping = self.mappings.get_signal_mapping(question_id)
            if mapping is None:
                logger.debug("No signal mapping for question %s", question_id)
                continue
            if mapping.signal_code == SignalCode.NONE:
                continue

            weight = question_weights.get(question_id, DEFAULT_QUESTION_WEIGHT)
            severity = determine_severity(
                score,
                weight,
                critical_threshold=self.config.critical_score_threshold,
            )

            key = (mapping.signal_code, str(mapping.module_key))
            group = groups.get(key)
            if group is None:
                group = _SignalGroup(
                    signal_code=mapping.signal_code,
                    module_key=str(mapping.module_key),
                    severity=severity,
                )
                groups[key] = group
            elif severity.rank > group.severity.rank:
                group.severity = severity

            group.question_ids.append(question_id)
            group.scores[question_id] = int(score)

        signals = [self._to_signal(group) for group in groups.values()]
        # sorted() is stable: ties keep first-seen group order.
        return sorted(signals, key=lambda s: (-s.severity.rank, -s.trigger_count))

    def _to_signal(self, group: _SignalGroup) -> Signal:
        count = len(group.question_ids)
        return Signal(
            signal_code=group.signal_code,
            severity=escalate_severity(
                group.severity, count, self.config.escalation_trigger_count
            ),
            module_key=group.module_key,
            triggering_question_ids=tuple(group.question_ids),
            rationale=build_rationale(count, self.mappings.module_name(group.module_key)),
            source_question_scores=dict(group.scores),
        )


def generate_signals(
    answers: Mapping[str, Any],
    question_weights: Mapping[str, float],
    mappings: SignalMappingTable,
    config: EngineConfig | None = None,
) -> list[Signal]:
    """Functional form of ``SignalEngine.generate_signals``."""
    return SignalEngine(mappings, config or EngineConfig()).generate_signals(
        answers, question_weights
    )
