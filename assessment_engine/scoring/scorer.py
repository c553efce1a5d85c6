"""
Weighted overall score from department scores.

Score formula
-------------
    category_avg[c] = mean(score[d] for each department d scored under c)
    W               = sum(weight[c] for each category c present)
    overall         = sum(category_avg[c] * weight[c]) / W      (W < 1 only)
    result          = round_half_up(clamp(overall, 0, 100))

Dividing by ``W`` when some categories are missing keeps a partial
submission on the same 0–100 scale instead of deflating it.

Input hygiene
-------------
Department scores arrive from outside the engine. Non-numeric, NaN and
infinite values are dropped with a warning, as are departments absent from
the category table. Out-of-range numbers are kept and the result clamped.
When nothing valid remains the score is 0 and an error is logged and
reported on ``ScoreSummary.error``; nothing is raised.

Department scores from answers
------------------------------
``calculate_department_scores`` turns an answer map into department scores:
the weighted mean of a section's answered 1–5 scores, mapped linearly onto
0–100 (1 → 0, 3 → 50, 5 → 100).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from assessment_engine.models.catalog import CategoryWeightTable
from assessment_engine.models.questionnaire import Questionnaire

logger = logging.getLogger(__name__)

MIN_SCORE = 0.0
MAX_SCORE = 100.0
MIN_ANSWER = 1
MAX_ANSWER = 5
RENORMALIZE_EPSILON = 1e-9

NO_VALID_SCORES_ERROR = "No valid department scores found"


@dataclass
class CategoryScore:
    """Per-category transparency figures.

    Attributes:
        category:              Category key, e.g. ``"newVehicleSales"``.
        score:                 Raw mean of the category's department scores.
        weight:                Fixed category weight.
        weighted_contribution: ``score * weight`` rounded to two decimals.
        departments:           Departments that contributed, in input order.
    """

    category:              str
    score:                 float
    weight:                float
    weighted_contribution: float
    departments:           list[str] = field(default_factory=list)


@dataclass
class ScoreSummary:
    """Overall score plus the breakdown and any non-fatal problems."""

    overall_score: int
    categories:    dict[str, CategoryScore]
    covered_weight: float
    dropped:       list[str] = field(default_factory=list)
    error:         Optional[str] = None


class ScoringEngine:
    """Aggregates department scores using a fixed category weight table.

    Args:
        weight_table: Category weights and department assignments.
    """

    def __init__(self, weight_table: CategoryWeightTable) -> None:
        self.weight_table = weight_table

    def calculate_weighted_score(self, department_scores: Mapping[str, Any]) -> int:
        """Return the overall 0–100 score (0 when no valid scores remain)."""
        return self.summarize(department_scores).overall_score

    def calculate_category_scores(
        self,
        department_scores: Mapping[str, Any],
    ) -> dict[str, CategoryScore]:
        """Per-category average, weight and weighted contribution."""
        grouped, _ = self._group_by_category(department_scores, log_drops=False)
        return self._category_scores(grouped)

    def summarize(self, department_scores: Mapping[str, Any]) -> ScoreSummary:
        """Compute the overall score together with its breakdown."""
        grouped, dropped = self._group_by_category(department_scores, log_drops=True)

        if not grouped:
            logger.error(NO_VALID_SCORES_ERROR)
            return ScoreSummary(
                overall_score=0,
                categories={},
                covered_weight=0.0,
                dropped=dropped,
                error=NO_VALID_SCORES_ERROR,
            )

        weighted_terms: list[float] = []
        weights: list[float] = []
        for category, scores in grouped.items():
            weight = self.weight_table.weight_for(category)
            weighted_terms.append(_mean(list(scores.values())) * weight)
            weights.append(weight)

        weighted_score = math.fsum(weighted_terms)
        total_weight = math.fsum(weights)

        if 0.0 < total_weight < 1.0 - RENORMALIZE_EPSILON:
            weighted_score = weighted_score / total_weight

        return ScoreSummary(
            overall_score=round_half_up(_clamp(weighted_score, MIN_SCORE, MAX_SCORE)),
            categories=self._category_scores(grouped),
            covered_weight=round(total_weight, 6),
            dropped=dropped,
        )

    # ── Internals ─────────────────────────────────────────────────────────────

    def _group_by_category(
        self,
        department_scores: Mapping[str, Any],
        log_drops: bool,
    ) -> tuple[dict[str, dict[str, float]], list[str]]:
        """Return ``{category: {department: score}}`` and the dropped keys."""
        grouped: dict[str, dict[str, float]] = {}
        dropped: list[str] = []

        for department, score in department_scores.items():
            if not is_valid_number(score):
                if log_drops:
                    logger.warning("Invalid score for %s: %r", department, score)
                dropped.append(department)
                continue

            category = self.weight_table.category_for(department)
            if category is None:
                if log_drops:
                    logger.warning("Department %s not mapped to a category", department)
                dropped.append(department)
                continue

            grouped.setdefault(str(category), {})[department] = float(score)

        return grouped, dropped

    def _category_scores(
        self,
        grouped: dict[str, dict[str, float]],
    ) -> dict[str, CategoryScore]:
        result: dict[str, CategoryScore] = {}
        for category, by_department in grouped.items():
            avg = _mean(list(by_department.values()))
            weight = self.weight_table.weight_for(category)
            result[category] = CategoryScore(
                category=category,
                score=avg,
                weight=weight,
                weighted_contribution=round(avg * weight, 2),
                departments=list(by_department),
            )
        return result


def calculate_department_scores(
    answers: Mapping[str, Any],
    questionnaire: Questionnaire,
) -> dict[str, float]:
    """Derive 0–100 department scores from a raw answer map.

    Answers outside [1, 5], fractional or non-numeric are ignored. Sections
    without a single valid answer are omitted so the overall score
    renormalizes.

    Args:
        answers:       Question id → score in [1, 5].
        questionnaire: Supplies section membership and question weights.

    Returns:
        Section id → score rounded to two decimals, in questionnaire order.
    """
    scores: dict[str, float] = {}
    for section in questionnaire.sections:
        weighted_sum = 0.0
        weight_sum = 0.0
        for question in section.questions:
            value = answers.get(question.id)
            if not is_valid_answer(value):
                continue
            weighted_sum += float(value) * question.weight
            weight_sum += question.weight
        if weight_sum <= 0:
            continue
        mean = weighted_sum / weight_sum
        pct = (mean - MIN_ANSWER) / (MAX_ANSWER - MIN_ANSWER) * MAX_SCORE
        scores[str(section.id)] = round(pct, 2)
    return scores


def is_valid_number(value: Any) -> bool:
    """True for finite ints/floats; bools and everything else are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_valid_answer(value: Any) -> bool:
    """True for a whole number in [1, 5]; ``3.0`` counts, ``2.9`` does not."""
    return (
        is_valid_number(value)
        and float(value).is_integer()
        and MIN_ANSWER <= value <= MAX_ANSWER
    )


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (71.5 → 72).

    Python's ``round`` uses banker's rounding, which would give 72 for 71.5
    but 70 for 70.5.
    """
    return int(math.floor(value + 0.5))


# ── Helpers ───────────────────────────────────────────────────────────────────

def _mean(values: list[float]) -> float:
    return math.fsum(values) / len(values)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
