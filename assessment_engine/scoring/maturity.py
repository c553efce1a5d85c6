"""Maturity band of a 0–100 score."""

from __future__ import annotations

from assessment_engine.taxonomy.department_taxonomy import (
    MATURITY_THRESHOLDS,
    MaturityLevel,
)

MATURITY_LABELS: dict[MaturityLevel, str] = {
    MaturityLevel.BASIC:      "Basic",
    MaturityLevel.DEVELOPING: "Developing",
    MaturityLevel.MATURE:     "Mature",
    MaturityLevel.ADVANCED:   "Advanced",
}


def classify_maturity(score: float) -> MaturityLevel:
    """Return the highest band whose lower bound ``score`` reaches.

    Scores below 0 fall into ``BASIC``.
    """
    for level, lower_bound in MATURITY_THRESHOLDS:
        if score >= lower_bound:
            return level
    return MaturityLevel.BASIC
