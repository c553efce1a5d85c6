"""Tests for the closed signal, severity and priority enumerations."""

from __future__ import annotations

from assessment_engine.taxonomy.department_taxonomy import (
    MATURITY_THRESHOLDS,
    Department,
    ScoreCategory,
)
from assessment_engine.taxonomy.signal_taxonomy import (
    SIGNAL_DESCRIPTIONS,
    ActionPriority,
    Severity,
    SignalCode,
)


class TestSeverity:
    def test_rank_order(self):
        assert Severity.LOW.rank < Severity.MEDIUM.rank < Severity.HIGH.rank

    def test_escalated(self):
        assert Severity.LOW.escalated() == Severity.MEDIUM
        assert Severity.MEDIUM.escalated() == Severity.HIGH
        assert Severity.HIGH.escalated() == Severity.HIGH


class TestSignalCode:
    def test_every_real_code_has_description(self):
        real_codes = {c for c in SignalCode if c != SignalCode.NONE}
        assert set(SIGNAL_DESCRIPTIONS) == real_codes

    def test_none_has_no_description(self):
        assert SignalCode.NONE not in SIGNAL_DESCRIPTIONS

    def test_string_values(self):
        assert SignalCode("KPI_NOT_REVIEWED") is SignalCode.KPI_NOT_REVIEWED


class TestPriorityAndDepartments:
    def test_priority_values(self):
        assert [p.value for p in ActionPriority] == ["critical", "high", "medium", "low"]

    def test_five_departments_and_categories(self):
        assert len(Department) == 5
        assert len(ScoreCategory) == 5

    def test_maturity_thresholds_descending(self):
        bounds = [b for _, b in MATURITY_THRESHOLDS]
        assert bounds == sorted(bounds, reverse=True)
        assert bounds[-1] == 0.0
