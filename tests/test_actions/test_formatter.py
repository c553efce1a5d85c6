"""Tests for turning instantiated actions into ``improvement_actions`` rows."""

from __future__ import annotations

from datetime import date

from assessment_engine.actions.formatter import (
    build_action_description,
    format_actions_for_insert,
)
from assessment_engine.actions.instantiator import InstantiatedAction
from assessment_engine.taxonomy.signal_taxonomy import ActionPriority, SignalCode

TODAY = date(2026, 3, 1)


def _action(timeframe_days: int = 14) -> InstantiatedAction:
    return InstantiatedAction(
        template_id="KNR-1",
        signal_code=SignalCode.KPI_NOT_REVIEWED,
        module_key="service-performance",
        priority=ActionPriority.HIGH,
        title="Weekly KPI review",
        description="Hold a weekly review.",
        owner_role="Service Manager",
        timeframe_days=timeframe_days,
        implementation_steps=("Book the slot",),
        triggering_question_ids=("q2", "q3"),
        rationale="Detected in 2 question(s) in Service",
    )


class TestBuildActionDescription:
    def test_footer(self):
        assert build_action_description(_action()) == (
            "Hold a weekly review.\n\n"
            "Triggered because: KPI_NOT_REVIEWED\n"
            "Related questions: q2, q3\n"
            "Rationale: Detected in 2 question(s) in Service"
        )


class TestFormatActionsForInsert:
    def test_row_fields(self, mapping_table):
        rows = format_actions_for_insert(
            [_action()],
            user_id="u1",
            assessment_id="a1",
            organization_id="o1",
            mappings=mapping_table,
            today=TODAY,
        )
        assert len(rows) == 1
        row = rows[0]
        assert row.user_id == "u1"
        assert row.assessment_id == "a1"
        assert row.organization_id == "o1"
        assert row.department == "Service"
        assert row.priority == ActionPriority.HIGH
        assert row.action_title == "Weekly KPI review"
        assert row.responsible_person == "Service Manager"
        assert row.status == "Open"
        assert row.support_required_from == []
        assert row.kpis_linked_to == []
        assert row.action_id is None

    def test_target_date(self):
        rows = format_actions_for_insert(
            [_action(30), _action(0)], "u1", "a1", "o1", today=TODAY
        )
        assert rows[0].target_completion_date == date(2026, 3, 31)
        assert rows[1].target_completion_date == TODAY

    def test_department_falls_back_to_module_key(self):
        rows = format_actions_for_insert([_action()], "u1", "a1", "o1", today=TODAY)
        assert rows[0].department == "service-performance"

    def test_empty(self):
        assert format_actions_for_insert([], "u1", "a1", "o1", today=TODAY) == []
